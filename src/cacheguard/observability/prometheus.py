"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Prometheus exporter for cache counters.
"""

from __future__ import annotations

from collections.abc import Mapping

from .metrics import CACHE_METRIC_CATALOG, CacheMetrics


class PrometheusCacheMetrics(CacheMetrics):
    """
    Exposes the cache counters through `prometheus_client`.

    Every counter in `CACHE_METRIC_CATALOG` is registered up front with its
    fixed label set, so dashboards see the series before the first event.
    Labels missing from `tags` are exported as an empty string and extra
    tags are ignored. Names outside the catalog get a counter on first use,
    labelled by the tags of that first call.
    """

    def __init__(self, *, namespace: str = "cacheguard", registry=None) -> None:
        try:
            from prometheus_client import REGISTRY, Counter
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError(
                "PrometheusCacheMetrics requires `prometheus_client` to be installed."
            ) from exc

        self._Counter = Counter
        self._namespace = namespace
        self._registry = registry if registry is not None else REGISTRY
        self._counters: dict[str, tuple[object, tuple[str, ...]]] = {}
        for name, (documentation, label_names) in CACHE_METRIC_CATALOG.items():
            self._declare(name, documentation, label_names)

    def _declare(
        self, name: str, documentation: str, label_names: tuple[str, ...]
    ) -> tuple[object, tuple[str, ...]]:
        counter = self._Counter(
            name=name,
            documentation=documentation,
            namespace=self._namespace,
            labelnames=label_names,
            registry=self._registry,
        )
        self._counters[name] = (counter, label_names)
        return counter, label_names

    def incr(self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None) -> None:
        tags = tags or {}
        entry = self._counters.get(name)
        if entry is None:
            entry = self._declare(name, f"cacheguard counter {name}", tuple(sorted(tags)))
        counter, label_names = entry
        if label_names:
            counter.labels(*(str(tags.get(label, "")) for label in label_names)).inc(value)
        else:
            counter.inc(value)
