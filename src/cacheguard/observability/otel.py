"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

OpenTelemetry metrics adapter for enterprise telemetry pipelines.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class OpenTelemetryCacheMetrics:
    """Counter sink backed by a lazily created OpenTelemetry meter."""

    meter_name: str = "cacheguard"

    _meter: Any = field(default=None, init=False, repr=False)
    _counters: dict[str, Any] = field(default_factory=dict, init=False, repr=False)

    def _ensure_meter(self) -> None:
        if self._meter is not None:
            return
        try:
            from opentelemetry import metrics
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(
                "OpenTelemetryCacheMetrics requires 'opentelemetry-api'"
            ) from exc
        self._meter = metrics.get_meter(self.meter_name)

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        try:
            self._ensure_meter()
            counter = self._counters.get(name)
            if counter is None:
                counter = self._meter.create_counter(name)
                self._counters[name] = counter
            counter.add(int(value), attributes={str(k): str(v) for k, v in (tags or {}).items()})
        except Exception:  # pragma: no cover
            return
