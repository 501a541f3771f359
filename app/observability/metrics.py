"""Prometheus-style metrics collector. Thread-safe, in-memory. No real Prometheus dependency."""

import threading
from typing import Any


class MetricsCollector:
    """
    In-memory Prometheus-style registry. Tracks counters and histograms.
    Thread-safe. Exposes increment, observe_latency, export_metrics.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # Counters: name -> value or name -> {labels -> value}
        self._counters: dict[str, float] = {}
        self._counters_by_labels: dict[str, dict[str, float]] = {}
        self._histograms: dict[str, list[float]] = {}

    def increment(
        self,
        name: str,
        value: float = 1.0,
        *,
        kind: str | None = None,
        outcome: str | None = None,
    ) -> None:
        """Increment a counter. Optional record kind and outcome labels."""
        with self._lock:
            labels = []
            if kind is not None:
                labels.append(f"kind={kind}")
            if outcome is not None:
                labels.append(f"outcome={outcome}")
            if labels:
                key = f"{name}:{','.join(labels)}"
                bucket = self._counters_by_labels.setdefault(name, {})
                bucket[key] = bucket.get(key, 0) + value
            else:
                self._counters[name] = self._counters.get(name, 0) + value

    def observe_latency(
        self,
        name: str,
        latency_ms: float,
        *,
        action: str | None = None,
    ) -> None:
        """Record a latency observation (histogram-style). Optional action label."""
        with self._lock:
            bucket = name if action is None else f"{name}:action={action}"
            self._histograms.setdefault(bucket, []).append(latency_ms)

    def export_metrics(self) -> dict[str, Any]:
        """Export all metrics as a dict (simulated Prometheus-style)."""
        with self._lock:
            return {
                "counters": dict(self._counters),
                "counters_by_labels": {
                    k: dict(v) for k, v in self._counters_by_labels.items()
                },
                "histograms": {
                    k: {
                        "count": len(v),
                        "sum": sum(v),
                        "values": list(v),
                    }
                    for k, v in self._histograms.items()
                },
            }

    def reset(self) -> None:
        """Reset all metrics (for tests)."""
        with self._lock:
            self._counters.clear()
            self._counters_by_labels.clear()
            self._histograms.clear()
