"""
ServicePlan Metrics Collection
In-process counters and timings for the branding endpoints.
"""
import time
from collections import Counter, defaultdict
from threading import Lock
from typing import Any, Dict, List, Optional

import numpy as np

REQUESTS_TOTAL = "branding_extract_requests_total"
MODE_TOTAL = "branding_extract_mode_total_{mode}"
FALLBACK_TOTAL = "branding_fallback_total"
LOAD_FAILED_TOTAL = "branding_load_failed_total_{error_type}"


class MetricsCollector:
    """Thread-safe counters and duration samples, summarised on request."""

    def __init__(self):
        """Start with empty counters and the uptime clock at zero."""
        self._lock = Lock()
        self._counters: Counter = Counter()
        self._timings: Dict[str, List[float]] = defaultdict(list)
        self._started_at = time.time()

    def increment_counter(self, name: str, amount: int = 1):
        """Add ``amount`` to a named counter, creating it at zero."""
        with self._lock:
            self._counters[name] += amount

    def increment_request_count(self, mode: str):
        """Count an extraction request under the total and under its input mode."""
        with self._lock:
            self._counters[REQUESTS_TOTAL] += 1
            self._counters[MODE_TOTAL.format(mode=mode)] += 1

    def increment_fallback_count(self):
        """Count a response that substituted the default scheme."""
        self.increment_counter(FALLBACK_TOTAL)

    def increment_failure_count(self, error_type: str):
        """Count a logo load failure under its lowercased exception name."""
        self.increment_counter(LOAD_FAILED_TOTAL.format(error_type=error_type))

    def record_timing(self, operation: str, duration_ms: float):
        """Record one duration sample, stored as ``{operation}_duration_ms``."""
        with self._lock:
            self._timings[f"{operation}_duration_ms"].append(duration_ms)

    def get_counters(self) -> Dict[str, int]:
        """Snapshot of all counter values."""
        with self._lock:
            return dict(self._counters)

    def get_timing_stats(self) -> Dict[str, Dict[str, float]]:
        """
        Summarise recorded durations.

        Returns:
            Mapping of timing name to count, mean, min, max, p50 and p95 (ms)
        """
        with self._lock:
            snapshot = {name: list(samples) for name, samples in self._timings.items() if samples}

        stats = {}
        for name, samples in snapshot.items():
            values = np.asarray(samples, dtype=float)
            p50, p95 = np.percentile(values, [50, 95])
            stats[name] = {
                "count": int(values.size),
                "mean": float(values.mean()),
                "min": float(values.min()),
                "max": float(values.max()),
                "p50": float(p50),
                "p95": float(p95),
            }
        return stats

    def get_summary(self) -> Dict[str, Any]:
        """Uptime, counters and timing stats, as served by the metrics endpoint."""
        return {
            "uptime_seconds": time.time() - self._started_at,
            "counters": self.get_counters(),
            "timing_stats": self.get_timing_stats(),
        }

    def reset(self):
        """Clear all counters and timings (used by tests)."""
        with self._lock:
            self._counters.clear()
            self._timings.clear()
            self._started_at = time.time()


_metrics: Optional[MetricsCollector] = None


def get_metrics() -> MetricsCollector:
    """Get or create the process-wide collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def reset_metrics():
    """Reset the process-wide collector if one exists (used by tests)."""
    if _metrics is not None:
        _metrics.reset()
