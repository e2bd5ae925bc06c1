"""Metrics collection and monitoring."""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.events import ClassificationResult, Erasure, ParsedSwap, SplitSwapPair

LATENCY_BUCKETS = [0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0]


@dataclass
class Counter:
    """Simple counter metric."""
    name: str
    value: int = 0
    labels: Dict[str, str] = field(default_factory=dict)

    def inc(self, amount: int = 1):
        self.value += amount


@dataclass
class Gauge:
    """Simple gauge metric."""
    name: str
    value: float = 0.0
    labels: Dict[str, str] = field(default_factory=dict)

    def set(self, value: float):
        self.value = value


@dataclass
class Histogram:
    """Simple histogram metric with buckets."""
    name: str
    buckets: List[float] = field(default_factory=lambda: list(LATENCY_BUCKETS))
    counts: List[int] = None
    sum: float = 0.0
    count: int = 0
    labels: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.counts is None:
            self.counts = [0] * (len(self.buckets) + 1)

    def observe(self, value: float):
        self.sum += value
        self.count += 1
        for i, bucket in enumerate(self.buckets):
            if value <= bucket:
                self.counts[i] += 1
                return
        self.counts[-1] += 1  # +Inf bucket


class MetricsCollector:
    """
    Collects classification metrics.

    Counters are keyed by name and label set; the classifier itself never
    touches this object.
    """

    def __init__(self):
        self._counters: Dict[str, Counter] = {}
        self._gauges: Dict[str, Gauge] = {}
        self._histograms: Dict[str, Histogram] = {}
        self._start_time = time.time()

    # === Counters ===

    def counter(self, name: str, labels: Optional[Dict[str, str]] = None) -> Counter:
        """Get or create a counter."""
        key = f"{name}:{sorted(labels.items())}" if labels else name
        if key not in self._counters:
            self._counters[key] = Counter(name=name, labels=labels or {})
        return self._counters[key]

    def inc(self, name: str, amount: int = 1, labels: Optional[Dict[str, str]] = None):
        """Increment a counter."""
        self.counter(name, labels).inc(amount)

    # === Gauges ===

    def gauge(self, name: str, labels: Optional[Dict[str, str]] = None) -> Gauge:
        """Get or create a gauge."""
        key = f"{name}:{sorted(labels.items())}" if labels else name
        if key not in self._gauges:
            self._gauges[key] = Gauge(name=name, labels=labels or {})
        return self._gauges[key]

    def set_gauge(self, name: str, value: float, labels: Optional[Dict[str, str]] = None):
        """Set a gauge value."""
        self.gauge(name, labels).set(value)

    # === Histograms ===

    def histogram(
        self,
        name: str,
        buckets: Optional[List[float]] = None,
        labels: Optional[Dict[str, str]] = None
    ) -> Histogram:
        """Get or create a histogram."""
        key = f"{name}:{sorted(labels.items())}" if labels else name
        if key not in self._histograms:
            self._histograms[key] = Histogram(
                name=name,
                buckets=buckets or list(LATENCY_BUCKETS),
                labels=labels or {},
            )
        return self._histograms[key]

    def observe(
        self,
        name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None
    ):
        """Record an observation in a histogram."""
        self.histogram(name, labels=labels).observe(value)

    # === Convenience methods ===

    def record_result(self, result: ClassificationResult):
        """Count one classification outcome."""
        if isinstance(result, Erasure):
            self.inc("tx_classified_total", labels={"outcome": "erasure"})
            self.inc("erasures_total", labels={"reason": result.reason_code.value})
        elif isinstance(result, SplitSwapPair):
            self.inc("tx_classified_total", labels={"outcome": "split"})
            self.inc("confidence_total", labels={"tier": result.dispose_leg.confidence.value})
        elif isinstance(result, ParsedSwap):
            self.inc("tx_classified_total", labels={"outcome": "swap"})
            self.inc("confidence_total", labels={"tier": result.confidence.value})

    def record_classification_time(self, seconds: float):
        """Record the wall time of one classification."""
        self.observe("classification_seconds", seconds)

    def record_batch(self, seconds: float, batch_size: int):
        """Record batch time and size."""
        self.observe("batch_classification_seconds", seconds)
        self.set_gauge("last_batch_size", batch_size)
        self.inc("batches_processed_total")

    # === Export ===

    def get_all_metrics(self) -> Dict[str, Any]:
        """Get all metrics as a dictionary."""
        return {
            "uptime_seconds": time.time() - self._start_time,
            "counters": [
                {"name": c.name, "value": c.value, "labels": c.labels}
                for c in self._counters.values()
            ],
            "gauges": [
                {"name": g.name, "value": g.value, "labels": g.labels}
                for g in self._gauges.values()
            ],
            "histograms": [
                {
                    "name": h.name,
                    "sum": h.sum,
                    "count": h.count,
                    "buckets": dict(zip(h.buckets + [float('inf')], h.counts)),
                    "labels": h.labels,
                }
                for h in self._histograms.values()
            ],
        }

    def _sum_counters(self, name: str, **labels: str) -> int:
        """Sum counters with the same base name, optionally filtered by labels."""
        return sum(
            counter.value
            for counter in self._counters.values()
            if counter.name == name
            and all(counter.labels.get(k) == v for k, v in labels.items())
        )

    def _labelled(self, name: str, label: str) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        for counter in self._counters.values():
            if counter.name == name and label in counter.labels:
                key = counter.labels[label]
                totals[key] = totals.get(key, 0) + counter.value
        return totals

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of key metrics."""
        total = self._sum_counters("tx_classified_total")
        swaps = self._sum_counters("tx_classified_total", outcome="swap")
        splits = self._sum_counters("tx_classified_total", outcome="split")
        erasures = self._sum_counters("tx_classified_total", outcome="erasure")

        latency = self._histograms.get("classification_seconds")
        avg_ms = latency.sum / latency.count * 1000 if latency and latency.count else 0.0

        uptime = time.time() - self._start_time

        return {
            "uptime_seconds": uptime,
            "uptime_human": self._format_duration(uptime),
            "transactions_classified": total,
            "swaps": swaps,
            "split_swaps": splits,
            "erasures": erasures,
            "erasures_by_reason": self._labelled("erasures_total", "reason"),
            "confidence": self._labelled("confidence_total", "tier"),
            "classification_rate_pct": (swaps + splits) / total * 100 if total > 0 else 0,
            "avg_classification_ms": avg_ms,
        }

    @staticmethod
    def _format_duration(seconds: float) -> str:
        """Format duration in human-readable format."""
        if seconds < 60:
            return f"{seconds:.0f}s"
        elif seconds < 3600:
            return f"{seconds / 60:.0f}m"
        elif seconds < 86400:
            return f"{seconds / 3600:.1f}h"
        else:
            return f"{seconds / 86400:.1f}d"
