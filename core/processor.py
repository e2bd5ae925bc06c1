"""Transaction processor wrapping the swap classifier."""

import logging
import time
from typing import Any, Iterable, List, Optional

from models.events import ClassificationResult, Erasure
from parser.inference import SwapClassifier
from .monitoring import MetricsCollector

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Classifies transaction payloads and records metrics.

    Orchestrates:
    - Running the classifier on each payload
    - Timing each classification and warning on slow ones
    - Counting outcomes, rejection reasons and confidence tiers

    The processor owns the metrics; the classifier stays stateless and can be
    shared between processors.
    """

    def __init__(
        self,
        classifier: Optional[SwapClassifier] = None,
        metrics: Optional[MetricsCollector] = None,
        latency_warning_ms: float = 100.0,
    ):
        self.classifier = classifier or SwapClassifier()
        self.metrics = metrics or MetricsCollector()
        self.latency_warning_ms = latency_warning_ms

    @classmethod
    def from_settings(cls, settings, metrics: Optional[MetricsCollector] = None) -> "TransactionProcessor":
        return cls(
            classifier=SwapClassifier.from_settings(settings),
            metrics=metrics,
            latency_warning_ms=settings.latency_warning_ms,
        )

    def process_transaction(self, payload: Any) -> ClassificationResult:
        """Classify a single payload."""
        start_time = time.perf_counter()
        result = self.classifier.classify(payload)
        elapsed = time.perf_counter() - start_time

        self.metrics.record_classification_time(elapsed)
        self.metrics.record_result(result)

        elapsed_ms = elapsed * 1000
        if elapsed_ms > self.latency_warning_ms:
            logger.warning(
                f"Slow classification for {result.signature}: "
                f"{elapsed_ms:.1f}ms (limit {self.latency_warning_ms:.0f}ms)"
            )
        return result

    def process_batch(self, payloads: Iterable[Any]) -> List[ClassificationResult]:
        """Classify payloads in order; results line up with the input."""
        start_time = time.perf_counter()
        results = [self.process_transaction(payload) for payload in payloads]
        elapsed = time.perf_counter() - start_time

        self.metrics.record_batch(elapsed, len(results))
        erased = sum(1 for r in results if isinstance(r, Erasure))
        logger.info(
            f"Classified batch of {len(results)} in {elapsed * 1000:.1f}ms "
            f"({len(results) - erased} swaps, {erased} erased)"
        )
        return results

    def get_stats(self) -> dict:
        """Get processor statistics."""
        return self.metrics.get_summary()
