"""Swap classification pipeline."""

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, Optional

from models.events import ClassificationResult, Erasure
from models.transaction import RawTransaction
from .amounts import AmountNormalizer
from .assembler import ResultAssembler
from .assets import CoreAssetRegistry
from .confidence import ConfidenceScorer
from .deltas import DUST_THRESHOLD, RENT_NOISE_THRESHOLD_LAMPORTS, Reconciliation, SignalReconciler
from .gate import NoiseGate
from .normalizer import TransactionNormalizer
from .roles import RoleAssigner, RoleAssignment
from .split import SplitSwapSynthesizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassifierConfig:
    """Immutable configuration injected into the classifier."""
    registry: CoreAssetRegistry = field(default_factory=CoreAssetRegistry.default)
    min_split_leg_amount: Decimal = Decimal("0.000001")
    rent_noise_threshold_lamports: int = RENT_NOISE_THRESHOLD_LAMPORTS
    default_decimals: int = 9
    dust_threshold: Decimal = DUST_THRESHOLD


class SwapClassifier:
    """
    Classifies one transaction payload into a swap, a split swap pair or
    a typed rejection.

    Pipeline: normalize -> reconcile -> gate -> assign roles ->
    normalize amounts (or synthesize split legs) -> score -> assemble.

    Every stage is a pure function of its inputs. The classifier holds only
    its injected configuration, so one instance can be shared freely
    across workers.
    """

    def __init__(self, config: Optional[ClassifierConfig] = None):
        self.config = config or ClassifierConfig()
        registry = self.config.registry

        self.normalizer = TransactionNormalizer(registry, self.config.default_decimals)
        self.reconciler = SignalReconciler(
            registry,
            self.config.rent_noise_threshold_lamports,
            self.config.dust_threshold,
        )
        self.gate = NoiseGate(registry)
        self.role_assigner = RoleAssigner(registry)
        self.amount_normalizer = AmountNormalizer(self.reconciler.native_asset.mint)
        self.split_synthesizer = SplitSwapSynthesizer(registry, self.amount_normalizer)
        self.scorer = ConfidenceScorer()
        self.assembler = ResultAssembler()

    @classmethod
    def from_settings(cls, settings) -> "SwapClassifier":
        """Build from a ``config.settings.Settings`` instance."""
        return cls(settings.to_classifier_config())

    def classify(self, payload: Any) -> ClassificationResult:
        tx = self.normalizer.normalize(payload)
        if isinstance(tx, Erasure):
            logger.info(f"{tx.signature}: erased ({tx.reason_code.value})")
            return self.assembler.erasure(tx)

        reconciliation = self.reconciler.reconcile(tx)

        rejected = self.gate.check(tx.signature, reconciliation)
        if rejected is not None:
            return self._erase(tx, rejected)

        assignment = self.role_assigner.assign(tx.signature, reconciliation.nonzero())
        if isinstance(assignment, Erasure):
            return self._erase(tx, assignment)

        summary = self._evidence_summary(tx, reconciliation)

        if assignment.split_required:
            return self._classify_split(tx, assignment, reconciliation, summary)

        amounts = self.amount_normalizer.normalize(assignment, tx)
        confidence = self.scorer.score([assignment.quote, assignment.base])
        swap = self.assembler.swap(tx, assignment, amounts, confidence, summary)
        logger.debug(
            f"{tx.signature}: {swap.direction.value} {swap.base_asset.symbol}/"
            f"{swap.quote_asset.symbol} confidence={confidence.value}"
        )
        return swap

    def _classify_split(
        self,
        tx: RawTransaction,
        assignment: RoleAssignment,
        reconciliation: Reconciliation,
        summary: Dict[str, Any],
    ) -> ClassificationResult:
        plan = self.split_synthesizer.synthesize(assignment)

        rejected = self.gate.check_split(
            tx.signature,
            [plan.dispose_amounts.base_amount, plan.acquire_amounts.base_amount],
            self.config.min_split_leg_amount,
            reconciliation,
        )
        if rejected is not None:
            return self._erase(tx, rejected)

        confidence = self.scorer.score([assignment.disposed, assignment.acquired])
        summary["split_pivot"] = plan.pivot.mint
        pair = self.assembler.split(tx, plan, confidence, summary)
        logger.debug(
            f"{tx.signature}: split {plan.disposed.asset.symbol} -> "
            f"{plan.acquired.asset.symbol} confidence={confidence.value}"
        )
        return pair

    def _erase(self, tx: RawTransaction, erasure: Erasure) -> Erasure:
        if not tx.succeeded:
            context = {**erasure.debug_context, "failed_transaction": True}
            erasure = replace(erasure, debug_context=context)
        logger.info(f"{tx.signature}: erased ({erasure.reason_code.value})")
        return self.assembler.erasure(erasure)

    @staticmethod
    def _evidence_summary(tx: RawTransaction, reconciliation: Reconciliation) -> Dict[str, Any]:
        summary = reconciliation.summary()
        summary["swapper_method"] = tx.swapper_method.value
        return summary


def classify_transaction(
    payload: Any,
    classifier: Optional[SwapClassifier] = None,
) -> ClassificationResult:
    """Classify a single payload with a default-configured classifier."""
    return (classifier or SwapClassifier()).classify(payload)
