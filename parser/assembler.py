"""Builds the externally visible classification results."""

from typing import Any, Dict

from models.events import (
    ConfidenceTier,
    Erasure,
    LegRole,
    ParsedSwap,
    SplitSwapPair,
    SwapAmounts,
    SwapDirection,
)
from models.transaction import AssetRef, RawTransaction
from .roles import RoleAssignment
from .split import SplitPlan


class ResultAssembler:
    """The only place ParsedSwap and SplitSwapPair records are created."""

    def swap(
        self,
        tx: RawTransaction,
        assignment: RoleAssignment,
        amounts: SwapAmounts,
        confidence: ConfidenceTier,
        evidence_summary: Dict[str, Any],
    ) -> ParsedSwap:
        return self._record(
            tx,
            direction=assignment.direction,
            quote_asset=assignment.quote.asset,
            base_asset=assignment.base.asset,
            amounts=amounts,
            confidence=confidence,
            evidence_summary=evidence_summary,
            leg_role=LegRole.SINGLE,
        )

    def split(
        self,
        tx: RawTransaction,
        plan: SplitPlan,
        confidence: ConfidenceTier,
        evidence_summary: Dict[str, Any],
    ) -> SplitSwapPair:
        dispose_leg = self._record(
            tx,
            direction=SwapDirection.DISPOSE,
            quote_asset=plan.pivot,
            base_asset=plan.disposed.asset,
            amounts=plan.dispose_amounts,
            confidence=confidence,
            evidence_summary=evidence_summary,
            leg_role=LegRole.DISPOSE_LEG,
        )
        acquire_leg = self._record(
            tx,
            direction=SwapDirection.ACQUIRE,
            quote_asset=plan.pivot,
            base_asset=plan.acquired.asset,
            amounts=plan.acquire_amounts,
            confidence=confidence,
            evidence_summary=evidence_summary,
            leg_role=LegRole.ACQUIRE_LEG,
        )
        return SplitSwapPair(signature=tx.signature, dispose_leg=dispose_leg, acquire_leg=acquire_leg)

    @staticmethod
    def erasure(erasure: Erasure) -> Erasure:
        """Rejections pass through untouched."""
        return erasure

    @staticmethod
    def _record(
        tx: RawTransaction,
        direction: SwapDirection,
        quote_asset: AssetRef,
        base_asset: AssetRef,
        amounts: SwapAmounts,
        confidence: ConfidenceTier,
        evidence_summary: Dict[str, Any],
        leg_role: LegRole,
    ) -> ParsedSwap:
        return ParsedSwap(
            signature=tx.signature,
            swapper=tx.swapper,
            direction=direction,
            quote_asset=quote_asset,
            base_asset=base_asset,
            amounts=amounts,
            confidence=confidence,
            evidence_summary=dict(evidence_summary),
            leg_role=leg_role,
            timestamp=tx.timestamp,
            protocol=tx.protocol,
            swapper_method=tx.swapper_method.value,
        )
