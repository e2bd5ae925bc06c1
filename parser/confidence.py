"""Confidence tiers from evidence agreement."""

from typing import Optional, Sequence

from models.events import ConfidenceTier
from models.transaction import EvidenceTier, NetDelta


class ConfidenceScorer:
    """
    Scores how well the evidence agreed on the two traded assets.

    Informational only: a low score never turns a swap into a rejection.
    """

    def score(self, sides: Sequence[NetDelta]) -> ConfidenceTier:
        # Transfer fallback anywhere caps the score
        if any(d.has(EvidenceTier.TRANSFER_ACTION) for d in sides):
            return ConfidenceTier.LOW

        if all(d.has(EvidenceTier.SWAP_ACTION) and self._swap_agrees(d) for d in sides):
            return ConfidenceTier.HIGH

        contradicted = any(d.has(EvidenceTier.SWAP_ACTION) and not self._swap_agrees(d) for d in sides)
        if len(sides) == 2 and all(d.has(EvidenceTier.BALANCE) for d in sides) and not contradicted:
            return ConfidenceTier.MEDIUM

        return ConfidenceTier.LOW

    @staticmethod
    def _swap_agrees(delta: NetDelta) -> Optional[bool]:
        """Whether the swap action points the same way as the chosen amount."""
        swap = delta.amount_for(EvidenceTier.SWAP_ACTION)
        if swap is None:
            return None
        return swap.sign == delta.signed_raw_amount.sign and swap.sign != 0
