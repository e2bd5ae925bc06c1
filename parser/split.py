"""Split-swap synthesis for trades between two non-core assets."""

import logging
from dataclasses import dataclass

from models.events import SwapAmounts
from models.transaction import AssetRef, NetDelta
from .amounts import AmountNormalizer
from .assets import CoreAssetRegistry
from .roles import RoleAssignment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SplitPlan:
    """Two legs routed through a synthesized pivot asset."""
    pivot: AssetRef
    disposed: NetDelta
    acquired: NetDelta
    dispose_amounts: SwapAmounts
    acquire_amounts: SwapAmounts


class SplitSwapSynthesizer:
    """
    Expresses a token-to-token trade as a disposal and an acquisition,
    both quoted against the registry's primary reference asset.

    The pivot is never observed on-chain, so the legs carry base amounts
    only; their quote-side figures are left empty.
    """

    def __init__(self, registry: CoreAssetRegistry, normalizer: AmountNormalizer):
        self.registry = registry
        self.normalizer = normalizer

    def synthesize(self, assignment: RoleAssignment) -> SplitPlan:
        pivot = self.registry.primary
        plan = SplitPlan(
            pivot=pivot,
            disposed=assignment.disposed,
            acquired=assignment.acquired,
            dispose_amounts=self.normalizer.normalize_leg(assignment.disposed),
            acquire_amounts=self.normalizer.normalize_leg(assignment.acquired),
        )
        logger.debug(
            f"Split {assignment.disposed.asset.symbol} -> {assignment.acquired.asset.symbol} "
            f"via {pivot.symbol}"
        )
        return plan
