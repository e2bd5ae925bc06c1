"""Fast rejection of transfers, dust and no-op transactions."""

import logging
from decimal import Decimal
from typing import List, Optional

from models.events import Erasure, ReasonCode
from models.transaction import EvidenceTier, NetDelta
from .assets import CoreAssetRegistry
from .deltas import Reconciliation

logger = logging.getLogger(__name__)


class NoiseGate:
    """
    Rejects anything that is not a two-sided exchange.

    Checks run in order: transfer-only evidence, same-asset no-op,
    single-sided change, then the minimum economic size on the core side.
    Returns None when the transaction passes.
    """

    def __init__(self, registry: CoreAssetRegistry):
        self.registry = registry

    def check(self, signature: str, reconciliation: Reconciliation) -> Optional[Erasure]:
        deltas = list(reconciliation.deltas)

        if self._only_transfers(deltas):
            return self._erase(signature, ReasonCode.ONLY_TRANSFER_ACTIONS, reconciliation)

        candidates = [d for d in deltas if not d.is_zero or (d.saw_inflow and d.saw_outflow)]
        if len(candidates) == 1 and candidates[0].is_zero:
            return self._erase(
                signature,
                ReasonCode.SAME_ASSET_NO_OP,
                reconciliation,
                mint=candidates[0].asset.mint,
            )

        nonzero = reconciliation.nonzero()
        has_out = any(d.signed_raw_amount.value < 0 for d in nonzero)
        has_in = any(d.signed_raw_amount.value > 0 for d in nonzero)
        if len(nonzero) < 2 or not (has_out and has_in):
            return self._erase(signature, ReasonCode.SINGLE_SIDED_CHANGE, reconciliation)

        if len(nonzero) == 2:
            return self._check_minimum_value(signature, nonzero, reconciliation)

        # More than two assets is for the role assigner to reject
        return None

    def check_split(
        self,
        signature: str,
        base_amounts: List[Decimal],
        min_leg_amount: Decimal,
        reconciliation: Reconciliation,
    ) -> Optional[Erasure]:
        """Size check for two non-core assets, run on the synthesized legs."""
        smallest = min(base_amounts)
        if smallest < min_leg_amount:
            return self._erase(
                signature,
                ReasonCode.BELOW_MINIMUM_VALUE,
                reconciliation,
                smallest_leg_amount=str(smallest),
                floor=str(min_leg_amount),
            )
        return None

    @staticmethod
    def _only_transfers(deltas: List[NetDelta]) -> bool:
        if not deltas:
            return False
        for d in deltas:
            if d.has(EvidenceTier.BALANCE) or d.has(EvidenceTier.SWAP_ACTION):
                return False
        return True

    def _check_minimum_value(
        self,
        signature: str,
        pair: List[NetDelta],
        reconciliation: Reconciliation,
    ) -> Optional[Erasure]:
        core = [d for d in pair if self.registry.is_core(d.asset.mint)]
        if not core:
            # Sized after split synthesis
            return None

        quote = min(core, key=lambda d: self.registry.priority(d.asset.mint))
        size = abs(quote.signed_raw_amount).to_decimal(quote.asset.decimals).value
        floor = self.registry.floor_for(quote.asset.mint)
        if size < floor:
            return self._erase(
                signature,
                ReasonCode.BELOW_MINIMUM_VALUE,
                reconciliation,
                core_asset=quote.asset.mint,
                estimated_size=str(size),
                floor=str(floor),
            )
        return None

    @staticmethod
    def _erase(
        signature: str,
        reason: ReasonCode,
        reconciliation: Reconciliation,
        **context,
    ) -> Erasure:
        logger.debug(f"{signature}: gate rejected with {reason.value}")
        debug_context = reconciliation.summary()
        debug_context.update(context)
        return Erasure(signature=signature, reason_code=reason, debug_context=debug_context)
