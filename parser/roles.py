"""Quote/base role assignment."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from models.events import Erasure, ReasonCode, SwapDirection
from models.transaction import NetDelta
from .assets import CoreAssetRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoleAssignment:
    """
    Roles for a two-asset trade.

    For a direct swap ``quote``, ``base`` and ``direction`` are set. When
    neither asset is core, ``split_required`` is set instead and the pair
    is handed to the split synthesizer as ``disposed``/``acquired``.
    """
    disposed: NetDelta
    acquired: NetDelta
    quote: Optional[NetDelta] = None
    base: Optional[NetDelta] = None
    direction: Optional[SwapDirection] = None
    split_required: bool = False


class RoleAssigner:
    """
    Decides which asset is quote and which is base.

    - One core asset: it is the quote, whatever its sign.
    - Two core assets: the one earlier in the registry is the quote.
    - No core asset: split required.
    Direction follows the sign of the base delta.
    """

    def __init__(self, registry: CoreAssetRegistry):
        self.registry = registry

    def assign(self, signature: str, deltas: List[NetDelta]) -> Union[RoleAssignment, Erasure]:
        active = [d for d in deltas if not d.is_zero]
        if len(active) != 2:
            logger.debug(f"{signature}: {len(active)} active assets, expected 2")
            return Erasure(
                signature=signature,
                reason_code=ReasonCode.INVALID_ASSET_COUNT,
                debug_context={"asset_count": len(active), "mints": [d.asset.mint for d in active]},
            )

        first, second = active
        if first.signed_raw_amount.sign == second.signed_raw_amount.sign:
            return Erasure(
                signature=signature,
                reason_code=ReasonCode.SINGLE_SIDED_CHANGE,
                debug_context={"mints": [first.asset.mint, second.asset.mint]},
            )

        disposed, acquired = (first, second) if first.signed_raw_amount.value < 0 else (second, first)

        first_priority = self.registry.priority(first.asset.mint)
        second_priority = self.registry.priority(second.asset.mint)

        if first_priority is None and second_priority is None:
            logger.debug(f"{signature}: no core asset, split required")
            return RoleAssignment(disposed=disposed, acquired=acquired, split_required=True)

        if second_priority is None or (first_priority is not None and first_priority < second_priority):
            quote, base = first, second
        else:
            quote, base = second, first

        direction = SwapDirection.ACQUIRE if base.signed_raw_amount.value > 0 else SwapDirection.DISPOSE
        return RoleAssignment(
            disposed=disposed,
            acquired=acquired,
            quote=quote,
            base=base,
            direction=direction,
        )
