"""Raw to decimal amount normalization."""

import logging
from typing import Optional, Tuple

from models.amounts import DecimalAmount, RawAmount
from models.events import SwapAmounts, SwapDirection
from models.transaction import EvidenceTier, NetDelta, RawTransaction
from .assets import WSOL_MINT
from .roles import RoleAssignment

logger = logging.getLogger(__name__)


class AmountNormalizer:
    """
    Converts role-assigned raw deltas to decimal amounts.

    Every emitted figure goes through ``RawAmount.to_decimal`` exactly once.
    Fee-adjusted figures are computed in raw units first and converted
    afterwards, never by rescaling a decimal.
    """

    def __init__(self, native_mint: str = WSOL_MINT):
        self.native_mint = native_mint

    @staticmethod
    def to_decimal(delta: NetDelta) -> DecimalAmount:
        """Unsigned decimal size of a net delta."""
        return abs(delta.signed_raw_amount).to_decimal(delta.asset.decimals)

    def normalize(self, assignment: RoleAssignment, tx: RawTransaction) -> SwapAmounts:
        """
        Amounts for a direct swap.

        ``quote_amount`` is the observed quote delta. When the swapper paid
        the network fee out of a balance-derived native quote, gross and net
        figures are added:
        - ACQUIRE: gross = total wallet cost, net = swap input
        - DISPOSE: gross = swap output, net = wallet received
        """
        quote, base = assignment.quote, assignment.base
        base_amount = self.to_decimal(base).value
        quote_amount = self.to_decimal(quote).value

        gross, net, fee_amount = None, None, None
        split = self._fee_split(quote, assignment.direction, tx)
        if split is not None:
            gross_raw, net_raw = split
            gross = gross_raw.to_decimal(quote.asset.decimals).value
            net = net_raw.to_decimal(quote.asset.decimals).value
            fee_amount = tx.fee.to_decimal(quote.asset.decimals).value

        return SwapAmounts(
            base_amount=base_amount,
            quote_amount=quote_amount,
            gross_quote_amount=gross,
            net_quote_amount=net,
            fee_amount=fee_amount,
        )

    def normalize_leg(self, delta: NetDelta) -> SwapAmounts:
        """Amounts for a synthesized split leg: base only, quote side omitted."""
        return SwapAmounts(base_amount=self.to_decimal(delta).value)

    def _fee_split(
        self,
        quote: NetDelta,
        direction: SwapDirection,
        tx: RawTransaction,
    ) -> Optional[Tuple[RawAmount, RawAmount]]:
        """(gross, net) raw quote figures, or None when fees do not apply."""
        if (
            quote.asset.mint != self.native_mint
            or not tx.fee.value > 0
            or tx.swapper != tx.fee_payer
        ):
            return None

        observed = quote.amount_for(EvidenceTier.BALANCE)
        if observed is None or not observed:
            return None

        # Balance deltas include the fee; adding it back gives the pool-side figure
        swap_side = observed + tx.fee
        if direction == SwapDirection.ACQUIRE:
            if swap_side.value >= 0:
                logger.debug(f"{tx.signature}: fee exceeds quote spend, skipping gross/net")
                return None
            return abs(observed), abs(swap_side)

        if observed.value <= 0:
            return None
        return swap_side, observed
