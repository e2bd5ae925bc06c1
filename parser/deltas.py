"""Net delta reconciliation from balance changes, swap actions and transfers."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from models.amounts import RawAmount, ZERO_RAW
from models.transaction import (
    AssetRef,
    BalanceChange,
    EvidenceTier,
    NativeTransfer,
    NetDelta,
    RawTransaction,
    SwapAction,
    TokenTransfer,
)
from .assets import NATIVE_ASSET, WSOL_MINT, CoreAssetRegistry

logger = logging.getLogger(__name__)

RENT_NOISE_THRESHOLD_LAMPORTS = 10_000_000  # 0.01 SOL

# Movements at or below this decimal size are not traded sides
DUST_THRESHOLD = Decimal("0.000001")


@dataclass
class _TierLedger:
    """Running sum for one asset from one evidence tier."""
    asset: AssetRef
    total: RawAmount = ZERO_RAW
    inflow: bool = False
    outflow: bool = False

    def add(self, amount: RawAmount):
        self.total = self.total + amount
        if amount.value > 0:
            self.inflow = True
        elif amount.value < 0:
            self.outflow = True


@dataclass(frozen=True)
class Reconciliation:
    """Reconciler output: one NetDelta per asset plus bookkeeping for debugging."""
    deltas: Tuple[NetDelta, ...]
    rent_refunds_filtered: int = 0
    intermediate_assets: Tuple[str, ...] = ()
    swap_actions_used: int = 0
    transfer_actions_used: int = 0
    network_fee_removed: int = 0
    dust_assets: Tuple[str, ...] = ()

    def nonzero(self) -> List[NetDelta]:
        """Deltas that count as traded: non-zero and above the dust threshold."""
        return [d for d in self.deltas if not d.is_zero and d.asset.mint not in self.dust_assets]

    def summary(self) -> Dict[str, object]:
        """Plain-data view, safe for msgpack."""
        return {
            "assets": {
                d.asset.mint: {
                    "raw": d.signed_raw_amount.value,
                    "tiers": sorted(t.value for t in d.evidence_tiers),
                }
                for d in self.deltas
            },
            "rent_refunds_filtered": self.rent_refunds_filtered,
            "intermediate_assets": list(self.intermediate_assets),
            "swap_actions_used": self.swap_actions_used,
            "transfer_actions_used": self.transfer_actions_used,
            "network_fee_removed": self.network_fee_removed,
            "dust_assets": list(self.dust_assets),
        }


class SignalReconciler:
    """
    Builds the swapper's net delta table.

    Handles:
    - Balance changes owned by the swapper (BALANCE tier)
    - Swap actions for the swapper, filling assets the balance feed omits
    - Transfer actions as a last resort for assets with no other evidence
    - Rent refund filtering on the native asset
    - Network fee removal when native is not traded
    - Multi-hop collapse of routing assets
    - Dust marking, so negligible movements do not count as traded sides
    """

    def __init__(
        self,
        registry: CoreAssetRegistry,
        rent_noise_threshold_lamports: int = RENT_NOISE_THRESHOLD_LAMPORTS,
        dust_threshold: Decimal = DUST_THRESHOLD,
    ):
        self.registry = registry
        self.rent_noise_threshold_lamports = rent_noise_threshold_lamports
        self.dust_threshold = dust_threshold
        native = registry.get(WSOL_MINT)
        self.native_asset = native if native is not None else NATIVE_ASSET

    def reconcile(self, tx: RawTransaction) -> Reconciliation:
        swapper = tx.swapper

        # --- Step 1: balance changes owned by the swapper ---
        own_changes = [c for c in tx.balance_changes if c.owner == swapper]
        own_changes, rent_refunds = self.filter_rent_noise(own_changes)

        balance: Dict[str, _TierLedger] = {}
        for change in own_changes:
            self._ledger(balance, change.asset).add(change.raw_delta)

        # --- Step 2: swap actions for the swapper ---
        swaps = self.select_swap_actions(tx.swap_actions, swapper)
        swap: Dict[str, _TierLedger] = {}
        for action in swaps:
            self._ledger(swap, action.leg_in.asset).add(-action.leg_in.raw_amount)
            self._ledger(swap, action.leg_out.asset).add(action.leg_out.raw_amount)

        fee_removed = self._remove_network_fee(tx, balance, swap)

        intermediates = tuple(
            mint for mint, ledger in swap.items()
            if not ledger.total and ledger.inflow and ledger.outflow
            and (mint not in balance or not balance[mint].total)
        )

        # --- Step 3: transfers, only where steps 1-2 found nothing ---
        transfer: Dict[str, _TierLedger] = {}
        transfers_used = 0
        for action in tx.transfer_actions:
            asset, signed = self._transfer_leg(action, swapper)
            if asset is None or asset.mint in balance or asset.mint in swap:
                continue
            self._ledger(transfer, asset).add(signed)
            transfers_used += 1

        # --- Step 4: one NetDelta per mint ---
        deltas: List[NetDelta] = []
        seen: List[str] = []
        for source in (balance, swap, transfer):
            for mint in source:
                if mint not in seen:
                    seen.append(mint)

        for mint in seen:
            deltas.append(self._merge(balance.get(mint), swap.get(mint), transfer.get(mint)))

        if intermediates:
            logger.debug(f"{tx.signature}: collapsed routing assets {list(intermediates)}")

        dust = tuple(d.asset.mint for d in deltas if not d.is_zero and self.is_dust(d))
        if dust:
            logger.debug(f"{tx.signature}: ignoring dust movements {list(dust)}")

        return Reconciliation(
            deltas=tuple(deltas),
            rent_refunds_filtered=len(rent_refunds),
            intermediate_assets=intermediates,
            swap_actions_used=len(swaps),
            transfer_actions_used=transfers_used,
            network_fee_removed=fee_removed,
            dust_assets=dust,
        )

    def is_dust(self, delta: NetDelta) -> bool:
        """Whether a movement is too small to count as a traded side."""
        size = abs(delta.signed_raw_amount).to_decimal(delta.asset.decimals).value
        return size <= self.dust_threshold

    def _remove_network_fee(
        self,
        tx: RawTransaction,
        balance: Dict[str, _TierLedger],
        swap: Dict[str, _TierLedger],
    ) -> int:
        """
        Add the network fee back to the fee payer's native balance when the
        native asset is not a traded side, so a fee-only row nets to zero.

        Native is traded when swap actions net a native movement or when its
        balance delta is larger than the fee. Returns the lamports added back.
        """
        if tx.swapper != tx.fee_payer or not tx.fee.value > 0:
            return 0

        native = balance.get(self.native_asset.mint)
        routed = swap.get(self.native_asset.mint)
        if native is None or (routed is not None and routed.total):
            return 0
        if not -tx.fee.value <= native.total.value < 0:
            return 0

        native.total = native.total + tx.fee
        logger.debug(f"{tx.signature}: removed {tx.fee.value} lamport network fee from native delta")
        return tx.fee.value

    def filter_rent_noise(
        self,
        changes: List[BalanceChange],
    ) -> Tuple[List[BalanceChange], List[BalanceChange]]:
        """
        Split the swapper's balance changes into economic changes and rent refunds.

        A small positive native-asset change is a rent refund only when some
        other asset also moved; a native-only transaction is left alone.
        """
        has_other_activity = any(
            c.asset.mint != self.native_asset.mint and c.raw_delta for c in changes
        )
        if not has_other_activity:
            return list(changes), []

        economic: List[BalanceChange] = []
        refunds: List[BalanceChange] = []
        for change in changes:
            delta = change.raw_delta.value
            if (
                change.asset.mint == self.native_asset.mint
                and 0 < delta < self.rent_noise_threshold_lamports
            ):
                refunds.append(change)
            else:
                economic.append(change)
        return economic, refunds

    @staticmethod
    def select_swap_actions(actions: Tuple[SwapAction, ...], swapper: str) -> List[SwapAction]:
        """Swap actions hinted at the swapper, or the lone unhinted one."""
        selected = [a for a in actions if a.swapper_hint == swapper]
        if len(actions) == 1 and actions[0].swapper_hint is None:
            selected.append(actions[0])
        return selected

    def _transfer_leg(self, action, swapper: str) -> Tuple[Optional[AssetRef], RawAmount]:
        if isinstance(action, NativeTransfer):
            asset = self.native_asset
        elif isinstance(action, TokenTransfer):
            asset = action.asset
        else:
            return None, ZERO_RAW

        signed = ZERO_RAW
        if action.sender == swapper:
            signed = signed - action.raw_amount
        if action.receiver == swapper:
            signed = signed + action.raw_amount
        if action.sender != swapper and action.receiver != swapper:
            return None, ZERO_RAW
        return asset, signed

    @staticmethod
    def _ledger(ledgers: Dict[str, _TierLedger], asset: AssetRef) -> _TierLedger:
        ledger = ledgers.get(asset.mint)
        if ledger is None:
            ledger = _TierLedger(asset=asset)
            ledgers[asset.mint] = ledger
        return ledger

    @staticmethod
    def _merge(
        balance: Optional[_TierLedger],
        swap: Optional[_TierLedger],
        transfer: Optional[_TierLedger],
    ) -> NetDelta:
        """Strongest tier sets the amount; every tier present is recorded."""
        tiers = []
        tier_amounts = []
        ledgers = [
            (EvidenceTier.BALANCE, balance),
            (EvidenceTier.SWAP_ACTION, swap),
            (EvidenceTier.TRANSFER_ACTION, transfer),
        ]
        for tier, ledger in ledgers:
            if ledger is not None:
                tiers.append(tier)
                tier_amounts.append((tier, ledger.total))

        primary = next(ledger for _, ledger in ledgers if ledger is not None)
        present = [ledger for _, ledger in ledgers if ledger is not None]
        return NetDelta(
            asset=primary.asset,
            signed_raw_amount=primary.total,
            evidence_tiers=frozenset(tiers),
            tier_amounts=tuple(tier_amounts),
            saw_inflow=any(l.inflow for l in present),
            saw_outflow=any(l.outflow for l in present),
        )
