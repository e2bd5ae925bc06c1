"""Raw payload to RawTransaction mapping."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from models.amounts import RawAmount
from models.events import Erasure, ReasonCode
from models.transaction import (
    ActionRecord,
    AssetRef,
    BalanceChange,
    NativeTransfer,
    RawTransaction,
    SwapAction,
    SwapLeg,
    SwapperMethod,
    TokenTransfer,
)
from .assets import NATIVE_ASSET, CoreAssetRegistry

logger = logging.getLogger(__name__)

SWAP_KINDS = {"SWAP", "JUPITER_SWAP", "RAYDIUM_SWAP", "ORCA_SWAP"}
NATIVE_TRANSFER_KINDS = {"NATIVE_TRANSFER", "SOL_TRANSFER"}
TOKEN_TRANSFER_KINDS = {"TOKEN_TRANSFER"}

SUCCESS_STATUSES = {"success", "ok", "confirmed", "finalized"}

# Never picked as the swapper by owner analysis
SYSTEM_ACCOUNTS = {
    "11111111111111111111111111111111",
    "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
    "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb",
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL",
    "ComputeBudget111111111111111111111111111111",
    # AMM programs
    "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8",
    "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1",
    "9W959DqEETiGZocYWCQPaJ6sBmUzgfxXfqGeTEdp3aQP",
    "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc",
    "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4",
    "JUP4Fb2cqiRUcaTHdrPC8h2gNsA2ETXiPDD33WcGuJB",
    "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P",
}


def _first(d: Mapping[str, Any], *keys: str) -> Any:
    """Value of the first key present with a non-None value."""
    for key in keys:
        value = d.get(key)
        if value is not None:
            return value
    return None


def _to_int(value: Any) -> Optional[int]:
    """Parse a raw integer amount. Fractional values are rejected."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


class TransactionNormalizer:
    """
    Maps the indexer payload into a RawTransaction.

    Shape validation only: a missing signature or an unresolvable swapper
    is MALFORMED_INPUT, everything else degrades to empty collections and
    dropped rows.
    """

    def __init__(self, registry: CoreAssetRegistry, default_decimals: int = 9):
        self.registry = registry
        self.default_decimals = default_decimals

    def normalize(self, payload: Any) -> Union[RawTransaction, Erasure]:
        if not isinstance(payload, Mapping):
            return Erasure(
                signature="unknown",
                reason_code=ReasonCode.MALFORMED_INPUT,
                debug_context={"error": f"payload is {type(payload).__name__}, expected object"},
            )

        signature = payload.get("signature")
        if not isinstance(signature, str) or not signature.strip():
            return Erasure(
                signature="unknown",
                reason_code=ReasonCode.MALFORMED_INPUT,
                debug_context={"error": "missing signature"},
            )

        raw_changes = _as_list(_first(
            payload, "balanceChanges", "balance_changes", "token_balance_changes"
        ))
        raw_actions = _as_list(payload.get("actions"))

        known_assets = self._collect_assets(raw_changes)
        balance_changes = self._parse_balance_changes(signature, raw_changes, known_assets)
        actions = self._parse_actions(signature, raw_actions, known_assets)

        fee_payer = payload.get("fee_payer") or payload.get("feePayer") or ""
        signers = [s for s in _as_list(payload.get("signers")) if isinstance(s, str) and s]
        hint = _first(payload, "swapperHint", "swapper_hint")

        swapper, method = self._identify_swapper(hint, fee_payer, signers, balance_changes)
        if not swapper:
            return Erasure(
                signature=signature,
                reason_code=ReasonCode.MALFORMED_INPUT,
                debug_context={"error": "swapper could not be identified"},
            )

        status = payload.get("status")
        succeeded = status is None or str(status).lower() in SUCCESS_STATUSES
        if not succeeded and actions:
            logger.info(f"{signature}: status {status!r}, ignoring {len(actions)} actions")
            actions = []

        protocol = payload.get("protocol")
        if isinstance(protocol, Mapping):
            protocol = protocol.get("name")

        return RawTransaction(
            signature=signature,
            swapper=swapper,
            balance_changes=tuple(balance_changes),
            actions=tuple(actions),
            swapper_method=method,
            fee_payer=fee_payer if isinstance(fee_payer, str) else "",
            fee=RawAmount(max(_to_int(payload.get("fee")) or 0, 0)),
            timestamp=_to_int(payload.get("timestamp")) or 0,
            protocol=protocol if isinstance(protocol, str) and protocol else "unknown",
            succeeded=succeeded,
        )

    # --- Assets ---

    def _collect_assets(self, raw_changes: List[Any]) -> Dict[str, AssetRef]:
        """Mint -> AssetRef as described by the balance-change rows."""
        assets: Dict[str, AssetRef] = {}
        for row in raw_changes:
            if not isinstance(row, Mapping):
                continue
            mint = _first(row, "mint", "token_address")
            decimals = _to_int(row.get("decimals"))
            if not isinstance(mint, str) or not mint or mint in assets or decimals is None:
                continue
            if not 0 <= decimals <= 255:
                continue
            assets[mint] = AssetRef(mint, row.get("symbol") or "", decimals)
        return assets

    def _resolve_asset(
        self,
        mint: str,
        known_assets: Dict[str, AssetRef],
        decimals: Optional[int] = None,
        symbol: Optional[str] = None,
    ) -> AssetRef:
        """Balance changes first, then the registry, then action-supplied metadata."""
        if mint in known_assets:
            return known_assets[mint]
        core = self.registry.get(mint)
        if core is not None:
            return core
        if mint == NATIVE_ASSET.mint:
            return NATIVE_ASSET
        if decimals is None or not 0 <= decimals <= 255:
            logger.warning(f"No decimals for {mint}, assuming {self.default_decimals}")
            decimals = self.default_decimals
        asset = AssetRef(mint, symbol or "", decimals)
        known_assets[mint] = asset
        return asset

    # --- Balance changes ---

    def _parse_balance_changes(
        self,
        signature: str,
        raw_changes: List[Any],
        known_assets: Dict[str, AssetRef],
    ) -> List[BalanceChange]:
        changes: List[BalanceChange] = []
        for row in raw_changes:
            change = self._parse_balance_change(row, known_assets)
            if change is None:
                logger.warning(f"{signature}: dropping malformed balance change {row!r}")
                continue
            changes.append(change)
        return changes

    def _parse_balance_change(
        self,
        row: Any,
        known_assets: Dict[str, AssetRef],
    ) -> Optional[BalanceChange]:
        if not isinstance(row, Mapping):
            return None

        mint = _first(row, "mint", "token_address")
        owner = row.get("owner")
        if not isinstance(mint, str) or not mint or not isinstance(owner, str) or not owner:
            return None

        pre = _to_int(_first(row, "rawPreBalance", "raw_pre_balance", "pre_balance"))
        post = _to_int(_first(row, "rawPostBalance", "raw_post_balance", "post_balance"))
        if pre is None or post is None:
            # Some feeds only report the change itself
            change = _to_int(_first(row, "rawChange", "change_amount"))
            if change is None:
                return None
            pre, post = 0, change

        account = _first(row, "account", "address")
        return BalanceChange(
            account=account if isinstance(account, str) and account else owner,
            owner=owner,
            asset=self._resolve_asset(mint, known_assets),
            raw_pre_balance=pre,
            raw_post_balance=post,
        )

    # --- Actions ---

    def _parse_actions(
        self,
        signature: str,
        raw_actions: List[Any],
        known_assets: Dict[str, AssetRef],
    ) -> List[ActionRecord]:
        actions: List[ActionRecord] = []
        for raw in raw_actions:
            if not isinstance(raw, Mapping):
                continue
            kind = str(_first(raw, "kind", "type") or "").upper()
            info = raw.get("info") if isinstance(raw.get("info"), Mapping) else raw

            if kind in SWAP_KINDS:
                action = self._parse_swap(info, known_assets)
            elif kind in NATIVE_TRANSFER_KINDS:
                action = self._parse_native_transfer(info)
            elif kind in TOKEN_TRANSFER_KINDS:
                action = self._parse_token_transfer(info, known_assets)
            else:
                logger.debug(f"{signature}: ignoring action kind {kind!r}")
                continue

            if action is None:
                logger.warning(f"{signature}: dropping malformed {kind} action")
                continue
            actions.append(action)
        return actions

    def _parse_leg(self, leg: Any, known_assets: Dict[str, AssetRef]) -> Optional[SwapLeg]:
        if not isinstance(leg, Mapping):
            return None
        mint = _first(leg, "mint", "token_address")
        amount = _to_int(_first(leg, "rawAmount", "raw_amount", "amount_raw"))
        if not isinstance(mint, str) or not mint or amount is None:
            return None
        asset = self._resolve_asset(
            mint, known_assets, _to_int(leg.get("decimals")), leg.get("symbol")
        )
        return SwapLeg(asset=asset, raw_amount=RawAmount(abs(amount)))

    def _parse_swap(self, info: Mapping[str, Any], known_assets: Dict[str, AssetRef]) -> Optional[SwapAction]:
        swapped = info.get("tokens_swapped") if isinstance(info.get("tokens_swapped"), Mapping) else {}
        leg_in = self._parse_leg(_first(info, "legIn", "leg_in") or swapped.get("in"), known_assets)
        leg_out = self._parse_leg(_first(info, "legOut", "leg_out") or swapped.get("out"), known_assets)
        if leg_in is None or leg_out is None:
            return None
        hint = _first(info, "swapperHint", "swapper_hint", "swapper")
        return SwapAction(
            leg_in=leg_in,
            leg_out=leg_out,
            swapper_hint=hint if isinstance(hint, str) and hint else None,
        )

    def _parse_native_transfer(self, info: Mapping[str, Any]) -> Optional[NativeTransfer]:
        sender, receiver = info.get("sender"), info.get("receiver")
        amount = _to_int(_first(info, "rawAmount", "raw_amount", "amount_raw"))
        if not isinstance(sender, str) or not isinstance(receiver, str) or amount is None:
            return None
        return NativeTransfer(sender=sender, receiver=receiver, raw_amount=RawAmount(abs(amount)))

    def _parse_token_transfer(
        self,
        info: Mapping[str, Any],
        known_assets: Dict[str, AssetRef],
    ) -> Optional[TokenTransfer]:
        sender, receiver = info.get("sender"), info.get("receiver")
        mint = _first(info, "mint", "token_address")
        amount = _to_int(_first(info, "rawAmount", "raw_amount", "amount_raw"))
        if (
            not isinstance(sender, str)
            or not isinstance(receiver, str)
            or not isinstance(mint, str)
            or not mint
            or amount is None
        ):
            return None
        asset = self._resolve_asset(
            mint, known_assets, _to_int(info.get("decimals")), info.get("symbol")
        )
        return TokenTransfer(
            sender=sender, receiver=receiver, asset=asset, raw_amount=RawAmount(abs(amount))
        )

    # --- Swapper ---

    def _identify_swapper(
        self,
        hint: Any,
        fee_payer: Any,
        signers: List[str],
        balance_changes: List[BalanceChange],
    ) -> Tuple[Optional[str], SwapperMethod]:
        """
        Escalation: explicit hint, fee payer, primary signer, then owner analysis.

        Owner analysis picks the non-system owner with the largest summed
        absolute delta; ties go to the single owner that touched a non-core
        asset, otherwise it gives up.
        """
        if isinstance(hint, str) and hint:
            return hint, SwapperMethod.HINT
        if isinstance(fee_payer, str) and fee_payer:
            return fee_payer, SwapperMethod.FEE_PAYER
        if signers:
            return signers[0], SwapperMethod.SIGNER

        totals: Dict[str, int] = {}
        touched_non_core: Dict[str, bool] = {}
        for change in balance_changes:
            delta = change.raw_delta.value
            if delta == 0 or change.owner in SYSTEM_ACCOUNTS:
                continue
            totals[change.owner] = totals.get(change.owner, 0) + abs(delta)
            if not self.registry.is_core(change.asset.mint):
                touched_non_core[change.owner] = True

        if not totals:
            return None, SwapperMethod.OWNER_ANALYSIS

        top = max(totals.values())
        leaders = [owner for owner, total in totals.items() if total == top]
        if len(leaders) == 1:
            return leaders[0], SwapperMethod.OWNER_ANALYSIS

        non_core_leaders = [owner for owner in leaders if touched_non_core.get(owner)]
        if len(non_core_leaders) == 1:
            return non_core_leaders[0], SwapperMethod.OWNER_ANALYSIS

        logger.debug(f"Owner analysis tie between {len(leaders)} owners")
        return None, SwapperMethod.OWNER_ANALYSIS
