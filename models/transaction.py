"""Internal transaction representation built by the normalizer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union

from .amounts import RawAmount


@dataclass(frozen=True)
class AssetRef:
    """
    Asset identity.

    Two refs are the same asset iff their mints match; symbol and decimals
    are descriptive and do not take part in equality.
    """
    mint: str
    symbol: str = field(default="", compare=False)
    decimals: int = field(default=9, compare=False)

    def __post_init__(self):
        if not self.mint:
            raise ValueError("AssetRef requires a mint")
        if not 0 <= self.decimals <= 255:
            raise ValueError(f"decimals out of range for {self.mint}: {self.decimals}")
        if not self.symbol:
            object.__setattr__(self, "symbol", self.mint[:6])

    def to_dict(self) -> dict:
        return {"mint": self.mint, "symbol": self.symbol, "decimals": self.decimals}

    @classmethod
    def from_dict(cls, d: dict) -> "AssetRef":
        return cls(mint=d["mint"], symbol=d.get("symbol", ""), decimals=d.get("decimals", 9))


class EvidenceTier(str, Enum):
    """Source of evidence for an asset movement, strongest first."""
    BALANCE = "balance"
    SWAP_ACTION = "swap_action"
    TRANSFER_ACTION = "transfer_action"


class SwapperMethod(str, Enum):
    """How the swapper wallet was identified."""
    HINT = "hint"
    FEE_PAYER = "fee_payer"
    SIGNER = "signer"
    OWNER_ANALYSIS = "owner_analysis"


@dataclass(frozen=True)
class BalanceChange:
    """Pre/post holdings of one account for one asset."""
    account: str
    owner: str
    asset: AssetRef
    raw_pre_balance: int
    raw_post_balance: int

    @property
    def raw_delta(self) -> RawAmount:
        return RawAmount(self.raw_post_balance - self.raw_pre_balance)


@dataclass(frozen=True)
class SwapLeg:
    """One side of a protocol-level swap marker."""
    asset: AssetRef
    raw_amount: RawAmount


@dataclass(frozen=True)
class SwapAction:
    """Protocol swap marker: ``leg_in`` left the swapper, ``leg_out`` reached it."""
    leg_in: SwapLeg
    leg_out: SwapLeg
    swapper_hint: Optional[str] = None


@dataclass(frozen=True)
class NativeTransfer:
    """Plain movement of the native coin."""
    sender: str
    receiver: str
    raw_amount: RawAmount


@dataclass(frozen=True)
class TokenTransfer:
    """Plain movement of a token."""
    sender: str
    receiver: str
    asset: AssetRef
    raw_amount: RawAmount


ActionRecord = Union[SwapAction, NativeTransfer, TokenTransfer]


@dataclass(frozen=True)
class RawTransaction:
    """One transaction, shape-validated, ready for reconciliation."""
    signature: str
    swapper: str
    balance_changes: Tuple[BalanceChange, ...] = ()
    actions: Tuple[ActionRecord, ...] = ()

    swapper_method: SwapperMethod = SwapperMethod.HINT
    fee_payer: str = ""
    fee: RawAmount = RawAmount(0)
    timestamp: int = 0
    protocol: str = "unknown"
    succeeded: bool = True

    @property
    def swap_actions(self) -> Tuple[SwapAction, ...]:
        return tuple(a for a in self.actions if isinstance(a, SwapAction))

    @property
    def transfer_actions(self) -> Tuple[Union[NativeTransfer, TokenTransfer], ...]:
        return tuple(a for a in self.actions if isinstance(a, (NativeTransfer, TokenTransfer)))


@dataclass(frozen=True)
class NetDelta:
    """
    Net movement of one asset for the swapper.

    ``signed_raw_amount`` comes from the strongest tier present;
    ``tier_amounts`` keeps what each tier reported so agreement between
    sources can be judged later.
    """
    asset: AssetRef
    signed_raw_amount: RawAmount
    evidence_tiers: FrozenSet[EvidenceTier]
    tier_amounts: Tuple[Tuple[EvidenceTier, RawAmount], ...] = ()
    saw_inflow: bool = False
    saw_outflow: bool = False

    @property
    def is_zero(self) -> bool:
        return not self.signed_raw_amount

    def amount_for(self, tier: EvidenceTier) -> Optional[RawAmount]:
        for t, amount in self.tier_amounts:
            if t == tier:
                return amount
        return None

    def has(self, tier: EvidenceTier) -> bool:
        return tier in self.evidence_tiers
