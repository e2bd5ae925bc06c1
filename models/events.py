"""Classification result models."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

import msgpack

from .transaction import AssetRef


class SwapDirection(str, Enum):
    """Swap direction from the swapper's point of view on the base asset."""
    ACQUIRE = "acquire"
    DISPOSE = "dispose"


class ConfidenceTier(str, Enum):
    """How well the evidence sources agreed."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class LegRole(str, Enum):
    """Record role, part of the persistence key."""
    SINGLE = "single"
    DISPOSE_LEG = "dispose_leg"
    ACQUIRE_LEG = "acquire_leg"


class ReasonCode(str, Enum):
    """Closed set of rejection reasons."""
    MALFORMED_INPUT = "MALFORMED_INPUT"
    ONLY_TRANSFER_ACTIONS = "ONLY_TRANSFER_ACTIONS"
    SINGLE_SIDED_CHANGE = "SINGLE_SIDED_CHANGE"
    SAME_ASSET_NO_OP = "SAME_ASSET_NO_OP"
    BELOW_MINIMUM_VALUE = "BELOW_MINIMUM_VALUE"
    INVALID_ASSET_COUNT = "INVALID_ASSET_COUNT"


def _dec(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def _undec(value: Optional[str]) -> Optional[Decimal]:
    return None if value is None else Decimal(value)


@dataclass(frozen=True)
class SwapAmounts:
    """
    Decimal amounts of a swap.

    ``quote_amount`` is the observed wallet-level quote delta. When the
    swapper paid the network fee out of a native quote, ``fee_amount`` is
    that fee and ``gross_quote_amount``/``net_quote_amount`` bracket it, so
    ``quote_amount`` equals the gross figure on ACQUIRE and the net figure
    on DISPOSE. All quote fields are None on synthesized split legs.
    """
    base_amount: Decimal
    quote_amount: Optional[Decimal] = None
    gross_quote_amount: Optional[Decimal] = None
    net_quote_amount: Optional[Decimal] = None
    fee_amount: Optional[Decimal] = None

    def to_dict(self) -> dict:
        return {
            "base_amount": _dec(self.base_amount),
            "quote_amount": _dec(self.quote_amount),
            "gross_quote_amount": _dec(self.gross_quote_amount),
            "net_quote_amount": _dec(self.net_quote_amount),
            "fee_amount": _dec(self.fee_amount),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "SwapAmounts":
        return cls(
            base_amount=Decimal(d["base_amount"]),
            quote_amount=_undec(d.get("quote_amount")),
            gross_quote_amount=_undec(d.get("gross_quote_amount")),
            net_quote_amount=_undec(d.get("net_quote_amount")),
            fee_amount=_undec(d.get("fee_amount")),
        )


@dataclass(frozen=True)
class ParsedSwap:
    """A classified swap, or one leg of a split swap."""
    signature: str
    swapper: str
    direction: SwapDirection
    quote_asset: AssetRef
    base_asset: AssetRef
    amounts: SwapAmounts
    confidence: ConfidenceTier
    evidence_summary: Dict[str, Any] = field(default_factory=dict, compare=False)

    leg_role: LegRole = LegRole.SINGLE
    timestamp: int = 0
    protocol: str = "unknown"
    swapper_method: str = "hint"

    @property
    def storage_key(self) -> Tuple[str, str]:
        """Uniqueness key for persistence."""
        return (self.signature, self.leg_role.value)

    @property
    def base_amount(self) -> Decimal:
        return self.amounts.base_amount

    @property
    def quote_amount(self) -> Optional[Decimal]:
        return self.amounts.quote_amount

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "signature": self.signature,
            "swapper": self.swapper,
            "direction": self.direction.value,
            "quote_asset": self.quote_asset.to_dict(),
            "base_asset": self.base_asset.to_dict(),
            "amounts": self.amounts.to_dict(),
            "confidence": self.confidence.value,
            "evidence_summary": self.evidence_summary,
            "leg_role": self.leg_role.value,
            "timestamp": self.timestamp,
            "protocol": self.protocol,
            "swapper_method": self.swapper_method,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ParsedSwap":
        """Create from dictionary."""
        return cls(
            signature=d["signature"],
            swapper=d["swapper"],
            direction=SwapDirection(d["direction"]),
            quote_asset=AssetRef.from_dict(d["quote_asset"]),
            base_asset=AssetRef.from_dict(d["base_asset"]),
            amounts=SwapAmounts.from_dict(d["amounts"]),
            confidence=ConfidenceTier(d["confidence"]),
            evidence_summary=d.get("evidence_summary", {}),
            leg_role=LegRole(d.get("leg_role", LegRole.SINGLE.value)),
            timestamp=d.get("timestamp", 0),
            protocol=d.get("protocol", "unknown"),
            swapper_method=d.get("swapper_method", "hint"),
        )

    def to_msgpack(self) -> bytes:
        """Serialize to msgpack."""
        return msgpack.packb(self.to_dict())

    @classmethod
    def from_msgpack(cls, data: bytes) -> "ParsedSwap":
        """Deserialize from msgpack."""
        return cls.from_dict(msgpack.unpackb(data))


@dataclass(frozen=True)
class SplitSwapPair:
    """
    A trade between two non-core assets expressed as two legs.

    Both legs share the signature and quote against the same synthesized
    pivot asset; ``leg_role`` tells them apart.
    """
    signature: str
    dispose_leg: ParsedSwap
    acquire_leg: ParsedSwap

    @property
    def pivot_asset(self) -> AssetRef:
        return self.dispose_leg.quote_asset

    @property
    def legs(self) -> Tuple[ParsedSwap, ParsedSwap]:
        return (self.dispose_leg, self.acquire_leg)

    def to_dict(self) -> dict:
        return {
            "signature": self.signature,
            "dispose_leg": self.dispose_leg.to_dict(),
            "acquire_leg": self.acquire_leg.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "SplitSwapPair":
        return cls(
            signature=d["signature"],
            dispose_leg=ParsedSwap.from_dict(d["dispose_leg"]),
            acquire_leg=ParsedSwap.from_dict(d["acquire_leg"]),
        )

    def to_msgpack(self) -> bytes:
        return msgpack.packb(self.to_dict())

    @classmethod
    def from_msgpack(cls, data: bytes) -> "SplitSwapPair":
        return cls.from_dict(msgpack.unpackb(data))


@dataclass(frozen=True)
class Erasure:
    """Typed rejection. Carries no partial swap data."""
    signature: str
    reason_code: ReasonCode
    debug_context: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict:
        return {
            "signature": self.signature,
            "reason_code": self.reason_code.value,
            "debug_context": self.debug_context,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Erasure":
        return cls(
            signature=d["signature"],
            reason_code=ReasonCode(d["reason_code"]),
            debug_context=d.get("debug_context", {}),
        )

    def to_msgpack(self) -> bytes:
        return msgpack.packb(self.to_dict())

    @classmethod
    def from_msgpack(cls, data: bytes) -> "Erasure":
        return cls.from_dict(msgpack.unpackb(data))


ClassificationResult = Union[ParsedSwap, SplitSwapPair, Erasure]
