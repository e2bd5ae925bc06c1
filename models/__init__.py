"""Data models for the swap classifier."""

from .amounts import RawAmount, DecimalAmount
from .transaction import (
    AssetRef,
    BalanceChange,
    EvidenceTier,
    NativeTransfer,
    NetDelta,
    RawTransaction,
    SwapAction,
    SwapLeg,
    SwapperMethod,
    TokenTransfer,
)
from .events import (
    ClassificationResult,
    ConfidenceTier,
    Erasure,
    LegRole,
    ParsedSwap,
    ReasonCode,
    SplitSwapPair,
    SwapAmounts,
    SwapDirection,
)

__all__ = [
    "RawAmount",
    "DecimalAmount",
    "AssetRef",
    "BalanceChange",
    "EvidenceTier",
    "NativeTransfer",
    "NetDelta",
    "RawTransaction",
    "SwapAction",
    "SwapLeg",
    "SwapperMethod",
    "TokenTransfer",
    "ClassificationResult",
    "ConfidenceTier",
    "Erasure",
    "LegRole",
    "ParsedSwap",
    "ReasonCode",
    "SplitSwapPair",
    "SwapAmounts",
    "SwapDirection",
]
