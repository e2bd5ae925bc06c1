"""Parser module for swap classification."""

from .assets import NATIVE_ASSET, USDC_MINT, USDT_MINT, WSOL_MINT, CoreAssetRegistry
from .deltas import DUST_THRESHOLD, RENT_NOISE_THRESHOLD_LAMPORTS, Reconciliation, SignalReconciler
from .inference import ClassifierConfig, SwapClassifier, classify_transaction
from .normalizer import TransactionNormalizer

__all__ = [
    "ClassifierConfig",
    "CoreAssetRegistry",
    "DUST_THRESHOLD",
    "NATIVE_ASSET",
    "RENT_NOISE_THRESHOLD_LAMPORTS",
    "Reconciliation",
    "SignalReconciler",
    "SwapClassifier",
    "TransactionNormalizer",
    "USDC_MINT",
    "USDT_MINT",
    "WSOL_MINT",
    "classify_transaction",
]
