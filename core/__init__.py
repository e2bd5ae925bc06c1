"""Core application modules."""

from .monitoring import MetricsCollector
from .processor import TransactionProcessor

__all__ = [
    "MetricsCollector",
    "TransactionProcessor",
]
