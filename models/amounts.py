"""Raw and decimal amount types.

A raw amount is an integer in an asset's smallest unit (lamports, token base
units). A decimal amount is the human-scale figure. The only way to turn one
into the other is ``RawAmount.to_decimal``, and ``DecimalAmount`` has no such
method, so a value cannot be scaled twice.
"""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True, order=True)
class RawAmount:
    """Signed integer amount in an asset's smallest unit."""
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"RawAmount requires an int, got {type(self.value).__name__}")

    def __add__(self, other: "RawAmount") -> "RawAmount":
        if not isinstance(other, RawAmount):
            return NotImplemented
        return RawAmount(self.value + other.value)

    def __sub__(self, other: "RawAmount") -> "RawAmount":
        if not isinstance(other, RawAmount):
            return NotImplemented
        return RawAmount(self.value - other.value)

    def __neg__(self) -> "RawAmount":
        return RawAmount(-self.value)

    def __abs__(self) -> "RawAmount":
        return RawAmount(abs(self.value))

    def __bool__(self) -> bool:
        return self.value != 0

    @property
    def sign(self) -> int:
        return (self.value > 0) - (self.value < 0)

    def to_decimal(self, decimals: int) -> "DecimalAmount":
        """Scale by ``10 ** decimals``. This is the single conversion point."""
        if decimals < 0:
            raise ValueError(f"decimals must be non-negative, got {decimals}")
        return DecimalAmount(Decimal(self.value).scaleb(-decimals))


ZERO_RAW = RawAmount(0)


@dataclass(frozen=True, order=True)
class DecimalAmount:
    """Decimal amount already scaled by the asset's decimals."""
    value: Decimal

    def __post_init__(self):
        if not isinstance(self.value, Decimal):
            raise TypeError(f"DecimalAmount requires a Decimal, got {type(self.value).__name__}")

    def __add__(self, other: "DecimalAmount") -> "DecimalAmount":
        if not isinstance(other, DecimalAmount):
            return NotImplemented
        return DecimalAmount(self.value + other.value)

    def __sub__(self, other: "DecimalAmount") -> "DecimalAmount":
        if not isinstance(other, DecimalAmount):
            return NotImplemented
        return DecimalAmount(self.value - other.value)

    def __abs__(self) -> "DecimalAmount":
        return DecimalAmount(abs(self.value))

    def __str__(self) -> str:
        return str(self.value)
