"""Core (reference) asset registry."""

from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from models.transaction import AssetRef


# Native SOL and wrapped SOL share this identity
WSOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"

NATIVE_ASSET = AssetRef(mint=WSOL_MINT, symbol="SOL", decimals=9)

# Priority order: earlier entries win the quote role when both sides are core.
# Floors are minimum economic sizes in the asset's own units (~$2).
DEFAULT_CORE_ASSETS: List[Tuple[AssetRef, Decimal]] = [
    (AssetRef(USDC_MINT, "USDC", 6), Decimal("2")),
    (AssetRef(USDT_MINT, "USDT", 6), Decimal("2")),
    (AssetRef("2b1kV6DkPAnxd5ixfnxCpjxmKwqjjaYmCZfHsFu24GXo", "PYUSD", 6), Decimal("2")),
    (AssetRef("USDSwr9ApdHk5bvJKMjzff41FfuX8bSxdKcR81vTwcA", "USDS", 6), Decimal("2")),
    (AssetRef("2u1tszSeqZ3qBWF3uNGPFc8TzMk2tdiwknnRMWGWjGWH", "USDG", 6), Decimal("2")),
    (AssetRef("EjmyN6qEC1Tf1JxiG1ae7UTJhUxSwk1TCWNWqxWV4J6o", "DAI", 8), Decimal("2")),
    (AssetRef("HzwqbKZw8HxMN6bF2yFZNrht3c2iXXzpKcFu7uBEDKtr", "EURC", 6), Decimal("2")),
    (NATIVE_ASSET, Decimal("0.01")),
    (AssetRef("mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So", "mSOL", 9), Decimal("0.01")),
    (AssetRef("J1toso1uCk3RLmjorhTtrVwY9HJ7X8V9yYac6Y7kGCPn", "jitoSOL", 9), Decimal("0.01")),
    (AssetRef("bSo13r4TkiE4KumL71LsHTPpL2euBYLFx6h9HP3piy1", "bSOL", 9), Decimal("0.01")),
    (AssetRef("jupSoLaHXQiZZTSfEWMTRRgpnyFm8f6sZdosWBjx93v", "jupSOL", 9), Decimal("0.01")),
    (AssetRef("7dHbWXmci3dT8UFYWYZweBLXgycu7Y3iL6trKn1Y7ARj", "stSOL", 9), Decimal("0.01")),
    (AssetRef("cbbtcf3aa214zXHbiAZQwf4122FBYbraNdFqgw4iMij", "cbBTC", 8), Decimal("0.00002")),
    (AssetRef("9n4nbM75f5Ui33ZbPYXn59EwSgE8CGsHtAeTH5YFeJ9E", "wBTC", 8), Decimal("0.00002")),
    (AssetRef("7vfCXTUXx5WJV5JADk17DUJ4ksgau7utNKj4b963voxs", "wETH", 8), Decimal("0.0005")),
]


class CoreAssetRegistry:
    """
    Ordered set of reference assets.

    Lookup is by mint. Position in the registry is the quote priority, and
    the first entry is the primary reference asset used as the split pivot.
    """

    def __init__(
        self,
        assets: Iterable[AssetRef],
        floors: Optional[Mapping[str, Decimal]] = None,
        default_floor: Decimal = Decimal("0"),
    ):
        self._assets: Tuple[AssetRef, ...] = tuple(assets)
        if not self._assets:
            raise ValueError("CoreAssetRegistry needs at least one asset")

        self._by_mint: Dict[str, AssetRef] = {}
        self._priority: Dict[str, int] = {}
        for i, asset in enumerate(self._assets):
            if asset.mint in self._by_mint:
                raise ValueError(f"Duplicate core asset mint: {asset.mint}")
            self._by_mint[asset.mint] = asset
            self._priority[asset.mint] = i

        self._floors: Dict[str, Decimal] = dict(floors or {})
        self._default_floor = default_floor

    @classmethod
    def default(cls, default_floor: Decimal = Decimal("2")) -> "CoreAssetRegistry":
        return cls(
            [asset for asset, _ in DEFAULT_CORE_ASSETS],
            floors={asset.mint: floor for asset, floor in DEFAULT_CORE_ASSETS},
            default_floor=default_floor,
        )

    def __contains__(self, mint: str) -> bool:
        return mint in self._by_mint

    def __len__(self) -> int:
        return len(self._assets)

    def __iter__(self):
        return iter(self._assets)

    def is_core(self, mint: str) -> bool:
        return mint in self._by_mint

    def get(self, mint: str) -> Optional[AssetRef]:
        return self._by_mint.get(mint)

    def priority(self, mint: str) -> Optional[int]:
        """Position in the registry, lower wins. None for non-core mints."""
        return self._priority.get(mint)

    @property
    def primary(self) -> AssetRef:
        return self._assets[0]

    def floor_for(self, mint: str) -> Decimal:
        """Minimum economic size for a core asset, in its own units."""
        return self._floors.get(mint, self._default_floor)
