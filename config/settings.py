"""Pydantic settings for swap classifier configuration."""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from models.transaction import AssetRef
from parser.assets import CoreAssetRegistry
from parser.inference import ClassifierConfig


class CoreAssetEntry(BaseModel):
    """One registry entry as supplied through configuration."""
    mint: str
    symbol: str
    decimals: int = Field(ge=0, le=255)
    min_amount: Optional[Decimal] = None


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Registry
    core_assets: List[CoreAssetEntry] = Field(
        default_factory=list,
        description="Core assets in quote priority order (JSON). Empty uses the built-in registry"
    )

    # Noise gate
    min_quote_amount: Decimal = Field(
        default=Decimal("2"),
        description="Minimum core-side size for core assets without their own floor"
    )
    min_split_leg_amount: Decimal = Field(
        default=Decimal("0.000001"),
        description="Minimum base amount for each synthesized split leg"
    )
    rent_noise_threshold_lamports: int = Field(
        default=10_000_000,
        description="Positive SOL changes below this are rent refunds (0.01 SOL)"
    )
    dust_threshold: Decimal = Field(
        default=Decimal("0.000001"),
        description="Movements at or below this decimal size are ignored as dust"
    )

    # Normalization
    default_decimals: int = Field(
        default=9,
        description="Decimals assumed for assets with no decimals anywhere in the payload"
    )

    # Operations
    latency_warning_ms: float = Field(
        default=100.0,
        description="Classifications slower than this are logged as warnings"
    )

    model_config = {
        "env_prefix": "SWAPCLS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }

    def build_registry(self) -> CoreAssetRegistry:
        """Build the core asset registry from configuration."""
        if not self.core_assets:
            return CoreAssetRegistry.default(default_floor=self.min_quote_amount)
        return CoreAssetRegistry(
            [AssetRef(e.mint, e.symbol, e.decimals) for e in self.core_assets],
            floors={e.mint: e.min_amount for e in self.core_assets if e.min_amount is not None},
            default_floor=self.min_quote_amount,
        )

    def to_classifier_config(self) -> ClassifierConfig:
        """Snapshot the settings into the classifier's injected config."""
        return ClassifierConfig(
            registry=self.build_registry(),
            min_split_leg_amount=self.min_split_leg_amount,
            rent_noise_threshold_lamports=self.rent_noise_threshold_lamports,
            default_decimals=self.default_decimals,
            dust_threshold=self.dust_threshold,
        )


# Global settings instance
settings = Settings()
