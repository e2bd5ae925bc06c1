"""Configuration module."""

from .settings import CoreAssetEntry, Settings, settings

__all__ = ["CoreAssetEntry", "Settings", "settings"]
