"""Environment-driven configuration."""

from .settings import CacheSettings, Settings, settings

__all__ = ["CacheSettings", "Settings", "settings"]
