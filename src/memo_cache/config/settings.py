"""Configuration settings for the cache."""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass
class CacheSettings:
    default_ttl_seconds: float = 300.0
    # None keeps the store unbounded
    max_entries: Optional[int] = None


@dataclass
class Settings:
    cache: CacheSettings = field(default_factory=CacheSettings)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            cache=CacheSettings(
                default_ttl_seconds=_env_float("MEMO_CACHE_DEFAULT_TTL", 300.0),
                max_entries=_env_optional_int("MEMO_CACHE_MAX_ENTRIES"),
            ),
            log_level=os.getenv("MEMO_CACHE_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )


settings = Settings.from_env()
