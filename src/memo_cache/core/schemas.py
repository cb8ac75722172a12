"""
Pydantic models for values the cache reports outward.
Why: a stable, validated shape for stats that dashboards can serialize.
"""

from typing import Optional

from pydantic import BaseModel, Field


class CacheStats(BaseModel):
    size: int = Field(ge=0)
    default_ttl_seconds: float
    max_entries: Optional[int] = Field(default=None, ge=1)
    in_flight: int = Field(default=0, ge=0)
    hits: int = Field(default=0, ge=0)
    misses: int = Field(default=0, ge=0)
    sets: int = Field(default=0, ge=0)
    deletes: int = Field(default=0, ge=0)
    expirations: int = Field(default=0, ge=0)
    evictions: int = Field(default=0, ge=0)
    computes: int = Field(default=0, ge=0)
    compute_errors: int = Field(default=0, ge=0)
    coalesced: int = Field(default=0, ge=0)
    compute_p50_ms: int = Field(default=0, ge=0)
    compute_p95_ms: int = Field(default=0, ge=0)
    hit_ratio: float = Field(default=0.0, ge=0.0, le=1.0)
