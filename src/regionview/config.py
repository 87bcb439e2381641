"""Configuration for regionview, loaded from environment variables."""

import os
from dataclasses import dataclass

from .constants import (
    DEFAULT_ALIGNMENT_TIMEOUT_SECONDS,
    DEFAULT_ALIGNMENT_URL,
    DEFAULT_CACHE_SIZE,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_EXPANSION_MULTIPLIER,
    DEFAULT_MAX_CONCURRENT_QUERIES,
    DEFAULT_MIN_VISUALIZATION_WIDTH,
)


@dataclass
class RegionViewConfig:
    """View coordination configuration loaded from environment variables."""

    # Alignment service settings
    alignment_url: str = DEFAULT_ALIGNMENT_URL
    alignment_timeout: float = DEFAULT_ALIGNMENT_TIMEOUT_SECONDS
    max_concurrent_queries: int = DEFAULT_MAX_CONCURRENT_QUERIES

    # View settings
    expansion_multiplier: float = DEFAULT_EXPANSION_MULTIPLIER
    min_visualization_width: int = DEFAULT_MIN_VISUALIZATION_WIDTH

    # Cache settings
    cache_size: int = DEFAULT_CACHE_SIZE
    cache_ttl: int = DEFAULT_CACHE_TTL_SECONDS

    def __post_init__(self) -> None:
        """Validate config values."""
        if not self.alignment_url.startswith(("http://", "https://")):
            raise ValueError(
                f"alignment_url must be an http(s) URL, got '{self.alignment_url}'"
            )

        if self.alignment_timeout <= 0:
            raise ValueError(
                f"alignment_timeout must be positive, got {self.alignment_timeout}"
            )

        if self.max_concurrent_queries < 1:
            raise ValueError(
                f"max_concurrent_queries must be at least 1, got {self.max_concurrent_queries}"
            )

        if self.expansion_multiplier < 0:
            raise ValueError(
                f"expansion_multiplier must be non-negative, got {self.expansion_multiplier}"
            )

        if self.min_visualization_width < 1:
            raise ValueError(
                f"min_visualization_width must be at least 1, got {self.min_visualization_width}"
            )

        if self.cache_size < 1:
            raise ValueError(f"cache_size must be at least 1, got {self.cache_size}")

        if self.cache_ttl < 0:
            raise ValueError(f"cache_ttl must be non-negative, got {self.cache_ttl}")

    @classmethod
    def from_env(cls) -> "RegionViewConfig":
        """Create config from environment variables."""
        env = os.environ

        return cls(
            alignment_url=env.get("REGIONVIEW_ALIGNMENT_URL", DEFAULT_ALIGNMENT_URL).rstrip("/"),
            alignment_timeout=float(
                env.get("REGIONVIEW_ALIGNMENT_TIMEOUT", str(DEFAULT_ALIGNMENT_TIMEOUT_SECONDS))
            ),
            max_concurrent_queries=int(
                env.get("REGIONVIEW_MAX_CONCURRENT", str(DEFAULT_MAX_CONCURRENT_QUERIES))
            ),
            expansion_multiplier=float(
                env.get("REGIONVIEW_EXPANSION_MULTIPLIER", str(DEFAULT_EXPANSION_MULTIPLIER))
            ),
            min_visualization_width=int(
                env.get("REGIONVIEW_MIN_VIS_WIDTH", str(DEFAULT_MIN_VISUALIZATION_WIDTH))
            ),
            cache_size=int(env.get("REGIONVIEW_CACHE_SIZE", str(DEFAULT_CACHE_SIZE))),
            cache_ttl=int(env.get("REGIONVIEW_CACHE_TTL", str(DEFAULT_CACHE_TTL_SECONDS))),
        )
