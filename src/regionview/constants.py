"""Shared constants for regionview runtime defaults and thresholds.

This module is the single source of truth for default values that are consumed
across configuration loading, view expansion, and the alignment client.
"""

from __future__ import annotations

# View expansion defaults
DEFAULT_EXPANSION_MULTIPLIER = 1.0  # pad by 100% of the requested width on each side
DEFAULT_MIN_VISUALIZATION_WIDTH = 100  # pixels

# Track types
ALIGNMENT_TRACK_TYPE = "genomealign"
G3D_TRACK_TYPE = "g3d"

# Alignment service defaults
DEFAULT_ALIGNMENT_URL = "http://localhost:8000"
DEFAULT_ALIGNMENT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_CONCURRENT_QUERIES = 5

# Cache behavior
DEFAULT_CACHE_SIZE = 256
DEFAULT_CACHE_TTL_SECONDS = 600  # 10 minutes
