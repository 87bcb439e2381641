"""HTTP client for a genome alignment service."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import httpx

from ..config import RegionViewConfig
from ..constants import (
    DEFAULT_ALIGNMENT_TIMEOUT_SECONDS,
    DEFAULT_ALIGNMENT_URL,
    DEFAULT_CACHE_SIZE,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_MAX_CONCURRENT_QUERIES,
)
from ..core.alignment import AlignmentResponse, AlignmentSegment
from ..core.interval import Locus
from .ttl_cache import CoalescingTTLCache

logger = logging.getLogger(__name__)

ALIGNMENT_ENDPOINT = "/alignment"


@dataclass
class AlignmentClient:
    """Async client that maps primary loci into a query genome over HTTP.

    Features:
    - Bounded LRU cache with TTL for completed alignments
    - Identical concurrent queries share a single request
    - Concurrency limiting via semaphore
    """

    base_url: str = DEFAULT_ALIGNMENT_URL
    timeout: float = DEFAULT_ALIGNMENT_TIMEOUT_SECONDS
    max_concurrent: int = DEFAULT_MAX_CONCURRENT_QUERIES
    cache_size: int = DEFAULT_CACHE_SIZE
    cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS
    _cache: CoalescingTTLCache[AlignmentResponse] = field(default=None, repr=False)  # type: ignore[assignment]
    _semaphore: asyncio.Semaphore = field(default=None, repr=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        self._semaphore = asyncio.Semaphore(self.max_concurrent)
        self._cache = CoalescingTTLCache[AlignmentResponse](
            maxsize=self.cache_size, ttl=self.cache_ttl
        )

    @classmethod
    def from_config(cls, config: RegionViewConfig) -> AlignmentClient:
        return cls(
            base_url=config.alignment_url,
            timeout=config.alignment_timeout,
            max_concurrent=config.max_concurrent_queries,
            cache_size=config.cache_size,
            cache_ttl=config.cache_ttl,
        )

    async def query_alignment(
        self, primary_genome: str, query_genome: str, loci: Sequence[Locus]
    ) -> AlignmentResponse:
        """
        Map primary-genome loci into ``query_genome``.

        Args:
            primary_genome: Assembly the loci are expressed in (e.g., "hg38").
            query_genome: Assembly to map into (e.g., "mm10").
            loci: Primary loci, one per chromosome the region touches.

        Returns:
            The aligned segments and the primary span the service resolved.

        Raises:
            httpx.HTTPError: On transport failures or non-2xx responses.
            ValueError: If the service returns a malformed payload.
        """
        cache_key = (primary_genome, query_genome, tuple(loci))
        return await self._cache.get_or_load(
            cache_key, lambda: self._do_query(primary_genome, query_genome, loci)
        )

    async def _do_query(
        self, primary_genome: str, query_genome: str, loci: Sequence[Locus]
    ) -> AlignmentResponse:
        """Execute the actual alignment request."""
        payload = {
            "primary_genome": primary_genome,
            "query_genome": query_genome,
            "loci": [{"chr": locus.chrom, "start": locus.start, "end": locus.end} for locus in loci],
        }

        async with self._semaphore:
            logger.debug("Querying %s alignment for %d loci", query_genome, len(loci))
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(f"{self.base_url}{ALIGNMENT_ENDPOINT}", json=payload)
                resp.raise_for_status()
                data = resp.json()

        return _parse_response(data)


def _parse_locus(data: dict) -> Locus:
    return Locus(str(data["chr"]), int(data["start"]), int(data["end"]))


def _parse_response(data: dict) -> AlignmentResponse:
    """Parse an alignment service response into an AlignmentResponse."""
    try:
        segments = tuple(
            AlignmentSegment(
                locus=_parse_locus(record["locus"]),
                query_locus=_parse_locus(record["query_locus"]),
                query_strand=record.get("query_strand", "+"),
            )
            for record in data.get("records", [])
        )

        span = data.get("primary_span")
        primary_span = None
        if span:
            primary_span = (
                (str(span["start"]["chr"]), int(span["start"]["pos"])),
                (str(span["end"]["chr"]), int(span["end"]["pos"])),
            )
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Malformed alignment response: {e}") from e

    return AlignmentResponse(segments=segments, primary_span=primary_span)
