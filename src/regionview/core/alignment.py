"""Multi-genome alignment of an expanded primary view.

For every query genome referenced by an alignment track, the expanded primary
interval is mapped into that genome through an alignment source. Insertion gaps
from all genomes are merged so that primary and query tracks share one pixel axis.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from .errors import AlignmentQueryFailed, AlignmentUnavailable
from .expansion import Gap, ViewExpansion, merge_gaps
from .interval import GenomeConfig, GenomicInterval, Locus
from .tracks import TrackModel, secondary_genomes

logger = logging.getLogger(__name__)

STRANDS = ("+", "-")


@dataclass(frozen=True)
class AlignmentSegment:
    """One aligned block: a primary locus and the query locus it maps to."""

    locus: Locus
    query_locus: Locus
    query_strand: str = "+"

    def __post_init__(self) -> None:
        if self.query_strand not in STRANDS:
            raise ValueError(f"Invalid query strand: {self.query_strand!r}")


@dataclass(frozen=True)
class AlignmentResponse:
    """What the alignment source returns for one query genome.

    ``primary_span`` is the (chromosome, position) pair for the start and end of
    the primary region the source actually resolved, when it reports one.
    """

    segments: tuple[AlignmentSegment, ...]
    primary_span: tuple[tuple[str, int], tuple[str, int]] | None = None


class AlignmentSource(Protocol):
    """Anything that can map primary loci into a query genome."""

    async def query_alignment(
        self, primary_genome: str, query_genome: str, loci: Sequence[Locus]
    ) -> AlignmentResponse: ...


@dataclass(frozen=True)
class PlacedSegment:
    """An aligned block positioned on the shared pixel axis."""

    primary: GenomicInterval
    query_locus: Locus
    query_strand: str
    x_start: float
    x_end: float


@dataclass(frozen=True)
class GenomeAlignment:
    """Alignment record for one query genome.

    A failed record has ``error`` set, no primary view and no segments.
    """

    query_genome: str
    primary_view: ViewExpansion | None
    segments: tuple[PlacedSegment, ...] = ()
    gaps: tuple[Gap, ...] = ()
    error: AlignmentQueryFailed | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def query_regions(self) -> tuple[Locus, ...]:
        """Query-genome extent covered per chromosome, in order of first appearance."""
        spans: dict[str, tuple[int, int]] = {}
        for seg in self.segments:
            q = seg.query_locus
            if q.chrom in spans:
                start, end = spans[q.chrom]
                spans[q.chrom] = (min(start, q.start), max(end, q.end))
            else:
                spans[q.chrom] = (q.start, q.end)
        return tuple(Locus(chrom, start, end) for chrom, (start, end) in spans.items())


class MultiAlignment(Mapping[str, GenomeAlignment]):
    """Read-only mapping of query genome to its alignment record.

    Args:
        records: Records in declared track order.
        primary_view: The authoritative primary view shared by every successful
            record, or None when no query genome was involved.
        inconsistent: True when the source reported divergent primary spans.
    """

    def __init__(
        self,
        records: Mapping[str, GenomeAlignment],
        primary_view: ViewExpansion | None = None,
        inconsistent: bool = False,
    ):
        self._records = dict(records)
        self.primary_view = primary_view
        self.inconsistent = inconsistent

    def __getitem__(self, genome: str) -> GenomeAlignment:
        return self._records[genome]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def failures(self) -> dict[str, AlignmentQueryFailed]:
        return {g: r.error for g, r in self._records.items() if r.error is not None}

    @property
    def succeeded(self) -> list[str]:
        return [g for g, r in self._records.items() if r.ok]

    def __repr__(self) -> str:
        return f"MultiAlignment(succeeded={self.succeeded}, failed={list(self.failures)})"


@dataclass(frozen=True)
class _GenomeLayout:
    segments: tuple[tuple[GenomicInterval, Locus, str], ...]
    gaps: tuple[Gap, ...]
    span: GenomicInterval | None


def _clip_segment(
    primary: GenomicInterval, query: Locus, strand: str, bounds: GenomicInterval
) -> tuple[GenomicInterval, Locus] | None:
    """Trim a segment to ``bounds``, trimming the query side by the same offsets."""
    clipped = primary.intersect(bounds)
    if clipped is None:
        return None
    left = clipped.start - primary.start
    right = primary.end - clipped.end
    if strand == "-":
        left, right = right, left
    q_start = min(query.start + left, query.end)
    q_end = max(query.end - right, q_start)
    return clipped, Locus(query.chrom, q_start, q_end)


def _infer_gaps(segments: Sequence[tuple[GenomicInterval, Locus, str]]) -> list[Gap]:
    """Find query bases that sit between two consecutive primary blocks.

    Only blocks on the same query chromosome and strand are compared.
    """
    gaps: list[Gap] = []
    for (a_primary, a_query, a_strand), (b_primary, b_query, b_strand) in zip(
        segments, segments[1:]
    ):
        if a_query.chrom != b_query.chrom or a_strand != b_strand:
            continue
        primary_gap = b_primary.start - a_primary.end
        if a_strand == "+":
            query_gap = b_query.start - a_query.end
        else:
            query_gap = a_query.start - b_query.end
        if primary_gap >= 0 and query_gap > primary_gap:
            gaps.append(Gap(a_primary.end, query_gap - primary_gap))
    return gaps


class MultiAlignmentCalculator:
    """Aligns an expanded primary view against every referenced query genome."""

    def __init__(
        self,
        genome: GenomeConfig,
        tracks: Sequence[TrackModel],
        source: AlignmentSource,
    ):
        self.genome = genome
        self.source = source
        self._tracks: tuple[TrackModel, ...] = tuple(tracks)

    @property
    def secondary_genomes(self) -> list[str]:
        """Query genomes of the current track list, recomputed on every access."""
        return secondary_genomes(self._tracks, self.genome.name)

    def update_tracks(self, tracks: Sequence[TrackModel]) -> None:
        self._tracks = tuple(tracks)

    def reset_genome(self, genome: GenomeConfig) -> None:
        self.genome = genome

    async def align(
        self, view: ViewExpansion, tracks: Sequence[TrackModel] | None = None
    ) -> MultiAlignment:
        """Map ``view`` into every query genome concurrently.

        Args:
            view: Expanded primary view to align.
            tracks: Track list for this call only; defaults to the current list.

        Returns:
            An empty MultiAlignment when no query genome is referenced; otherwise
            one record per query genome, failed ones carrying their error.

        Raises:
            AlignmentUnavailable: If every query genome failed.
        """
        if tracks is None:
            genomes = self.secondary_genomes
        else:
            genomes = secondary_genomes(tracks, self.genome.name)
        if not genomes:
            return MultiAlignment({})

        genome = self.genome
        loci = genome.to_loci(view.expanded)
        outcomes = await asyncio.gather(
            *(self._query(genome, query_genome, loci, view) for query_genome in genomes),
            return_exceptions=True,
        )

        layouts: dict[str, _GenomeLayout] = {}
        failures: dict[str, AlignmentQueryFailed] = {}
        for query_genome, outcome in zip(genomes, outcomes):
            if isinstance(outcome, AlignmentQueryFailed):
                logger.warning("Alignment query for %s failed: %s", query_genome, outcome.cause)
                failures[query_genome] = outcome
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                layouts[query_genome] = outcome

        if not layouts:
            raise AlignmentUnavailable(failures)

        shared_gaps = merge_gaps(*(layout.gaps for layout in layouts.values()))
        views = {g: view.with_gaps(shared_gaps, span=layout.span) for g, layout in layouts.items()}

        # Declared track order decides which genome's view is authoritative
        authority = next(g for g in genomes if g in views)
        primary_view = views[authority]
        inconsistent = any(v != primary_view for v in views.values())
        if inconsistent:
            logger.warning(
                "Alignment source returned divergent primary spans; using %s view %s",
                authority,
                primary_view.expanded,
            )

        records: dict[str, GenomeAlignment] = {}
        for query_genome in genomes:
            if query_genome in failures:
                records[query_genome] = GenomeAlignment(
                    query_genome, None, error=failures[query_genome]
                )
                continue
            layout = layouts[query_genome]
            records[query_genome] = GenomeAlignment(
                query_genome,
                primary_view,
                segments=self._place(layout, primary_view),
                gaps=layout.gaps,
            )
        return MultiAlignment(records, primary_view, inconsistent)

    async def _query(
        self,
        genome: GenomeConfig,
        query_genome: str,
        loci: Sequence[Locus],
        view: ViewExpansion,
    ) -> _GenomeLayout:
        try:
            response = await self.source.query_alignment(genome.name, query_genome, loci)
            return self._layout(genome, response, view)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise AlignmentQueryFailed(query_genome, e) from e

    @staticmethod
    def _layout(
        genome: GenomeConfig, response: AlignmentResponse, view: ViewExpansion
    ) -> _GenomeLayout:
        span = None
        if response.primary_span is not None:
            (start_chrom, start_pos), (end_chrom, end_pos) = response.primary_span
            span = genome.interval(
                genome.to_absolute(start_chrom, start_pos),
                genome.to_absolute(end_chrom, end_pos),
            )

        clipped = []
        for seg in response.segments:
            primary = genome.locus_to_interval(seg.locus)
            trimmed = _clip_segment(primary, seg.query_locus, seg.query_strand, view.expanded)
            if trimmed is not None:
                clipped.append((trimmed[0], trimmed[1], seg.query_strand))
        clipped.sort(key=lambda s: (s[0].start, s[0].end))

        return _GenomeLayout(tuple(clipped), tuple(_infer_gaps(clipped)), span)

    @staticmethod
    def _place(layout: _GenomeLayout, view: ViewExpansion) -> tuple[PlacedSegment, ...]:
        placed: list[PlacedSegment] = []
        for primary, query, strand in layout.segments:
            trimmed = _clip_segment(primary, query, strand, view.expanded)
            if trimmed is None:
                continue
            primary, query = trimmed
            x_start = view.base_to_pixel(primary.start)
            # Measure from the last base so a gap right after the block is excluded
            x_end = view.base_to_pixel(primary.end - 1) + view.pixels_per_base
            placed.append(PlacedSegment(primary, query, strand, x_start, x_end))
        return tuple(placed)
