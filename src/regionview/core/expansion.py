"""Region expansion and base/pixel coordinate conversion.

A requested interval is padded on both sides so that panning can reveal data
that was already fetched. The expansion also fixes the pixel-per-base ratio
every track draws with.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from functools import cached_property

import numpy as np

from ..config import RegionViewConfig
from ..constants import DEFAULT_EXPANSION_MULTIPLIER
from .errors import InvalidRange, InvalidWidth
from .interval import GenomicInterval


@dataclass(frozen=True)
class Gap:
    """Bases inserted immediately before primary base ``position``.

    Gaps come from query genomes that carry sequence the primary genome lacks.
    They take up pixels on the shared axis but hold no primary bases.
    """

    position: int
    length: int

    def __post_init__(self) -> None:
        if self.length < 1:
            raise ValueError(f"Gap length must be positive, got {self.length}")


def merge_gaps(*gap_sets: Iterable[Gap]) -> tuple[Gap, ...]:
    """Merge gap sets from several genomes, keeping the longest gap at each position."""
    longest: dict[int, int] = {}
    for gaps in gap_sets:
        for gap in gaps:
            if gap.length > longest.get(gap.position, 0):
                longest[gap.position] = gap.length
    return tuple(Gap(pos, longest[pos]) for pos in sorted(longest))


@dataclass(frozen=True)
class ViewExpansion:
    """Result of expanding a requested interval for a given drawing width.

    Attributes:
        current: The interval the user asked to see.
        expanded: ``current`` padded on both sides, clipped to the genome.
        pixels_per_base: Drawing scale shared by every track.
        gaps: Sorted insertion gaps that widen the pixel axis (empty when unaligned).
    """

    current: GenomicInterval
    expanded: GenomicInterval
    pixels_per_base: float
    gaps: tuple[Gap, ...] = ()

    def __post_init__(self) -> None:
        if not self.expanded.contains(self.current):
            raise InvalidRange(f"Expanded interval {self.expanded} does not contain {self.current}")
        if self.pixels_per_base <= 0:
            raise InvalidWidth(f"pixels_per_base must be positive, got {self.pixels_per_base}")

    @property
    def bases_per_pixel(self) -> float:
        return 1 / self.pixels_per_base

    @cached_property
    def _gap_positions(self) -> np.ndarray:
        return np.array([g.position for g in self.gaps], dtype=np.int64)

    @cached_property
    def _gap_cumulative(self) -> np.ndarray:
        # _gap_cumulative[i] is the number of gap bases before gap i
        lengths = np.array([g.length for g in self.gaps], dtype=np.int64)
        return np.concatenate(([0], np.cumsum(lengths)))

    def gap_bases_before(self, base: float) -> int:
        """Total gap length drawn at or before ``base``."""
        if not self.gaps:
            return 0
        idx = int(np.searchsorted(self._gap_positions, base, side="right"))
        return int(self._gap_cumulative[idx])

    def base_to_pixel(self, base: float) -> float:
        """Pixel x of ``base`` on the expanded drawing."""
        return (base - self.expanded.start + self.gap_bases_before(base)) * self.pixels_per_base

    def pixel_to_base(self, x: float) -> float:
        """Primary base under pixel ``x``; pixels inside a gap map to the base after it."""
        units = x / self.pixels_per_base
        if not self.gaps:
            return self.expanded.start + units

        gap_starts = self._gap_positions - self.expanded.start + self._gap_cumulative[:-1]
        gap_ends = self._gap_positions - self.expanded.start + self._gap_cumulative[1:]
        k = int(np.searchsorted(gap_ends, units, side="right"))
        if k < len(self.gaps) and gap_starts[k] <= units:
            return float(self.gaps[k].position)
        return self.expanded.start + units - float(self._gap_cumulative[k])

    @property
    def expanded_width(self) -> float:
        """Pixel width of the whole expanded drawing, gaps included."""
        return self.base_to_pixel(self.expanded.end)

    @property
    def view_window(self) -> tuple[float, float]:
        """Pixel span of the current interval inside the expanded drawing."""
        return self.base_to_pixel(self.current.start), self.base_to_pixel(self.current.end)

    @property
    def visible_width(self) -> float:
        start, end = self.view_window
        return end - start

    def with_gaps(
        self, gaps: Iterable[Gap], span: GenomicInterval | None = None
    ) -> ViewExpansion:
        """Derive an aligned view on the same scale, with ``gaps`` inserted.

        Args:
            gaps: Insertion gaps; those outside the expanded interval are dropped.
            span: Replacement expanded interval, widened if needed to keep
                covering ``current``.
        """
        expanded = self.expanded
        if span is not None:
            expanded = GenomicInterval(
                min(span.start, self.current.start),
                max(span.end, self.current.end),
                self.current.total_length,
            )
        inside = [g for g in gaps if expanded.start < g.position < expanded.end]
        return ViewExpansion(self.current, expanded, self.pixels_per_base, merge_gaps(inside))

    def without_gaps(self) -> ViewExpansion:
        if not self.gaps:
            return self
        return ViewExpansion(self.current, self.expanded, self.pixels_per_base)


class RegionExpander:
    """Pads requested intervals by a fixed multiple of their width on each side.

    An empty interval is a valid GenomicInterval but cannot be expanded: it has
    no pixel-per-base ratio, so calculate_expansion rejects it with InvalidRange.
    """

    def __init__(self, multiplier: float = DEFAULT_EXPANSION_MULTIPLIER):
        """Initialize the expander.

        Args:
            multiplier: Fraction of the requested width to add on each side
                (1 pads by 100% left and right).
        """
        if multiplier < 0:
            raise ValueError(f"Expansion multiplier must be non-negative, got {multiplier}")
        self.multiplier = multiplier

    @classmethod
    def from_config(cls, config: RegionViewConfig) -> RegionExpander:
        return cls(config.expansion_multiplier)

    def calculate_expansion(self, interval: GenomicInterval, width: float) -> ViewExpansion:
        """Expand ``interval`` for drawing across ``width`` pixels.

        Raises:
            InvalidWidth: If ``width`` is not positive.
            InvalidRange: If ``interval`` is empty.
        """
        if width <= 0:
            raise InvalidWidth(f"Drawing width must be positive, got {width}")
        if interval.width == 0:
            raise InvalidRange(f"Cannot expand empty interval {interval}")

        pixels_per_base = width / interval.width
        expanded = interval.pad(self.multiplier * interval.width)
        return ViewExpansion(current=interval, expanded=expanded, pixels_per_base=pixels_per_base)

    def __repr__(self) -> str:
        return f"RegionExpander(multiplier={self.multiplier})"
