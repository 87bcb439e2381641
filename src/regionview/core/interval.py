"""Genomic intervals on a genome's concatenated coordinate space.

A genome's chromosomes are laid end to end in a fixed order, giving every base a
single absolute coordinate. Intervals are 0-based and half-open.
"""

from __future__ import annotations

import bisect
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .errors import InvalidRange

# Maximum accepted length of a region string such as "chr1:1000-2000"
MAX_REGION_LENGTH = 100


@dataclass(frozen=True)
class GenomicInterval:
    """An immutable [start, end) interval in one absolute coordinate space."""

    start: int
    end: int
    total_length: int

    def __post_init__(self) -> None:
        if self.total_length < 0:
            raise InvalidRange(f"Coordinate space length must be non-negative, got {self.total_length}")
        if self.start > self.end:
            raise InvalidRange(f"Interval start {self.start} is after end {self.end}")
        if self.start < 0 or self.end > self.total_length:
            raise InvalidRange(
                f"Interval [{self.start}, {self.end}) is outside [0, {self.total_length}]"
            )

    @classmethod
    def clip(cls, start: int, end: int, total_length: int) -> GenomicInterval:
        """Build an interval, clamping both bounds to [0, total_length]."""
        start = min(max(start, 0), total_length)
        end = min(max(end, start), total_length)
        return cls(start, end, total_length)

    @property
    def width(self) -> int:
        return self.end - self.start

    def pad(self, amount: float) -> GenomicInterval:
        """Return a new interval widened by ``amount`` on each side, clipped to bounds."""
        pad = int(round(amount))
        return GenomicInterval.clip(self.start - pad, self.end + pad, self.total_length)

    def intersect(self, other: GenomicInterval) -> GenomicInterval | None:
        """Return the overlap with ``other``, or None if they are disjoint."""
        self._check_same_space(other)
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if start >= end:
            return None
        return GenomicInterval(start, end, self.total_length)

    def contains(self, other: GenomicInterval) -> bool:
        self._check_same_space(other)
        return self.start <= other.start and other.end <= self.end

    def _check_same_space(self, other: GenomicInterval) -> None:
        if other.total_length != self.total_length:
            raise InvalidRange("Intervals belong to different coordinate spaces")

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


@dataclass(frozen=True)
class Locus:
    """A [start, end) range on a single named chromosome."""

    chrom: str
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.start > self.end:
            raise InvalidRange(f"Invalid locus {self.chrom}:{self.start}-{self.end}")

    @property
    def width(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f"{self.chrom}:{self.start}-{self.end}"


@dataclass(frozen=True)
class Chromosome:
    """A named contig and its length in bases."""

    name: str
    length: int


@dataclass(frozen=True)
class GenomeConfig:
    """A genome assembly and its ordered chromosomes.

    Defines the absolute coordinate space every primary-genome interval lives in.
    """

    name: str
    chromosomes: tuple[Chromosome, ...]
    _offsets: tuple[int, ...] = field(init=False, repr=False, compare=False)
    _index: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "chromosomes", tuple(self.chromosomes))
        if not self.chromosomes:
            raise ValueError(f"Genome {self.name} has no chromosomes")

        offsets: list[int] = []
        index: dict[str, int] = {}
        total = 0
        for i, chrom in enumerate(self.chromosomes):
            if chrom.length < 1:
                raise ValueError(f"Chromosome {chrom.name} must have positive length, got {chrom.length}")
            if chrom.name in index:
                raise ValueError(f"Duplicate chromosome name: {chrom.name}")
            index[chrom.name] = i
            offsets.append(total)
            total += chrom.length

        object.__setattr__(self, "_offsets", tuple(offsets))
        object.__setattr__(self, "_index", index)

    @classmethod
    def from_chrom_sizes(cls, name: str, path: str | Path) -> GenomeConfig:
        """Load a genome from a UCSC-style ``chrom.sizes`` file (name<TAB>length)."""
        chromosomes: list[Chromosome] = []
        with open(path, encoding="utf-8") as fh:
            for line_num, line in enumerate(fh, start=1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                parts = line.split()
                if len(parts) < 2:
                    raise ValueError(f"{path}:{line_num}: expected 'name length', got '{line}'")
                try:
                    length = int(parts[1])
                except ValueError as e:
                    raise ValueError(f"{path}:{line_num}: invalid length '{parts[1]}'") from e
                chromosomes.append(Chromosome(parts[0], length))
        return cls(name, tuple(chromosomes))

    @property
    def total_length(self) -> int:
        return self._offsets[-1] + self.chromosomes[-1].length

    def has_chromosome(self, name: str) -> bool:
        return name in self._index

    def chromosome_start(self, name: str) -> int:
        """Absolute coordinate of the first base of chromosome ``name``."""
        try:
            return self._offsets[self._index[name]]
        except KeyError as e:
            raise InvalidRange(f"Unknown chromosome {name} in genome {self.name}") from e

    def to_absolute(self, chrom: str, pos: int) -> int:
        """Convert a chromosome position (0-based, end inclusive allowed) to absolute."""
        start = self.chromosome_start(chrom)
        length = self.chromosomes[self._index[chrom]].length
        if not 0 <= pos <= length:
            raise InvalidRange(f"Position {pos} is outside {chrom} (length {length})")
        return start + pos

    def to_locus(self, absolute: int) -> tuple[str, int]:
        """Convert an absolute coordinate to (chromosome, position)."""
        if not 0 <= absolute < self.total_length:
            raise InvalidRange(f"Absolute position {absolute} is outside genome {self.name}")
        i = bisect.bisect_right(self._offsets, absolute) - 1
        return self.chromosomes[i].name, absolute - self._offsets[i]

    def interval(self, start: int, end: int) -> GenomicInterval:
        return GenomicInterval(start, end, self.total_length)

    def full_interval(self) -> GenomicInterval:
        return GenomicInterval(0, self.total_length, self.total_length)

    def to_loci(self, interval: GenomicInterval) -> list[Locus]:
        """Split an absolute interval into per-chromosome loci."""
        if interval.total_length != self.total_length:
            raise InvalidRange(f"Interval {interval} does not belong to genome {self.name}")

        loci: list[Locus] = []
        for chrom, offset in zip(self.chromosomes, self._offsets):
            chrom_end = offset + chrom.length
            if chrom_end <= interval.start:
                continue
            if offset >= interval.end:
                break
            loci.append(
                Locus(
                    chrom.name,
                    max(interval.start, offset) - offset,
                    min(interval.end, chrom_end) - offset,
                )
            )
        return loci

    def locus_to_interval(self, locus: Locus) -> GenomicInterval:
        return self.interval(self.to_absolute(locus.chrom, locus.start), self.to_absolute(locus.chrom, locus.end))

    def parse_region(self, region: str) -> GenomicInterval:
        """Parse a region string into an absolute interval.

        Supports formats:
            - chr1:1000-2000
            - chr1:1,000-2,000
            - chr1 (whole chromosome)

        Coordinates are 0-based and half-open.

        Raises:
            InvalidRange: If the format is invalid or the region is out of bounds.
        """
        if len(region) > MAX_REGION_LENGTH:
            raise InvalidRange(f"Region string too long (max {MAX_REGION_LENGTH} characters)")

        region = region.strip().replace(",", "")
        if ":" not in region:
            start = self.chromosome_start(region)
            length = self.chromosomes[self._index[region]].length
            return self.interval(start, start + length)

        try:
            chrom, coords = region.rsplit(":", 1)
            start_str, end_str = coords.split("-")
            start = int(start_str)
            end = int(end_str)
        except ValueError as e:
            raise InvalidRange(
                f"Invalid region format: '{region}'. Expected format: 'chr1:1000-2000'"
            ) from e

        if start > end:
            raise InvalidRange(f"Region start {start} is after end {end}")
        return self.interval(self.to_absolute(chrom, start), self.to_absolute(chrom, end))

    def __str__(self) -> str:
        return self.name


def genome_from_lengths(name: str, lengths: Sequence[tuple[str, int]]) -> GenomeConfig:
    """Build a genome from ``(chromosome, length)`` pairs."""
    return GenomeConfig(name, tuple(Chromosome(chrom, length) for chrom, length in lengths))
