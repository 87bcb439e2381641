"""Track metadata and the genome associations derived from it."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..constants import ALIGNMENT_TRACK_TYPE, DEFAULT_MIN_VISUALIZATION_WIDTH, G3D_TRACK_TYPE
from ..genomes import same_genome


@dataclass(frozen=True, eq=False)
class TrackModel:
    """Read-only description of a data track.

    Equality is identity: callers signal a changed track list by passing new
    instances, never by mutating old ones.
    """

    name: str
    type: str
    file_type: str | None = None
    query_genome: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def get_metadata(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    @property
    def is_alignment(self) -> bool:
        """Whether this track draws a cross-genome alignment."""
        return (self.type or "").lower() == ALIGNMENT_TRACK_TYPE or (
            self.file_type or ""
        ).lower() == ALIGNMENT_TRACK_TYPE

    @property
    def genome(self) -> str | None:
        """The genome this track's data is expressed in, if declared."""
        return self.query_genome or self.get_metadata("genome")


def alignment_tracks(tracks: Sequence[TrackModel]) -> list[TrackModel]:
    return [track for track in tracks if track.is_alignment]


def secondary_genomes(tracks: Sequence[TrackModel], primary_genome: str) -> list[str]:
    """Distinct query genomes referenced by alignment tracks, in declared order.

    The primary genome (under any alias) and tracks with no genome are skipped.
    """
    genomes: list[str] = []
    for track in alignment_tracks(tracks):
        genome = track.genome
        if not genome or same_genome(genome, primary_genome):
            continue
        if any(same_genome(genome, seen) for seen in genomes):
            continue
        genomes.append(genome)
    return genomes


def visualization_width(
    tracks: Sequence[TrackModel],
    container_width: float,
    legend_width: float,
    minimum: float = DEFAULT_MIN_VISUALIZATION_WIDTH,
) -> float:
    """Pixel width available for drawing track data.

    A lone 3D-structure track draws across the whole container; everything else
    leaves room for the track legend.
    """
    if len(tracks) == 1 and (tracks[0].type or "").lower() == G3D_TRACK_TYPE:
        return max(minimum, container_width)
    return max(minimum, container_width - legend_width)
