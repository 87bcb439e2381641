"""Core interval, expansion, alignment and coordination modules."""

from .alignment import (
    AlignmentResponse,
    AlignmentSegment,
    AlignmentSource,
    GenomeAlignment,
    MultiAlignment,
    MultiAlignmentCalculator,
    PlacedSegment,
)
from .coordination import (
    CoordinationPhase,
    LivenessToken,
    RenderInputs,
    SingleSlotMemo,
    ViewCoordinationManager,
)
from .errors import (
    AlignmentQueryFailed,
    AlignmentUnavailable,
    InvalidRange,
    InvalidWidth,
    ManagerClosed,
    RegionViewError,
    StaleResultDiscarded,
)
from .expansion import Gap, RegionExpander, ViewExpansion, merge_gaps
from .interval import Chromosome, GenomeConfig, GenomicInterval, Locus, genome_from_lengths
from .tracks import TrackModel, alignment_tracks, secondary_genomes, visualization_width

__all__ = [
    "AlignmentQueryFailed",
    "AlignmentResponse",
    "AlignmentSegment",
    "AlignmentSource",
    "AlignmentUnavailable",
    "Chromosome",
    "CoordinationPhase",
    "Gap",
    "GenomeAlignment",
    "GenomeConfig",
    "GenomicInterval",
    "InvalidRange",
    "InvalidWidth",
    "LivenessToken",
    "Locus",
    "ManagerClosed",
    "MultiAlignment",
    "MultiAlignmentCalculator",
    "PlacedSegment",
    "RegionExpander",
    "RegionViewError",
    "RenderInputs",
    "SingleSlotMemo",
    "StaleResultDiscarded",
    "TrackModel",
    "ViewCoordinationManager",
    "ViewExpansion",
    "alignment_tracks",
    "genome_from_lengths",
    "merge_gaps",
    "secondary_genomes",
    "visualization_width",
]
