"""View expansion and multi-genome alignment coordination for genome browsers."""

from .config import RegionViewConfig
from .core import (
    GenomeConfig,
    GenomicInterval,
    MultiAlignmentCalculator,
    RegionExpander,
    TrackModel,
    ViewCoordinationManager,
    ViewExpansion,
)

__version__ = "0.1.0"

__all__ = [
    "GenomeConfig",
    "GenomicInterval",
    "MultiAlignmentCalculator",
    "RegionExpander",
    "RegionViewConfig",
    "TrackModel",
    "ViewCoordinationManager",
    "ViewExpansion",
]
