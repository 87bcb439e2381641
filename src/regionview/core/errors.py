"""Exception taxonomy for view expansion and multi-genome alignment."""

from __future__ import annotations

from collections.abc import Mapping


class RegionViewError(Exception):
    """Base class for all regionview errors."""


class InvalidRange(RegionViewError, ValueError):
    """An interval is non-monotonic or falls outside its coordinate space."""


class InvalidWidth(RegionViewError, ValueError):
    """A drawing width is not positive."""


class AlignmentQueryFailed(RegionViewError):
    """A single query genome's alignment request failed."""

    def __init__(self, genome: str, cause: BaseException | str):
        self.genome = genome
        self.cause = cause
        super().__init__(f"Alignment query for {genome} failed: {cause}")


class AlignmentUnavailable(RegionViewError):
    """Every query genome's alignment request failed."""

    def __init__(self, failures: Mapping[str, AlignmentQueryFailed]):
        self.failures = dict(failures)
        genomes = ", ".join(self.failures) or "none"
        super().__init__(f"No alignment available for query genomes: {genomes}")


class StaleResultDiscarded(RegionViewError):
    """A computation resolved after its inputs were superseded."""

    def __init__(self, sequence: int, latest: int):
        self.sequence = sequence
        self.latest = latest
        super().__init__(f"Result for request {sequence} superseded by request {latest}")


class ManagerClosed(RegionViewError):
    """A coordination manager was used after it was torn down."""
