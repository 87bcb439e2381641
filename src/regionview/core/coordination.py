"""Stateful coordination of the resolved primary view.

The manager owns the view a rendering layer should draw right now, and starts a
new expansion and alignment cycle whenever its inputs change. Results of cycles
that were superseded, or that finish after teardown, are dropped.

All fetch methods create ``asyncio`` tasks and must be called from a running
event loop.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ..config import RegionViewConfig
from ..constants import DEFAULT_MIN_VISUALIZATION_WIDTH
from .alignment import AlignmentSource, MultiAlignment, MultiAlignmentCalculator
from .errors import AlignmentUnavailable, InvalidRange, ManagerClosed, StaleResultDiscarded
from .expansion import RegionExpander, ViewExpansion
from .interval import GenomeConfig, GenomicInterval
from .tracks import TrackModel, visualization_width

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CoordinationPhase(enum.Enum):
    IDLE = "idle"
    EXPANDING = "expanding"
    ALIGNING = "aligning"
    RESOLVED = "resolved"
    FALLBACK_RESOLVED = "fallback_resolved"


class LivenessToken:
    """Marks whether the owner of pending computations is still alive."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


def _same_input(a: Any, b: Any) -> bool:
    # Numbers compare by value, everything else by identity
    if a is b:
        return True
    numbers = (int, float)
    return isinstance(a, numbers) and isinstance(b, numbers) and a == b


class SingleSlotMemo(Generic[T]):
    """Remembers the result of the most recent call only."""

    def __init__(self) -> None:
        self._key: tuple | None = None
        self._value: T | None = None

    def get_or_create(self, key: tuple, factory: Callable[[], T]) -> T:
        if (
            self._key is not None
            and len(key) == len(self._key)
            and all(_same_input(a, b) for a, b in zip(key, self._key))
        ):
            return self._value  # type: ignore[return-value]
        value = factory()
        self._key = key
        self._value = value
        return value

    def clear(self) -> None:
        self._key = None
        self._value = None


@dataclass(frozen=True)
class RenderInputs:
    """Everything a rendering layer needs for one draw."""

    alignments: asyncio.Task[MultiAlignment]
    bases_per_pixel: float
    primary_view_promise: asyncio.Task[ViewExpansion]
    primary_view: ViewExpansion


class ViewCoordinationManager:
    """Owns the current primary view for one visible track container.

    Args:
        genome: Primary genome coordinate space.
        tracks: Track list; replace it with a new sequence to signal a change.
        view_region: Interval the user requested.
        container_width: Pixel width of the track container.
        legend_width: Pixel width taken by track legends.
        source: Alignment source used for comparative tracks.
        expander: Region expander; defaults to a multiplier of 1.
        min_width: Smallest drawing width ever used.
    """

    def __init__(
        self,
        genome: GenomeConfig,
        tracks: Sequence[TrackModel],
        view_region: GenomicInterval,
        container_width: float,
        legend_width: float,
        source: AlignmentSource,
        expander: RegionExpander | None = None,
        min_width: float = DEFAULT_MIN_VISUALIZATION_WIDTH,
    ):
        self.expander = expander or RegionExpander()
        self.min_width = min_width
        self._genome = genome
        self._tracks = tracks
        self._view_region = view_region
        self._container_width = container_width
        self._legend_width = legend_width
        self._calculator = MultiAlignmentCalculator(genome, tracks, source)
        self._token = LivenessToken()

        self._primary_view = self.expander.calculate_expansion(
            view_region, self.visualization_width
        )
        self._phase = CoordinationPhase.IDLE
        self._latest = 0
        self._primary_memo: SingleSlotMemo[asyncio.Task[ViewExpansion]] = SingleSlotMemo()
        self._alignment_memo: SingleSlotMemo[asyncio.Task[MultiAlignment]] = SingleSlotMemo()
        self.discarded_results = 0

    @classmethod
    def from_config(
        cls,
        config: RegionViewConfig,
        genome: GenomeConfig,
        tracks: Sequence[TrackModel],
        view_region: GenomicInterval,
        container_width: float,
        legend_width: float,
        source: AlignmentSource,
    ) -> ViewCoordinationManager:
        return cls(
            genome,
            tracks,
            view_region,
            container_width,
            legend_width,
            source,
            expander=RegionExpander.from_config(config),
            min_width=config.min_visualization_width,
        )

    @property
    def primary_view(self) -> ViewExpansion:
        """The most recently resolved primary view."""
        return self._primary_view

    @property
    def phase(self) -> CoordinationPhase:
        return self._phase

    @property
    def active(self) -> bool:
        return not self._token.cancelled

    @property
    def genome(self) -> GenomeConfig:
        return self._genome

    @property
    def tracks(self) -> Sequence[TrackModel]:
        return self._tracks

    @property
    def view_region(self) -> GenomicInterval:
        return self._view_region

    @property
    def visualization_width(self) -> float:
        return visualization_width(
            self._tracks, self._container_width, self._legend_width, self.min_width
        )

    @property
    def bases_per_pixel(self) -> float:
        return self._view_region.width / self.visualization_width

    def update(
        self,
        *,
        view_region: GenomicInterval | None = None,
        tracks: Sequence[TrackModel] | None = None,
        container_width: float | None = None,
        legend_width: float | None = None,
    ) -> asyncio.Task[ViewExpansion] | None:
        """Apply new inputs and start a cycle if any of them changed.

        The new inputs are validated before any of them is stored, so a rejected
        update leaves the manager as it was.

        Returns:
            The pending primary view, or None when nothing changed.

        Raises:
            InvalidRange: If the region is empty or belongs to another genome.
            ManagerClosed: If the manager was closed.
        """
        self._check_open()
        region = self._view_region if view_region is None else view_region
        new_tracks = self._tracks if tracks is None else tracks
        new_container = self._container_width if container_width is None else container_width
        new_legend = self._legend_width if legend_width is None else legend_width

        tracks_changed = new_tracks is not self._tracks
        changed = (
            tracks_changed
            or region is not self._view_region
            or new_container != self._container_width
            or new_legend != self._legend_width
        )
        if not changed:
            return None

        width = visualization_width(new_tracks, new_container, new_legend, self.min_width)
        self._check_region(region, self._genome)
        self.expander.calculate_expansion(region, width)

        self._view_region = region
        self._container_width = new_container
        self._legend_width = new_legend
        if tracks_changed:
            self._tracks = new_tracks
            self._calculator.update_tracks(new_tracks)
        return self.fetch_primary_view(region, new_tracks, width)

    def set_genome(
        self, genome: GenomeConfig, view_region: GenomicInterval
    ) -> asyncio.Task[ViewExpansion]:
        """Switch primary genome, abandoning every computation for the old one.

        Raises:
            InvalidRange: If ``view_region`` is empty or not in ``genome``.
            ManagerClosed: If the manager was closed.
        """
        self._check_open()
        self._check_region(view_region, genome)
        primary_view = self.expander.calculate_expansion(view_region, self.visualization_width)

        self._genome = genome
        self._calculator.reset_genome(genome)
        self._primary_memo.clear()
        self._alignment_memo.clear()
        self._latest += 1
        self._phase = CoordinationPhase.IDLE
        self._view_region = view_region
        self._primary_view = primary_view
        return self.fetch_primary_view(self._view_region, self._tracks, self.visualization_width)

    def fetch_alignments(
        self,
        view_region: GenomicInterval,
        width: float,
        tracks: Sequence[TrackModel] | None = None,
    ) -> asyncio.Task[MultiAlignment]:
        """Pending multi-alignment for these inputs, shared across repeated calls.

        The task raises AlignmentUnavailable if every query genome failed.
        """
        self._check_open()
        self._check_region(view_region, self._genome)
        if tracks is None:
            tracks = self._tracks
        return self._alignment_memo.get_or_create(
            (self._genome, view_region, tracks, width),
            lambda: self._start_alignment(view_region, width, tracks),
        )

    def fetch_primary_view(
        self, view_region: GenomicInterval, tracks: Sequence[TrackModel], width: float
    ) -> asyncio.Task[ViewExpansion]:
        """Pending primary view for these inputs, shared across repeated calls.

        Expansion happens before this returns, so malformed inputs raise here.
        """
        self._check_open()
        self._check_region(view_region, self._genome)
        return self._primary_memo.get_or_create(
            (self._genome, view_region, tracks, width),
            lambda: self._start_cycle(view_region, tracks, width),
        )

    def render_inputs(self) -> RenderInputs:
        """Inputs for one render; repeated calls reuse the same pending tasks."""
        self._check_open()
        width = self.visualization_width
        return RenderInputs(
            alignments=self.fetch_alignments(self._view_region, width),
            bases_per_pixel=self.bases_per_pixel,
            primary_view_promise=self.fetch_primary_view(self._view_region, self._tracks, width),
            primary_view=self._primary_view,
        )

    def close(self) -> None:
        """Tear down; pending computations will no longer touch this manager.

        Any later call that would start a cycle raises ManagerClosed.
        """
        self._token.cancel()
        self._primary_memo.clear()
        self._alignment_memo.clear()
        self._phase = CoordinationPhase.IDLE

    def _check_open(self) -> None:
        if self._token.cancelled:
            raise ManagerClosed("View coordination manager is closed")

    @staticmethod
    def _check_region(region: GenomicInterval, genome: GenomeConfig) -> None:
        if region.total_length != genome.total_length:
            raise InvalidRange(f"Interval {region} does not belong to genome {genome.name}")

    def _start_alignment(
        self, view_region: GenomicInterval, width: float, tracks: Sequence[TrackModel]
    ) -> asyncio.Task[MultiAlignment]:
        view = self.expander.calculate_expansion(view_region, width)
        return asyncio.create_task(self._calculator.align(view, tracks))

    def _start_cycle(
        self, view_region: GenomicInterval, tracks: Sequence[TrackModel], width: float
    ) -> asyncio.Task[ViewExpansion]:
        view = self.expander.calculate_expansion(view_region, width)
        self._phase = CoordinationPhase.EXPANDING
        alignment = self.fetch_alignments(view_region, width, tracks)

        self._latest += 1
        self._phase = CoordinationPhase.ALIGNING
        return asyncio.create_task(self._resolve(self._latest, self._token, view, alignment))

    async def _resolve(
        self,
        sequence: int,
        token: LivenessToken,
        view: ViewExpansion,
        alignment: asyncio.Task[MultiAlignment],
    ) -> ViewExpansion:
        try:
            result = await asyncio.shield(alignment)
        except AlignmentUnavailable as e:
            logger.warning("Falling back to unaligned primary view: %s", e)
            self._apply(sequence, token, view, CoordinationPhase.FALLBACK_RESOLVED)
            return view
        except Exception:
            if not token.cancelled and sequence == self._latest:
                self._phase = CoordinationPhase.IDLE
            raise

        resolved = result.primary_view or view
        self._apply(sequence, token, resolved, CoordinationPhase.RESOLVED)
        return resolved

    def _apply(
        self,
        sequence: int,
        token: LivenessToken,
        view: ViewExpansion,
        phase: CoordinationPhase,
    ) -> None:
        if token.cancelled:
            return
        if sequence != self._latest:
            self.discarded_results += 1
            logger.debug("%s", StaleResultDiscarded(sequence, self._latest))
            return
        self._primary_view = view
        self._phase = phase
