"""Shared test fixtures for regionview tests."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import pytest

from regionview.core.alignment import AlignmentResponse, AlignmentSegment
from regionview.core.interval import Chromosome, GenomeConfig, Locus
from regionview.core.tracks import TrackModel


class FakeAlignmentSource:
    """In-process alignment source with scripted responses.

    Queries wait on a gate registered either for the query genome or for the
    exact loci tuple, which lets tests control completion order.
    """

    def __init__(self, responses=None, errors=None):
        self.responses: dict[str, AlignmentResponse] = dict(responses or {})
        self.errors: dict[str, BaseException] = dict(errors or {})
        self.gates: dict = {}
        self.calls: list[tuple[str, str, tuple[Locus, ...]]] = []

    async def query_alignment(
        self, primary_genome: str, query_genome: str, loci: Sequence[Locus]
    ) -> AlignmentResponse:
        loci = tuple(loci)
        self.calls.append((primary_genome, query_genome, loci))
        gate = self.gates.get(query_genome) or self.gates.get(loci)
        if gate is not None:
            await gate.wait()
        if query_genome in self.errors:
            raise self.errors[query_genome]
        return self.responses.get(query_genome, AlignmentResponse(()))

    def genomes_queried(self) -> list[str]:
        return [call[1] for call in self.calls]


def segment(primary: tuple[str, int, int], query: tuple[str, int, int], strand: str = "+"):
    return AlignmentSegment(Locus(*primary), Locus(*query), strand)


@pytest.fixture
def genome():
    """Single-chromosome genome of exactly 1 Mbp."""
    return GenomeConfig("hg38", (Chromosome("chr1", 1_000_000),))


@pytest.fixture
def multi_chrom_genome():
    """Three-chromosome genome: chr1 (1000), chr2 (500), chr3 (250)."""
    return GenomeConfig(
        "hg38",
        (Chromosome("chr1", 1000), Chromosome("chr2", 500), Chromosome("chr3", 250)),
    )


@pytest.fixture
def plain_tracks():
    """Tracks with no cross-genome alignment."""
    return [
        TrackModel("genes", "geneAnnotation", metadata={"genome": "hg38"}),
        TrackModel("signal", "bigwig", file_type="bigwig"),
    ]


@pytest.fixture
def comparative_tracks():
    """Alignment tracks against mm10 and rn6, declared in that order."""
    return [
        TrackModel("genes", "geneAnnotation"),
        TrackModel("hg38 vs mm10", "genomealign", query_genome="mm10"),
        TrackModel("hg38 vs rn6", "genomealign", file_type="genomealign", query_genome="rn6"),
    ]


@pytest.fixture
def fake_source():
    return FakeAlignmentSource()


@pytest.fixture
def make_source():
    """Factory for scripted alignment sources."""
    return FakeAlignmentSource


@pytest.fixture
def make_segment():
    return segment


@pytest.fixture
def gate():
    """Factory for asyncio events used to hold queries open."""
    return asyncio.Event
