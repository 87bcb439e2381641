"""Unit tests for regionview.clients.alignment module."""

import asyncio
import json

import httpx
import pytest

from regionview.clients.alignment import AlignmentClient, _parse_response
from regionview.config import RegionViewConfig
from regionview.core.alignment import AlignmentResponse, AlignmentSegment
from regionview.core.interval import Locus

BASE_URL = "https://align.example.org"
ALIGN_URL = f"{BASE_URL}/alignment"

LOCI = [Locus("chr1", 0, 300_000)]

# -- Sample API response fixtures -------------------------------------------

ALIGNMENT_RESPONSE = {
    "records": [
        {
            "locus": {"chr": "chr1", "start": 100000, "end": 150000},
            "query_locus": {"chr": "chr5", "start": 1000, "end": 51000},
            "query_strand": "+",
        },
        {
            "locus": {"chr": "chr1", "start": 150000, "end": 200000},
            "query_locus": {"chr": "chr5", "start": 51500, "end": 101500},
            "query_strand": "-",
        },
    ],
    "primary_span": {
        "start": {"chr": "chr1", "pos": 0},
        "end": {"chr": "chr1", "pos": 300000},
    },
}

EMPTY_RESPONSE = {"records": [], "primary_span": None}


class TestParseResponse:
    """Tests for _parse_response."""

    @pytest.mark.unit
    def test_parse_valid_response(self):
        result = _parse_response(ALIGNMENT_RESPONSE)
        assert isinstance(result, AlignmentResponse)
        assert result.segments[0] == AlignmentSegment(
            Locus("chr1", 100000, 150000), Locus("chr5", 1000, 51000), "+"
        )
        assert result.segments[1].query_strand == "-"
        assert result.primary_span == (("chr1", 0), ("chr1", 300000))

    @pytest.mark.unit
    def test_parse_empty_response(self):
        result = _parse_response(EMPTY_RESPONSE)
        assert result.segments == ()
        assert result.primary_span is None

    @pytest.mark.unit
    def test_parse_no_records_key(self):
        assert _parse_response({}).segments == ()

    @pytest.mark.unit
    def test_strand_defaults_to_plus(self):
        data = {
            "records": [
                {
                    "locus": {"chr": "chr1", "start": 0, "end": 10},
                    "query_locus": {"chr": "chr2", "start": 0, "end": 10},
                }
            ]
        }
        assert _parse_response(data).segments[0].query_strand == "+"

    @pytest.mark.unit
    def test_missing_field(self):
        data = {"records": [{"locus": {"chr": "chr1", "start": 0}}]}
        with pytest.raises(ValueError, match="Malformed"):
            _parse_response(data)

    @pytest.mark.unit
    def test_not_a_dict(self):
        with pytest.raises(ValueError, match="Malformed"):
            _parse_response(["records"])  # type: ignore[arg-type]

    @pytest.mark.unit
    def test_invalid_locus(self):
        data = {
            "records": [
                {
                    "locus": {"chr": "chr1", "start": 20, "end": 10},
                    "query_locus": {"chr": "chr2", "start": 0, "end": 10},
                }
            ]
        }
        with pytest.raises(ValueError):
            _parse_response(data)


class TestAlignmentClient:
    """Tests for AlignmentClient."""

    @pytest.mark.unit
    def test_init_defaults(self):
        client = AlignmentClient()
        assert client.max_concurrent == 5
        assert client._semaphore._value == 5  # type: ignore[attr-defined]

    @pytest.mark.unit
    def test_trailing_slash_stripped(self):
        assert AlignmentClient(base_url=f"{BASE_URL}/").base_url == BASE_URL

    @pytest.mark.unit
    def test_from_config(self):
        config = RegionViewConfig(
            alignment_url=BASE_URL, alignment_timeout=3.0, max_concurrent_queries=2
        )
        client = AlignmentClient.from_config(config)
        assert client.base_url == BASE_URL
        assert client.timeout == 3.0
        assert client._semaphore._value == 2  # type: ignore[attr-defined]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_query_found(self, httpx_mock):
        httpx_mock.add_response(url=ALIGN_URL, method="POST", json=ALIGNMENT_RESPONSE)

        client = AlignmentClient(base_url=BASE_URL)
        result = await client.query_alignment("hg38", "mm10", LOCI)

        assert len(result.segments) == 2
        request = httpx_mock.get_requests()[0]
        assert json.loads(request.content) == {
            "primary_genome": "hg38",
            "query_genome": "mm10",
            "loci": [{"chr": "chr1", "start": 0, "end": 300000}],
        }

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_query_caches_result(self, httpx_mock):
        httpx_mock.add_response(url=ALIGN_URL, json=ALIGNMENT_RESPONSE)

        client = AlignmentClient(base_url=BASE_URL)
        result1 = await client.query_alignment("hg38", "mm10", LOCI)
        result2 = await client.query_alignment("hg38", "mm10", list(LOCI))

        assert result1 is result2
        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_concurrent_identical_queries_coalesced(self, httpx_mock):
        httpx_mock.add_response(url=ALIGN_URL, json=ALIGNMENT_RESPONSE)

        client = AlignmentClient(base_url=BASE_URL)
        results = await asyncio.gather(
            client.query_alignment("hg38", "mm10", LOCI),
            client.query_alignment("hg38", "mm10", LOCI),
            client.query_alignment("hg38", "mm10", LOCI),
        )

        assert results[0] is results[1] is results[2]
        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_different_genomes_not_shared(self, httpx_mock):
        httpx_mock.add_response(url=ALIGN_URL, json=ALIGNMENT_RESPONSE)
        httpx_mock.add_response(url=ALIGN_URL, json=EMPTY_RESPONSE)

        client = AlignmentClient(base_url=BASE_URL)
        await client.query_alignment("hg38", "mm10", LOCI)
        await client.query_alignment("hg38", "rn6", LOCI)

        assert len(httpx_mock.get_requests()) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_server_error_raises(self, httpx_mock):
        httpx_mock.add_response(url=ALIGN_URL, status_code=503)

        client = AlignmentClient(base_url=BASE_URL)
        with pytest.raises(httpx.HTTPStatusError):
            await client.query_alignment("hg38", "mm10", LOCI)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failure_not_cached(self, httpx_mock):
        httpx_mock.add_response(url=ALIGN_URL, status_code=500)
        httpx_mock.add_response(url=ALIGN_URL, json=EMPTY_RESPONSE)

        client = AlignmentClient(base_url=BASE_URL)
        with pytest.raises(httpx.HTTPStatusError):
            await client.query_alignment("hg38", "mm10", LOCI)
        result = await client.query_alignment("hg38", "mm10", LOCI)

        assert result.segments == ()
        assert len(httpx_mock.get_requests()) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_query_timeout(self, httpx_mock):
        httpx_mock.add_exception(httpx.ReadTimeout("Connection timed out"), url=ALIGN_URL)

        client = AlignmentClient(base_url=BASE_URL, timeout=1.0)
        with pytest.raises(httpx.ReadTimeout):
            await client.query_alignment("hg38", "mm10", LOCI)
