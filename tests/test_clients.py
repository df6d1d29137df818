"""Tests for DBLP and Semantic Scholar lookup clients."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from bibtex_auditor import (
    AsyncHttpClient,
    DBLPClient,
    LookupFailure,
    LookupRecord,
    SemanticScholarClient,
    dblp_hit_to_record,
    s2_data_to_record,
)


def _search(client_cls, handler, query="Attention Is All You Need", limit=1, **kwargs):
    """Run client_cls(...).search against an httpx.MockTransport handler."""

    async def _go():
        async with AsyncHttpClient(transport=httpx.MockTransport(handler)) as http:
            return await client_cls(http, **kwargs).search(query, limit)

    return asyncio.run(_go())


DBLP_HIT = {
    "info": {
        "title": "Attention is All you Need.",
        "year": "2017",
        "venue": "NIPS",
        "authors": {
            "author": [
                {"@pid": "1", "text": "Ashish Vaswani"},
                {"@pid": "2", "text": "Noam Shazeer"},
            ]
        },
    }
}


class TestDblpHitToRecord:
    """Tests for dblp_hit_to_record."""

    def test_basic_conversion(self):
        rec = dblp_hit_to_record(DBLP_HIT)
        assert rec == LookupRecord(
            title="Attention is All you Need",
            year=2017,
            authors=("Ashish Vaswani", "Noam Shazeer"),
        )

    def test_single_author_dict(self):
        hit = {"info": {"title": "Solo Work", "authors": {"author": {"text": "Jane Doe"}}}}
        assert dblp_hit_to_record(hit).authors == ("Jane Doe",)

    def test_disambiguation_suffix_removed(self):
        hit = {"info": {"title": "Some Work", "authors": {"author": [{"text": "Wei Li 0001"}]}}}
        assert dblp_hit_to_record(hit).authors == ("Wei Li",)

    def test_html_stripped_from_title(self):
        hit = {"info": {"title": "<i>Italic</i> Title."}}
        assert dblp_hit_to_record(hit).title == "Italic Title"

    def test_invalid_year(self):
        hit = {"info": {"title": "Some Work", "year": "n/a"}}
        assert dblp_hit_to_record(hit).year is None

    def test_missing_title(self):
        assert dblp_hit_to_record({"info": {"year": "2020"}}) is None


class TestS2DataToRecord:
    """Tests for s2_data_to_record."""

    def test_basic_conversion(self):
        data = {"title": "Attention is All you Need", "year": 2017, "authors": [{"name": "Ashish Vaswani"}]}
        assert s2_data_to_record(data) == LookupRecord("Attention is All you Need", 2017, ("Ashish Vaswani",))

    def test_missing_fields(self):
        rec = s2_data_to_record({"title": "Untitled Study", "year": None, "authors": None})
        assert rec == LookupRecord("Untitled Study")

    def test_missing_title(self):
        assert s2_data_to_record({"year": 2020}) is None


class TestDBLPClient:
    """Tests for DBLPClient.search."""

    def test_search_parses_hits(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"result": {"hits": {"hit": [DBLP_HIT]}}})

        records = _search(DBLPClient, handler)

        assert records == [dblp_hit_to_record(DBLP_HIT)]
        assert seen["params"] == {"q": "Attention Is All You Need", "h": "1", "format": "json"}

    def test_no_hits(self):
        records = _search(DBLPClient, lambda request: httpx.Response(200, json={"result": {"hits": {"@total": "0"}}}))
        assert records == []

    def test_single_hit_dict(self):
        records = _search(DBLPClient, lambda request: httpx.Response(200, json={"result": {"hits": {"hit": DBLP_HIT}}}))
        assert len(records) == 1

    def test_http_error_raises(self):
        with pytest.raises(LookupFailure, match="HTTP 500"):
            _search(DBLPClient, lambda request: httpx.Response(500))

    def test_invalid_json_raises(self):
        with pytest.raises(LookupFailure, match="invalid JSON"):
            _search(DBLPClient, lambda request: httpx.Response(200, content=b"<html>"))

    def test_unexpected_shape_raises(self):
        with pytest.raises(LookupFailure):
            _search(DBLPClient, lambda request: httpx.Response(200, json=["not", "a", "dict"]))

    def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(LookupFailure, match="connection refused"):
            _search(DBLPClient, handler)


class TestSemanticScholarClient:
    """Tests for SemanticScholarClient.search."""

    def test_search_parses_data(self):
        payload = {"data": [{"title": "Attention is All you Need", "year": 2017, "authors": [{"name": "A. Vaswani"}]}]}
        records = _search(SemanticScholarClient, lambda request: httpx.Response(200, json=payload))
        assert records == [LookupRecord("Attention is All you Need", 2017, ("A. Vaswani",))]

    def test_limit_applied(self):
        payload = {"data": [{"title": f"Paper {i}"} for i in range(3)]}
        records = _search(SemanticScholarClient, lambda request: httpx.Response(200, json=payload), limit=2)
        assert [r.title for r in records] == ["Paper 0", "Paper 1"]

    def test_api_key_header(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["key"] = request.headers.get("x-api-key")
            seen["path"] = request.url.path
            return httpx.Response(200, json={"data": []})

        _search(SemanticScholarClient, handler, api_key="secret")

        assert seen["key"] == "secret"
        assert seen["path"] == "/graph/v1/paper/search"

    def test_no_api_key_header_by_default(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["key"] = request.headers.get("x-api-key")
            return httpx.Response(200, json={"total": 0})

        assert _search(SemanticScholarClient, handler) == []
        assert seen["key"] is None

    def test_rate_limited_raises(self):
        with pytest.raises(LookupFailure, match="HTTP 429"):
            _search(SemanticScholarClient, lambda request: httpx.Response(429))
