"""Async lookup clients for external bibliographic indexes.

Each client exposes ``search(query, limit)`` returning an ordered list of
LookupRecord. Transport errors, HTTP error statuses and malformed payloads
raise LookupFailure; there is no retry.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import httpx

from bibtex_auditor._version import __version__
from bibtex_auditor.utils import collapse_whitespace

# API endpoints
DBLP_API_SEARCH = "https://dblp.org/search/publ/api"
S2_API = "https://api.semanticscholar.org/graph/v1"

_HTML_TAG_RE = re.compile(r"<[^>]*>")


class LookupFailure(Exception):
    """A lookup service call failed or returned data that could not be read."""


@dataclass(frozen=True)
class LookupRecord:
    """A search hit from a lookup service."""

    title: str
    year: int | None = None
    authors: tuple[str, ...] = ()


# ------------- Async HTTP Client -------------


class AsyncHttpClient:
    """Thin wrapper over httpx.AsyncClient that raises LookupFailure on errors."""

    def __init__(
        self,
        timeout: float = 20.0,
        user_agent: str = f"bibtex-auditor/{__version__}",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the async HTTP client.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client instance."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={"User-Agent": self.user_agent},
                follow_redirects=True,
                transport=self.transport,
            )
        return self._client

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET url and decode the JSON body.

        Raises:
            LookupFailure: On transport errors, status >= 400 or invalid JSON
        """
        try:
            resp = await self.client.get(url, params=params, headers={**(headers or {}), "Accept": "application/json"})
        except httpx.HTTPError as e:
            raise LookupFailure(f"Request to {url} failed: {e}") from e
        if resp.status_code >= 400:
            raise LookupFailure(f"{url} returned HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise LookupFailure(f"{url} returned invalid JSON") from e

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


# ------------- API Response Converters -------------


def _parse_year(value: Any) -> int | None:
    try:
        return int(value) if value else None
    except (TypeError, ValueError):
        return None


def dblp_hit_to_record(hit: dict[str, Any]) -> LookupRecord | None:
    """Convert a DBLP hit to a LookupRecord."""
    info = hit.get("info") or {}
    title = _HTML_TAG_RE.sub("", info.get("title") or "")
    title = collapse_whitespace(title).rstrip(".")
    if not title:
        return None

    # DBLP returns a dict instead of a list when there is a single author
    authors_field = (info.get("authors") or {}).get("author")
    if isinstance(authors_field, dict):
        authors_field = [authors_field]
    authors: list[str] = []
    for a in authors_field or []:
        name = (a.get("text") or a.get("name") or "") if isinstance(a, dict) else str(a)
        # Disambiguation suffixes like "Wei Li 0001"
        name = re.sub(r"\s+\d{4}$", "", name.strip())
        if name:
            authors.append(name)

    return LookupRecord(title=title, year=_parse_year(info.get("year")), authors=tuple(authors))


def s2_data_to_record(data: dict[str, Any]) -> LookupRecord | None:
    """Convert Semantic Scholar paper data to a LookupRecord."""
    title = collapse_whitespace(data.get("title") or "")
    if not title:
        return None
    authors = tuple(a.get("name") for a in data.get("authors") or [] if a.get("name"))
    return LookupRecord(title=title, year=_parse_year(data.get("year")), authors=authors)


# ------------- API Clients -------------


class DBLPClient:
    """DBLP API client for computer science publications."""

    name = "dblp"

    def __init__(self, http: AsyncHttpClient):
        self.http = http

    async def search(self, query: str, limit: int = 1) -> list[LookupRecord]:
        """Search DBLP for bibliographic records."""
        params = {"q": query, "h": limit, "format": "json"}
        data = await self.http.get_json(DBLP_API_SEARCH, params=params)
        try:
            hits = data.get("result", {}).get("hits", {}).get("hit", [])
        except AttributeError as e:
            raise LookupFailure("Unexpected DBLP response format") from e
        if isinstance(hits, dict):
            hits = [hits]
        records = [dblp_hit_to_record(h) for h in hits if isinstance(h, dict)]
        return [r for r in records if r is not None][:limit]


class SemanticScholarClient:
    """Semantic Scholar API client."""

    name = "semanticscholar"
    FIELDS = "title,authors,year"

    def __init__(self, http: AsyncHttpClient, api_key: str | None = None):
        self.http = http
        self.api_key = api_key

    async def search(self, query: str, limit: int = 1) -> list[LookupRecord]:
        """Search Semantic Scholar for papers."""
        params = {"query": query, "limit": limit, "fields": self.FIELDS}
        headers = {"x-api-key": self.api_key} if self.api_key else None
        data = await self.http.get_json(f"{S2_API}/paper/search", params=params, headers=headers)
        if not isinstance(data, dict):
            raise LookupFailure("Unexpected Semantic Scholar response format")
        items = data.get("data") or []
        records = [s2_data_to_record(item) for item in items if isinstance(item, dict)]
        return [r for r in records if r is not None][:limit]
