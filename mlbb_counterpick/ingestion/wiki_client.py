"""
Fandom MediaWiki API client — the external category source.

API:   https://mobile-legends.fandom.com/api.php
Docs:  https://www.mediawiki.org/wiki/API:Query

Queries used
------------
Page categories (lifecycle classification)::

    ?action=query&prop=categories&cllimit=max&clshow=!hidden&titles=<title>

Category members (catalog acquisition)::

    ?action=query&list=categorymembers&cmtitle=<cat>&cmlimit=500&cmnamespace=0

Page images (catalog acquisition, at most 50 titles per request)::

    ?action=query&prop=pageimages&piprop=original|thumbnail&pithumbsize=512&titles=a|b

Page links (fallback listing)::

    ?action=parse&page=<page>&prop=links

Continuation: list queries return a top-level ``continue`` object (e.g.
``{"clcontinue": "...", "continue": "||"}``) that is merged verbatim into the
next request's parameters. ``PaginatedFetcher`` drives the loop.

Errors: transport failures and non-2xx responses surface as ``httpx.HTTPError``
subclasses; bodies that are not the expected JSON shape raise
``MalformedResponseError``. Both are per-entity ``LookupFailure``s to the
enrichment pipeline, never fatal to a run.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from mlbb_counterpick.config import WikiConfig
from mlbb_counterpick.ingestion.paginator import Page, PaginatedFetcher

logger = logging.getLogger(__name__)


# ── Exceptions ────────────────────────────────────────────────────────────────


class LookupFailure(RuntimeError):
    """A single entity's external lookup could not be completed."""


class MalformedResponseError(LookupFailure):
    """The API returned a body that is not the expected JSON document.

    Attributes:
        params: Query parameters of the failed request.
    """

    def __init__(self, message: str, params: Optional[dict[str, Any]] = None) -> None:
        self.params = dict(params or {})
        super().__init__(message)


# ── Response types ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PageCategories:
    """Existence flag plus category labels for one wiki page."""

    title: str
    exists: bool
    categories: list[str] = field(default_factory=list)


# ── Client ────────────────────────────────────────────────────────────────────


def build_async_client(
    config: Optional[WikiConfig] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` with the configured timeout and UA.

    ``transport`` lets tests plug in ``httpx.MockTransport``.
    """
    config = config or WikiConfig()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        follow_redirects=True,
        headers={"User-Agent": config.user_agent, "Accept": "application/json"},
        transport=transport,
    )


class WikiClient:
    """Async client for the subset of the MediaWiki API this package reads.

    Usage::

        async with build_async_client(config.wiki) as http:
            wiki = WikiClient(http, config.wiki)
            page = await wiki.page_categories("Tigreal")

    The caller owns the ``httpx.AsyncClient`` lifecycle; one client is shared
    by every concurrent lookup in a run.
    """

    def __init__(self, http: httpx.AsyncClient, config: Optional[WikiConfig] = None) -> None:
        self.http = http
        self.config = config or WikiConfig()

    # ── Low-level request ─────────────────────────────────────────────────────

    async def _get(self, params: dict[str, Any]) -> dict[str, Any]:
        """Issue one API call and return the decoded JSON object.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status.
            MalformedResponseError: If the body is not a JSON object.
        """
        query = {"format": "json", **params}
        resp = await self.http.get(self.config.api_url, params=query)
        resp.raise_for_status()
        try:
            data = resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedResponseError(
                f"Bad JSON from {self.config.api_url}: {exc}", query
            ) from exc
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Expected a JSON object from {self.config.api_url}, "
                f"got {type(data).__name__}",
                query,
            )
        if "error" in data:
            error = data["error"] if isinstance(data["error"], dict) else {}
            raise MalformedResponseError(
                f"API error {error.get('code', '?')}: {error.get('info', data['error'])}",
                query,
            )
        return data

    async def _paginate(
        self,
        params: dict[str, Any],
        extract: Callable[[dict[str, Any]], list[Any]],
    ) -> list[Any]:
        """Run a continuation-token query; ``extract(data)`` returns one chunk."""

        async def fetch_page(token: Optional[dict[str, Any]]) -> Page[Any]:
            query = dict(params)
            if token:
                query.update(token)
            data = await self._get(query)
            cont = data.get("continue")
            if cont is not None and not isinstance(cont, dict):
                raise MalformedResponseError("'continue' is not an object", query)
            return Page(items=extract(data), continuation=cont or None)

        return await PaginatedFetcher(fetch_page, max_pages=self.config.max_pages).fetch_all()

    # ── Queries ───────────────────────────────────────────────────────────────

    async def page_categories(self, title: str) -> PageCategories:
        """Fetch every visible category label of one page.

        A page reported as ``missing`` or ``invalid`` (or no page at all) is
        returned with ``exists=False`` and no categories.
        """
        exists = True

        def extract(data: dict[str, Any]) -> list[str]:
            nonlocal exists
            page = _first_page(data)
            if page is None or "missing" in page or "invalid" in page:
                exists = False
                return []
            return _titles(_list_field(page, "categories"), "title")

        categories = await self._paginate(
            {
                "action": "query",
                "prop": "categories",
                "cllimit": "max",
                "clshow": "!hidden",
                "titles": title,
            },
            extract,
        )
        if not exists:
            return PageCategories(title=title, exists=False)
        return PageCategories(title=title, exists=True, categories=categories)

    async def category_members(self, category: str) -> list[str]:
        """Return the titles of all main-namespace pages in ``category``."""

        def extract(data: dict[str, Any]) -> list[str]:
            members = _list_field(_section(data, "query"), "categorymembers")
            return _titles(members, "title")

        return await self._paginate(
            {
                "action": "query",
                "list": "categorymembers",
                "cmtitle": category,
                "cmlimit": "500",
                "cmnamespace": "0",
            },
            extract,
        )

    async def page_images(self, titles: list[str]) -> dict[str, str]:
        """Map each title to its original (or thumbnail) image URL.

        Titles are requested in batches of ``config.image_batch_size``.
        Titles without an image are mapped to ``""``.
        """
        by_title: dict[str, str] = {}
        size = self.config.image_batch_size
        for start in range(0, len(titles), size):
            chunk = titles[start:start + size]
            data = await self._get({
                "action": "query",
                "prop": "pageimages",
                "piprop": "original|thumbnail",
                "pithumbsize": "512",
                "titles": "|".join(chunk),
            })
            for page in _section(_section(data, "query"), "pages").values():
                if not isinstance(page, dict):
                    raise MalformedResponseError("page entry is not an object")
                page_title = page.get("title")
                if not page_title:
                    continue
                original = _section(page, "original").get("source")
                thumbnail = _section(page, "thumbnail").get("source")
                by_title[str(page_title)] = str(original or thumbnail or "")
        return by_title

    async def page_links(self, page: str) -> list[str]:
        """Return existing main-namespace link targets from a rendered page."""
        data = await self._get({"action": "parse", "page": page, "prop": "links"})
        links = _list_field(_section(data, "parse"), "links")
        existing = [
            link for link in links
            if isinstance(link, dict) and link.get("ns") == 0 and "exists" in link
        ]
        return _titles(existing, "*")


# ── Response shape helpers ────────────────────────────────────────────────────
# Each raises MalformedResponseError so callers only ever see LookupFailure.


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    """``data[key]`` as an object; absent or null reads as ``{}``."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedResponseError(f"'{key}' is not an object")
    return value


def _list_field(data: dict[str, Any], key: str) -> list[Any]:
    """``data[key]`` as a list; absent or null reads as ``[]``."""
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedResponseError(f"'{key}' is not a list")
    return value


def _titles(entries: list[Any], key: str) -> list[str]:
    """Non-empty string ``entry[key]`` values; a non-string title is malformed."""
    titles: list[str] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        value = entry.get(key)
        if not value:
            continue
        if not isinstance(value, str):
            raise MalformedResponseError(f"'{key}' is not a string: {value!r}")
        titles.append(value)
    return titles


def _first_page(data: dict[str, Any]) -> Optional[dict[str, Any]]:
    pages = _section(_section(data, "query"), "pages")
    if not pages:
        return None
    first = next(iter(pages.values()))
    if not isinstance(first, dict):
        raise MalformedResponseError("page entry is not an object")
    return first
