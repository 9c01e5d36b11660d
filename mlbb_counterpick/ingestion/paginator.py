"""
Continuation-token pagination.

``PaginatedFetcher`` wraps one query type whose responses carry a chunk of
results plus an optional opaque continuation token that must be sent back,
unchanged, to get the next chunk. It accumulates every chunk into one ordered
list.

Termination rules (checked after each page's chunk is appended):
  1. The response has no continuation token (``None`` or empty).
  2. The response returns the same token that was just sent.
  3. ``max_pages`` pages have been fetched (logged as a warning).

A failure on any page propagates to the caller; partial accumulations are
never returned.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One response page.

    Attributes:
        items:        Result chunk carried by this page.
        continuation: Token to echo on the next request; falsy when exhausted.
    """

    items: list[T] = field(default_factory=list)
    continuation: Optional[Any] = None


class PaginatedFetcher(Generic[T]):
    """Follow continuation tokens until the source is exhausted.

    Usage::

        async def fetch_page(token):
            data = await call_api(token)
            return Page(items=data["rows"], continuation=data.get("next"))

        rows = await PaginatedFetcher(fetch_page).fetch_all()

    Attributes:
        fetch_page: Coroutine function taking the previous continuation token
            (``None`` on the first call) and returning a ``Page``.
        max_pages:  Optional hard cap on the number of requests.
    """

    def __init__(
        self,
        fetch_page: Callable[[Optional[Any]], Awaitable[Page[T]]],
        max_pages: Optional[int] = None,
    ) -> None:
        if max_pages is not None and max_pages < 1:
            raise ValueError(f"max_pages must be >= 1, got {max_pages}.")
        self.fetch_page = fetch_page
        self.max_pages = max_pages

    async def fetch_all(self) -> list[T]:
        """Fetch every page and return the concatenated chunks in order."""
        accumulated: list[T] = []
        token: Optional[Any] = None
        pages = 0

        while True:
            page = await self.fetch_page(token)
            pages += 1
            accumulated.extend(page.items)

            next_token = page.continuation
            if not next_token:
                break
            if token is not None and next_token == token:
                logger.warning(
                    "Continuation token repeated after %d page(s); treating as exhausted",
                    pages,
                )
                break
            if self.max_pages is not None and pages >= self.max_pages:
                logger.warning(
                    "Stopped paginating at max_pages=%d with more results pending",
                    self.max_pages,
                )
                break
            token = next_token

        logger.debug("Paginated fetch complete: %d page(s), %d item(s)", pages, len(accumulated))
        return accumulated
