"""
Lifecycle enrichment: classify every catalog entity from its wiki categories.

Flow
----
1. Load the whole catalog (heroes or items) from disk.
2. For each entity, through a ``BoundedWorkPool`` of ``wiki.concurrency``
   (default 8) concurrent lookups:
     - blank name            → ``unknown``, no network call
     - page missing/invalid  → ``unknown``
     - lookup failure        → ``unknown`` (HTTP error, malformed body, timeout)
     - otherwise             → first matching rule of the catalog's table
   The status is written onto the entity, overwriting any previous value, and
   tallied.
3. Rewrite the catalog atomically in one write.

Re-running on an already-enriched catalog yields the same statuses for the
same wiki state: classification never reads the previous ``status``.

A failure that escapes a worker (anything other than a lookup failure) is a
pool-level failure: the run aborts, nothing is written, and the catalog file
keeps its previous contents.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Optional, Protocol, Union

import httpx

from mlbb_counterpick.ingestion.catalog_store import load_catalog, save_catalog
from mlbb_counterpick.ingestion.pool import BoundedWorkPool
from mlbb_counterpick.ingestion.wiki_client import (
    LookupFailure,
    PageCategories,
    WikiClient,
    build_async_client,
)
from mlbb_counterpick.models.entity import CatalogEntity
from mlbb_counterpick.models.meta import RunMetadata
from mlbb_counterpick.pipeline.base import PipelineStage
from mlbb_counterpick.taxonomy.status_taxonomy import (
    CatalogKind,
    LifecycleStatus,
    StatusRule,
    classify_categories,
    rules_for,
)

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 8

# Per-entity failures that degrade to ``unknown`` instead of aborting the run.
LOOKUP_ERRORS: tuple[type[BaseException], ...] = (
    LookupFailure,
    httpx.HTTPError,
    asyncio.TimeoutError,
)


class CategorySource(Protocol):
    """Anything that can report a page's existence and category labels."""

    async def page_categories(self, title: str) -> PageCategories:
        ...


def empty_status_counts() -> dict[str, int]:
    """A tally with every lifecycle status at zero."""
    return {status.value: 0 for status in LifecycleStatus}


class EnrichmentPipeline:
    """Classify a list of entities concurrently and tally the outcomes.

    Attributes:
        source:         Category source (normally a ``WikiClient``).
        rules:          Ordered classification table for this catalog kind.
        concurrency:    Maximum lookups in flight.
        lookup_timeout: Seconds before one entity's lookup resolves to
                        ``unknown``; ``None`` disables the per-entity timeout.
    """

    def __init__(
        self,
        source: CategorySource,
        rules: Sequence[StatusRule],
        concurrency: int = DEFAULT_CONCURRENCY,
        lookup_timeout: Optional[float] = None,
        progress_every: int = 25,
    ) -> None:
        self.source = source
        self.rules = tuple(rules)
        self.concurrency = concurrency
        self.lookup_timeout = lookup_timeout
        self.progress_every = max(1, progress_every)

    async def classify(self, entity: CatalogEntity) -> LifecycleStatus:
        """Determine one entity's status. Never raises for lookup failures."""
        title = entity.lookup_title
        if not title:
            return LifecycleStatus.UNKNOWN

        try:
            page = await asyncio.wait_for(
                self.source.page_categories(title), timeout=self.lookup_timeout
            )
        except LOOKUP_ERRORS as exc:
            logger.warning("Lookup failed for %r: %s", title, str(exc) or exc.__class__.__name__)
            return LifecycleStatus.UNKNOWN

        return classify_categories(page.categories, self.rules, exists=page.exists)

    async def enrich(self, entities: Sequence[CatalogEntity]) -> dict[str, int]:
        """Classify every entity in place and return per-status counts.

        Raises:
            Exception: Any non-lookup failure from a worker (pool failure).
        """
        counts = empty_status_counts()
        total = len(entities)
        done = 0

        async def worker(entity: CatalogEntity, index: int) -> LifecycleStatus:
            nonlocal done
            status = await self.classify(entity)
            entity.status = status
            counts[status.value] += 1
            done += 1
            if done % self.progress_every == 0 or done == total:
                logger.info(
                    "Enrichment: %d/%d classified (%.0f%%)",
                    done, total, 100.0 * done / total,
                )
            return status

        await BoundedWorkPool(self.concurrency).map(entities, worker)
        return counts


class EnrichStage(PipelineStage):
    """Load a catalog, enrich it against the live wiki, and write it back.

    Usage::

        run = EnrichStage(config).run(kind="heroes")
        print(run.status_counts)
    """

    stage_name = "enrich"

    def _execute(
        self,
        run: RunMetadata,
        kind: Union[CatalogKind, str] = CatalogKind.HEROES,
        catalog_path: Optional[Union[str, Path]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ) -> int:
        kind = CatalogKind(kind)
        path = Path(catalog_path or self._default_path(kind))
        run.catalog_path = str(path)

        entities = load_catalog(path, kind)
        logger.info(
            "Enriching %d %s from %s (concurrency=%d)",
            len(entities), kind.value, path, self.config.wiki.concurrency,
        )

        counts = asyncio.run(self._enrich_async(entities, kind, transport))

        save_catalog(path, entities)
        run.status_counts = counts
        logger.info("%s status: %s", kind.value.capitalize(), counts)
        return len(entities)

    async def _enrich_async(
        self,
        entities: list[CatalogEntity],
        kind: CatalogKind,
        transport: Optional[httpx.AsyncBaseTransport],
    ) -> dict[str, int]:
        wiki_cfg = self.config.wiki
        async with build_async_client(wiki_cfg, transport=transport) as http:
            pipeline = EnrichmentPipeline(
                source=WikiClient(http, wiki_cfg),
                rules=rules_for(kind),
                concurrency=wiki_cfg.concurrency,
                lookup_timeout=wiki_cfg.lookup_timeout_seconds,
            )
            return await pipeline.enrich(entities)

    def _default_path(self, kind: CatalogKind) -> str:
        if kind == CatalogKind.HEROES:
            return self.config.data.heroes_file
        return self.config.data.items_file
