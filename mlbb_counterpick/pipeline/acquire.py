"""
Catalog acquisition: build raw heroes/items catalogs from the wiki.

Flow
----
Heroes:
  1. Members of ``Category:Heroes`` (paginated).
  2. Fallback when the category is empty or unreachable: links on
     ``List_of_heroes``.
  3. Image URLs for every title (batched ``pageimages`` lookups).
  4. Records ``{id: 1.., name, roles: [], lanes: [], year: null, img,
     damageType: "", tags: []}``.

Items:
  1. Members of the first non-empty of ``Category:Equipment`` /
     ``Category:Items``; fallback: links on ``Equipment``.
  2. Titles that are listing pages (contain "Equipment", "List" or
     "Category:") are dropped.
  3. Records ``{id: <slug>, name, type: "", tags: [], notes: "", icon}``.

New records carry no ``status`` — run ``enrich`` afterwards. Image files
themselves are not downloaded here.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Optional, Union

import httpx

from mlbb_counterpick.ingestion.catalog_store import save_catalog
from mlbb_counterpick.ingestion.wiki_client import WikiClient, build_async_client
from mlbb_counterpick.models.entity import Hero, Item
from mlbb_counterpick.models.meta import RunMetadata
from mlbb_counterpick.pipeline.base import PipelineStage
from mlbb_counterpick.pipeline.enrich import LOOKUP_ERRORS
from mlbb_counterpick.taxonomy.status_taxonomy import CatalogKind

logger = logging.getLogger(__name__)

HERO_CATEGORY = "Category:Heroes"
HERO_LIST_PAGE = "List_of_heroes"
ITEM_CATEGORIES: tuple[str, ...] = ("Category:Equipment", "Category:Items")
ITEM_LIST_PAGE = "Equipment"

_NON_ITEM_TITLE = re.compile(r"Equipment|List|Category:", re.IGNORECASE)


def slugify(title: str) -> str:
    """``"Athena's Shield"`` → ``"athenas_shield"``."""
    slug = title.lower().replace("'", "")
    slug = re.sub(r"[^a-z0-9]+", "_", slug)
    return slug.strip("_")


async def _members_or_links(
    wiki: WikiClient,
    categories: tuple[str, ...],
    fallback_page: str,
) -> list[str]:
    """First non-empty category listing, else the fallback page's links."""
    for category in categories:
        try:
            titles = await wiki.category_members(category)
        except LOOKUP_ERRORS as exc:
            logger.warning("Could not list %s: %s", category, exc)
            continue
        if titles:
            logger.info("Found %d pages in %s", len(titles), category)
            return titles

    logger.info("Falling back to links on %s", fallback_page)
    return await wiki.page_links(fallback_page)


async def acquire_heroes(wiki: WikiClient) -> list[Hero]:
    titles = [t for t in await _members_or_links(wiki, (HERO_CATEGORY,), HERO_LIST_PAGE) if t]
    images = await wiki.page_images(titles)
    return [
        Hero.model_validate({
            "id": idx,
            "name": title,
            "roles": [],
            "lanes": [],
            "year": None,
            "img": images.get(title, ""),
            "damageType": "",
            "tags": [],
        })
        for idx, title in enumerate(titles, start=1)
    ]


async def acquire_items(wiki: WikiClient) -> list[Item]:
    titles = await _members_or_links(wiki, ITEM_CATEGORIES, ITEM_LIST_PAGE)
    titles = [t for t in titles if t and not _NON_ITEM_TITLE.search(t)]
    images = await wiki.page_images(titles)
    return [
        Item.model_validate({
            "id": slugify(title),
            "name": title,
            "type": "",
            "tags": [],
            "notes": "",
            "icon": images.get(title, ""),
        })
        for title in titles
    ]


class AcquireStage(PipelineStage):
    """Fetch a fresh raw catalog for one kind and write it to disk."""

    stage_name = "acquire"

    def _execute(
        self,
        run: RunMetadata,
        kind: Union[CatalogKind, str] = CatalogKind.HEROES,
        catalog_path: Optional[Union[str, Path]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs: Any,
    ) -> int:
        kind = CatalogKind(kind)
        if catalog_path is None:
            catalog_path = (
                self.config.data.heroes_file
                if kind == CatalogKind.HEROES
                else self.config.data.items_file
            )
        path = Path(catalog_path)
        run.catalog_path = str(path)

        entities = asyncio.run(self._acquire_async(kind, transport))
        if not entities:
            raise RuntimeError(f"Wiki returned no {kind.value}; refusing to write an empty catalog.")

        written = save_catalog(path, entities)
        logger.info("Wrote %d %s to %s", written, kind.value, path)
        return written

    async def _acquire_async(
        self,
        kind: CatalogKind,
        transport: Optional[httpx.AsyncBaseTransport],
    ) -> list[Any]:
        async with build_async_client(self.config.wiki, transport=transport) as http:
            wiki = WikiClient(http, self.config.wiki)
            if kind == CatalogKind.HEROES:
                return await acquire_heroes(wiki)
            return await acquire_items(wiki)
