"""
Playable-roster pruning for the heroes catalog.

Category listings on the wiki also contain role pages, faction pages and
other non-hero articles. This stage keeps a hero record only if:
  - its trimmed name is non-empty,
  - the name does not contain an obvious non-hero marker (role, lane or
    faction words, "cancelled"), and
  - the name appears in the playable set: the union of the links on
    ``List_of_heroes`` and the members of the playable-hero categories.

Sources that fail to load are skipped. If every source fails the playable set
is empty and the stage aborts rather than writing an empty catalog.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional, Union

import httpx

from mlbb_counterpick.ingestion.catalog_store import load_heroes, save_catalog
from mlbb_counterpick.ingestion.wiki_client import WikiClient, build_async_client
from mlbb_counterpick.models.entity import Hero
from mlbb_counterpick.models.meta import RunMetadata
from mlbb_counterpick.pipeline.acquire import HERO_LIST_PAGE
from mlbb_counterpick.pipeline.base import PipelineStage
from mlbb_counterpick.pipeline.enrich import LOOKUP_ERRORS

logger = logging.getLogger(__name__)

PLAYABLE_CATEGORIES: tuple[str, ...] = (
    "Category:Heroes",
    "Category:Playable Heroes",
    "Category:Playable heroes",
)

NON_HERO_MARKERS: tuple[str, ...] = (
    "heroes", "cancelled", "canceled", "role", "roles",
    "fighter", "assassin", "mage", "marksman", "tank", "support",
    "lightborn", "v.e.n.o.m", "venom", "oriental fighters", "the exorcists",
    "exorcists", "member introduction", "heavenly artifacts", "side laner",
    "exp laner", "gold laner", "mid laner", "roamer", "jungler", "laner",
)


def is_obviously_not_hero(title: str) -> bool:
    lowered = title.lower()
    return any(marker in lowered for marker in NON_HERO_MARKERS)


def filter_playable(heroes: list[Hero], playable: set[str]) -> list[Hero]:
    """Keep heroes whose normalized name is in ``playable`` and looks like a hero."""
    kept = []
    for hero in heroes:
        name = hero.lookup_title
        if not name or is_obviously_not_hero(name):
            continue
        if name in playable:
            kept.append(hero)
    return kept


async def build_playable_set(wiki: WikiClient) -> set[str]:
    playable: set[str] = set()
    try:
        playable.update(t.strip() for t in await wiki.page_links(HERO_LIST_PAGE))
    except LOOKUP_ERRORS as exc:
        logger.warning("Could not read %s: %s", HERO_LIST_PAGE, exc)
    for category in PLAYABLE_CATEGORIES:
        try:
            playable.update(t.strip() for t in await wiki.category_members(category))
        except LOOKUP_ERRORS as exc:
            logger.warning("Could not list %s: %s", category, exc)
    playable.discard("")
    return playable


class PruneStage(PipelineStage):
    """Drop non-playable records from the heroes catalog."""

    stage_name = "prune"

    def _execute(
        self,
        run: RunMetadata,
        catalog_path: Optional[Union[str, Path]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs: Any,
    ) -> int:
        path = Path(catalog_path or self.config.data.heroes_file)
        run.catalog_path = str(path)
        heroes = load_heroes(path)

        playable = asyncio.run(self._playable_async(transport))
        if not playable:
            raise RuntimeError("Playable hero set is empty; refusing to prune.")

        kept = filter_playable(heroes, playable)
        save_catalog(path, kept)
        logger.info("Filtered heroes: %d -> %d", len(heroes), len(kept))
        return len(kept)

    async def _playable_async(self, transport: Optional[httpx.AsyncBaseTransport]) -> set[str]:
        async with build_async_client(self.config.wiki, transport=transport) as http:
            return await build_playable_set(WikiClient(http, self.config.wiki))
