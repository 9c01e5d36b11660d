"""
Shared pytest fixtures for the MLBB counter-pick test suite.

Provides:
  - Hero / item factories and a small sample roster.
  - ``item_catalog``: every item id the recommenders can emit.
  - ``counters_kb``: a small counters knowledge base.
  - ``wiki_transport``: builds an ``httpx.MockTransport`` that answers
    MediaWiki API calls from a ``params -> JSON`` handler.
  - ``app_config``: an ``AppConfig`` whose data files live in ``tmp_path``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from mlbb_counterpick.config import AppConfig, DataConfig, LoggingConfig, WikiConfig
from mlbb_counterpick.models.counters import CountersKnowledgeBase
from mlbb_counterpick.models.entity import Hero, Item

TEST_API_URL = "https://wiki.test/api.php"


# ── Entity factories ──────────────────────────────────────────────────────────

@pytest.fixture
def make_hero() -> Callable[..., Hero]:
    """Factory: ``make_hero(id, name, damage="physical", roles=(), tags=(), status=None)``."""

    def _make(
        hero_id: int | str,
        name: str,
        damage: str = "physical",
        roles: tuple[str, ...] = (),
        tags: tuple[str, ...] = (),
        status: str | None = None,
    ) -> Hero:
        return Hero.model_validate({
            "id": hero_id,
            "name": name,
            "damageType": damage,
            "roles": list(roles),
            "tags": list(tags),
            "status": status,
        })

    return _make


@pytest.fixture
def sample_heroes(make_hero) -> list[Hero]:
    """Five heroes covering every damage type and the Tank role."""
    return [
        make_hero(1, "Tigreal", "physical", roles=("Tank",), tags=("cc",)),
        make_hero(2, "Alice", "magic", roles=("Mage", "Tank"), tags=("sustain",)),
        make_hero(3, "Layla", "physical", roles=("Marksman",)),
        make_hero(4, "Eudora", "magic", roles=("Mage",), tags=("burst",)),
        make_hero(5, "Esmeralda", "hybrid", roles=("Mage", "Tank"), tags=("regen",)),
    ]


ALL_ITEM_IDS = (
    "athenas_shield", "radiant_armor", "antique_cuirass", "blade_armor",
    "dominance_ice", "immortality",
    "blade_of_despair", "malefic_roar", "sea_halberd",
    "genius_wand", "divine_glaive", "necklace_of_durance",
)


@pytest.fixture
def item_catalog() -> list[Item]:
    """Catalog containing every item the recommenders know about."""
    return [
        Item(id=item_id, name=item_id.replace("_", " ").title())
        for item_id in ALL_ITEM_IDS
    ]


@pytest.fixture
def counters_kb() -> CountersKnowledgeBase:
    """Tigreal counters Layla (by name) and fears Eudora (by id)."""
    return CountersKnowledgeBase.from_mapping({
        "Tigreal": {
            "counters": [{"id": "Layla", "score": 3}],
            "fears": [{"id": 4, "score": 1}],
        },
        "Alice": {
            "counters": [{"id": 3, "score": 2}, {"id": "Eudora", "score": 2}],
            "fears": [],
        },
    })


# ── Wiki API mock ─────────────────────────────────────────────────────────────

@pytest.fixture
def wiki_transport() -> Callable[..., httpx.MockTransport]:
    """Factory turning ``handler(params) -> dict | httpx.Response`` into a transport.

    Every handled request's query parameters are appended to
    ``transport.calls`` so tests can assert on what was sent.
    """

    def _build(handler: Callable[[dict[str, str]], Any]) -> httpx.MockTransport:
        calls: list[dict[str, str]] = []

        def _respond(request: httpx.Request) -> httpx.Response:
            params = dict(request.url.params)
            calls.append(params)
            result = handler(params)
            if isinstance(result, httpx.Response):
                return result
            return httpx.Response(200, json=result)

        transport = httpx.MockTransport(_respond)
        transport.calls = calls  # type: ignore[attr-defined]
        return transport

    return _build


def categories_response(title: str, categories: list[str]) -> dict[str, Any]:
    """A ``prop=categories`` body for one existing page."""
    return {
        "query": {
            "pages": {
                "1": {
                    "pageid": 1,
                    "title": title,
                    "categories": [{"ns": 14, "title": c} for c in categories],
                }
            }
        }
    }


def missing_page_response(title: str) -> dict[str, Any]:
    return {"query": {"pages": {"-1": {"title": title, "missing": ""}}}}


# ── Config / files ────────────────────────────────────────────────────────────

@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """AppConfig pointing at ``tmp_path`` data files and a fake wiki URL."""
    return AppConfig(
        data=DataConfig(
            heroes_file=str(tmp_path / "heroes.json"),
            items_file=str(tmp_path / "items.json"),
            counters_file=str(tmp_path / "counters.json"),
        ),
        wiki=WikiConfig(api_url=TEST_API_URL, concurrency=3, lookup_timeout_seconds=5.0),
        logging=LoggingConfig(level="WARNING", log_file=""),
    )


def write_json(path: Path | str, payload: Any) -> Path:
    path = Path(path)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path
