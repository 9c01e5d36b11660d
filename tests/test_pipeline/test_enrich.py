"""
Tests for mlbb_counterpick/pipeline/enrich.py.

What we test
------------
EnrichmentPipeline (with an in-memory category source):
  - Statuses assigned from categories; counts tally every entity.
  - Blank name -> unknown without any lookup.
  - Missing page -> unknown.
  - Lookup failures (LookupFailure, httpx errors, timeout) -> unknown.
  - Running twice on the same data yields identical statuses.
  - Previous status is overwritten, never read.
  - A non-lookup exception aborts the whole run.
  - Concurrency never exceeds the configured limit.
EnrichStage (httpx.MockTransport against a temp catalog):
  - Writes statuses back and preserves other keys.
  - Pool failure leaves the catalog file untouched.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from conftest import categories_response, missing_page_response, write_json
from mlbb_counterpick.ingestion.wiki_client import MalformedResponseError, PageCategories
from mlbb_counterpick.models.entity import Hero, Item
from mlbb_counterpick.pipeline.enrich import EnrichmentPipeline, EnrichStage
from mlbb_counterpick.taxonomy.status_taxonomy import (
    HERO_STATUS_RULES,
    ITEM_STATUS_RULES,
    LifecycleStatus,
)


class FakeSource:
    """Category source answering from a dict; ``errors`` maps title -> exception."""

    def __init__(self, pages=None, errors=None, delay: float = 0.0):
        self.pages = pages or {}
        self.errors = errors or {}
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.peak = 0

    async def page_categories(self, title: str) -> PageCategories:
        self.calls.append(title)
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if title in self.errors:
                raise self.errors[title]
            if title not in self.pages:
                return PageCategories(title=title, exists=False)
            return PageCategories(title=title, exists=True, categories=self.pages[title])
        finally:
            self.in_flight -= 1


def _heroes(*names: str) -> list[Hero]:
    return [Hero(id=i, name=name) for i, name in enumerate(names, start=1)]


def _enrich(pipeline: EnrichmentPipeline, entities) -> dict[str, int]:
    return asyncio.run(pipeline.enrich(entities))


class TestEnrichmentPipeline:
    def test_classifies_and_counts(self):
        source = FakeSource(pages={
            "Tigreal": ["Category:Heroes"],
            "Old": ["Category:Removed Heroes"],
            "Ghost": ["Category:Cancelled Heroes"],
        })
        heroes = _heroes("Tigreal", "Old", "Ghost", "Nobody")
        counts = _enrich(EnrichmentPipeline(source, HERO_STATUS_RULES), heroes)

        assert [h.status for h in heroes] == [
            LifecycleStatus.PRESENT,
            LifecycleStatus.REMOVED,
            LifecycleStatus.CANCELLED,
            LifecycleStatus.UNKNOWN,
        ]
        assert counts == {
            "present": 1, "cancelled": 1, "unreleased": 0, "removed": 1, "unknown": 1,
        }
        assert sum(counts.values()) == len(heroes)

    def test_blank_name_skips_lookup(self):
        source = FakeSource()
        heroes = [Hero(id=1, name="   "), Hero(id=2, name="")]
        _enrich(EnrichmentPipeline(source, HERO_STATUS_RULES), heroes)
        assert source.calls == []
        assert all(h.status == LifecycleStatus.UNKNOWN for h in heroes)

    def test_name_is_trimmed_for_lookup(self):
        source = FakeSource(pages={"Layla": []})
        heroes = [Hero(id=1, name=" Layla ")]
        _enrich(EnrichmentPipeline(source, HERO_STATUS_RULES), heroes)
        assert source.calls == ["Layla"]
        assert heroes[0].status == LifecycleStatus.PRESENT

    @pytest.mark.parametrize("error", [
        MalformedResponseError("bad body"),
        httpx.ConnectError("refused"),
        asyncio.TimeoutError(),
    ])
    def test_lookup_failure_is_unknown(self, error):
        source = FakeSource(pages={"Ok": []}, errors={"Broken": error})
        heroes = _heroes("Ok", "Broken")
        counts = _enrich(EnrichmentPipeline(source, HERO_STATUS_RULES), heroes)
        assert heroes[0].status == LifecycleStatus.PRESENT
        assert heroes[1].status == LifecycleStatus.UNKNOWN
        assert counts["unknown"] == 1

    def test_slow_lookup_times_out(self):
        source = FakeSource(pages={"Slow": []}, delay=0.2)
        heroes = _heroes("Slow")
        _enrich(EnrichmentPipeline(source, HERO_STATUS_RULES, lookup_timeout=0.01), heroes)
        assert heroes[0].status == LifecycleStatus.UNKNOWN

    def test_idempotent(self):
        source = FakeSource(pages={"A": ["Category:Beta"], "B": []})
        heroes = _heroes("A", "B", "C")
        pipeline = EnrichmentPipeline(source, HERO_STATUS_RULES)
        first = _enrich(pipeline, heroes)
        statuses = [h.status for h in heroes]
        second = _enrich(pipeline, heroes)
        assert first == second
        assert [h.status for h in heroes] == statuses

    def test_previous_status_overwritten(self):
        source = FakeSource(pages={"Back": []})
        hero = Hero(id=1, name="Back", status="removed")
        _enrich(EnrichmentPipeline(source, HERO_STATUS_RULES), [hero])
        assert hero.status == LifecycleStatus.PRESENT

    def test_item_rules(self):
        source = FakeSource(pages={"Old Boots": ["Category:Unreleased Items"]})
        items = [Item(id="old_boots", name="Old Boots")]
        counts = _enrich(EnrichmentPipeline(source, ITEM_STATUS_RULES), items)
        assert items[0].status == LifecycleStatus.REMOVED
        assert counts["removed"] == 1

    def test_unexpected_error_aborts(self):
        source = FakeSource(pages={"A": []}, errors={"B": KeyError("bug")})
        with pytest.raises(KeyError):
            _enrich(EnrichmentPipeline(source, HERO_STATUS_RULES), _heroes("A", "B"))

    def test_concurrency_bound(self):
        source = FakeSource(pages={f"H{i}": [] for i in range(12)}, delay=0.01)
        heroes = _heroes(*[f"H{i}" for i in range(12)])
        _enrich(EnrichmentPipeline(source, HERO_STATUS_RULES, concurrency=3), heroes)
        assert source.peak == 3
        assert len(source.calls) == 12

    def test_empty_catalog(self):
        counts = _enrich(EnrichmentPipeline(FakeSource(), HERO_STATUS_RULES), [])
        assert sum(counts.values()) == 0


class TestEnrichStage:
    HEROES = [
        {"id": 1, "name": "Tigreal", "roles": ["Tank"], "img": "t.png", "damageType": "physical"},
        {"id": 2, "name": "Old", "roles": [], "lanes": ["Roam"], "status": "present"},
        {"id": 3, "name": "", "roles": []},
    ]

    @staticmethod
    def _handler(params):
        title = params["titles"]
        if title == "Tigreal":
            return categories_response(title, ["Category:Heroes"])
        if title == "Old":
            return categories_response(title, ["Category:Removed Heroes"])
        return missing_page_response(title)

    def test_writes_statuses(self, app_config, wiki_transport):
        path = write_json(app_config.data.heroes_file, self.HEROES)
        run = EnrichStage(app_config).run(
            kind="heroes", transport=wiki_transport(self._handler)
        )

        assert run.status == "success"
        assert run.rows_processed == 3
        assert run.catalog_path == str(path)
        assert run.status_counts["present"] == 1
        assert run.status_counts["removed"] == 1
        assert run.status_counts["unknown"] == 1

        saved = json.loads(path.read_text(encoding="utf-8"))
        assert [r["status"] for r in saved] == ["present", "removed", "unknown"]
        assert saved[0]["img"] == "t.png"
        assert saved[1]["lanes"] == ["Roam"]

    def test_http_errors_degrade(self, app_config, wiki_transport):
        write_json(app_config.data.heroes_file, self.HEROES[:1])
        transport = wiki_transport(lambda p: httpx.Response(500))
        run = EnrichStage(app_config).run(kind="heroes", transport=transport)
        assert run.status_counts["unknown"] == 1

    @pytest.mark.parametrize("bad_body", [
        {"query": "oops"},
        {"query": {"pages": {"1": {"title": "Old", "categories": [{"title": 5}]}}}},
    ])
    def test_unexpected_shape_degrades(self, app_config, wiki_transport, bad_body):
        path = write_json(app_config.data.heroes_file, self.HEROES[:2])

        def handler(params):
            if params["titles"] == "Old":
                return bad_body
            return self._handler(params)

        run = EnrichStage(app_config).run(kind="heroes", transport=wiki_transport(handler))

        assert run.status == "success"
        assert run.status_counts["present"] == 1
        assert run.status_counts["unknown"] == 1
        saved = json.loads(path.read_text(encoding="utf-8"))
        assert [r["status"] for r in saved] == ["present", "unknown"]

    def test_pool_failure_leaves_file_untouched(self, app_config, monkeypatch):
        path = write_json(app_config.data.heroes_file, self.HEROES)
        before = path.read_text(encoding="utf-8")

        async def boom(self, entity):
            raise RuntimeError("worker crashed")

        monkeypatch.setattr(EnrichmentPipeline, "classify", boom)
        with pytest.raises(RuntimeError, match="worker crashed"):
            EnrichStage(app_config).run(kind="heroes")
        assert path.read_text(encoding="utf-8") == before

    def test_missing_catalog(self, app_config):
        with pytest.raises(FileNotFoundError):
            EnrichStage(app_config).run(kind="items")
