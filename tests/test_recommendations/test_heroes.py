"""
Tests for mlbb_counterpick/recommendations/heroes.py.

What we test
------------
score_hero():
  - base = Σ (counter − fear) over enemies, looked up by name or id.
  - Role bonus +1.0 / −0.3 / 0.
  - No knowledge-base record -> base 0.
HeroScoreComponents.total:
  - Non-finite totals are coerced to 0.
recommend_heroes():
  - Cancelled / removed heroes never appear.
  - Sorted descending; ties keep catalog order.
  - Default limit is 10.
  - Empty enemy roster -> [].
build_reasoning():
  - Mentions counters, fears and role outcome; fallback text without data.
"""

from __future__ import annotations

import math

import pytest

from mlbb_counterpick.models.counters import CountersKnowledgeBase
from mlbb_counterpick.recommendations.heroes import (
    DEFAULT_LIMIT,
    HeroScoreComponents,
    build_reasoning,
    recommend_heroes,
    score_hero,
)


@pytest.fixture
def x_counters_y():
    return CountersKnowledgeBase.from_mapping({
        "X": {"counters": [{"id": "Y", "score": 5}], "fears": []},
    })


class TestScoreHero:
    def test_base_score(self, make_hero, x_counters_y):
        x = make_hero(1, "X", roles=("Fighter",))
        y = make_hero(2, "Y")
        components = score_hero(x, [y], x_counters_y)
        assert components.base_score == 5
        assert components.role_bonus == 0.0
        assert components.total == pytest.approx(5.0)

    def test_role_match(self, make_hero, x_counters_y):
        x = make_hero(1, "X", roles=("Fighter",))
        y = make_hero(2, "Y")
        assert score_hero(x, [y], x_counters_y, role="Fighter").total == pytest.approx(6.0)

    def test_role_mismatch(self, make_hero, x_counters_y):
        x = make_hero(1, "X", roles=("Fighter",))
        y = make_hero(2, "Y")
        assert score_hero(x, [y], x_counters_y, role="Mage").total == pytest.approx(4.7)

    def test_counter_and_fear(self, sample_heroes, counters_kb):
        tigreal, _, layla, eudora, _ = sample_heroes
        components = score_hero(tigreal, [layla, eudora], counters_kb)
        assert components.base_score == pytest.approx(3 - 1)
        assert [m.net for m in components.matchups] == [3, -1]

    def test_no_record(self, sample_heroes, counters_kb):
        layla = sample_heroes[2]
        assert score_hero(layla, sample_heroes[:2], counters_kb).base_score == 0.0

    def test_custom_bonus(self, make_hero, x_counters_y):
        x = make_hero(1, "X", roles=("Tank",))
        components = score_hero(
            x, [make_hero(2, "Y")], x_counters_y,
            role="Tank", role_bonus=2.0, role_penalty=-1.0,
        )
        assert components.total == pytest.approx(7.0)


class TestTotal:
    def test_nan_coerced_to_zero(self):
        assert HeroScoreComponents(base_score=math.nan, role_bonus=1.0).total == 0.0

    def test_inf_coerced_to_zero(self):
        assert HeroScoreComponents(base_score=math.inf, role_bonus=0.0).total == 0.0

    def test_negative_allowed(self):
        assert HeroScoreComponents(base_score=-2.0, role_bonus=-0.3).total == pytest.approx(-2.3)


class TestRecommendHeroes:
    def test_excludes_cancelled_and_removed(self, make_hero, x_counters_y):
        heroes = [
            make_hero(1, "X", status="removed"),
            make_hero(2, "Z", status="cancelled"),
            make_hero(3, "W", status="unknown"),
            make_hero(4, "V", status="unreleased"),
        ]
        picks = recommend_heroes(heroes, [make_hero(9, "Y")], x_counters_y)
        assert [rec.hero.name for rec in picks] == ["W", "V"]

    def test_sorted_descending(self, sample_heroes, counters_kb):
        layla, eudora = sample_heroes[2], sample_heroes[3]
        picks = recommend_heroes(sample_heroes, [layla, eudora], counters_kb)
        # Alice: 2 + 2; Tigreal: 3 - 1; everyone else 0.
        assert [rec.hero.name for rec in picks[:2]] == ["Alice", "Tigreal"]
        assert picks[0].score == pytest.approx(4.0)
        assert picks[1].score == pytest.approx(2.0)

    def test_ties_keep_catalog_order(self, make_hero):
        heroes = [make_hero(i, f"H{i}") for i in range(1, 6)]
        picks = recommend_heroes(heroes, [make_hero(99, "Enemy")], CountersKnowledgeBase())
        assert [rec.hero.id for rec in picks] == [1, 2, 3, 4, 5]

    def test_default_limit(self, make_hero):
        heroes = [make_hero(i, f"H{i}") for i in range(1, 16)]
        picks = recommend_heroes(heroes, [make_hero(99, "Enemy")], CountersKnowledgeBase())
        assert len(picks) == DEFAULT_LIMIT == 10

    def test_custom_limit(self, sample_heroes, counters_kb):
        assert len(recommend_heroes(sample_heroes, sample_heroes[:1], counters_kb, limit=2)) == 2

    def test_role_filter_reorders(self, sample_heroes):
        picks = recommend_heroes(
            sample_heroes, [sample_heroes[2]], CountersKnowledgeBase(), role="Tank"
        )
        assert [rec.hero.name for rec in picks[:3]] == ["Tigreal", "Alice", "Esmeralda"]
        assert picks[-1].score == pytest.approx(-0.3)

    def test_empty_enemies(self, sample_heroes, counters_kb):
        assert recommend_heroes(sample_heroes, [], counters_kb) == []

    def test_enemy_matched_by_id(self, make_hero):
        kb = CountersKnowledgeBase.from_mapping({"A": {"counters": [{"id": 42, "score": 1.5}]}})
        picks = recommend_heroes([make_hero(1, "A")], [make_hero(42, "Renamed")], kb)
        assert picks[0].score == pytest.approx(1.5)


class TestBuildReasoning:
    def test_mentions_matchups_and_role(self, sample_heroes, counters_kb):
        tigreal, _, layla, eudora, _ = sample_heroes
        components = score_hero(tigreal, [layla, eudora], counters_kb, role="Tank")
        text = build_reasoning(components, role="Tank")
        assert "Counters Layla (+3.0)" in text
        assert "Fears Eudora (-1.0)" in text
        assert "Has role Tank" in text

    def test_lacks_role(self, make_hero):
        components = score_hero(
            make_hero(1, "A"), [make_hero(2, "B")], CountersKnowledgeBase(), role="Tank"
        )
        assert build_reasoning(components, role="Tank") == "Lacks role Tank"

    def test_no_data(self, make_hero):
        components = score_hero(make_hero(1, "A"), [make_hero(2, "B")], CountersKnowledgeBase())
        assert build_reasoning(components) == "No matchup data"
