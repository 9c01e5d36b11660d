"""
Hero counter-pick ranking.

Score formula
-------------
For every candidate hero ``h`` (status not cancelled/removed) against the
enemy roster ``E``::

    base  = Σ_{e ∈ E} ( counter_score(h, e) − fear_score(h, e) )
    bonus = +1.0 if a role filter is given and h has that role
            −0.3 if a role filter is given and h lacks it
             0.0 if no role filter
    total = base + bonus        (coerced to 0.0 if not finite)

``counter_score`` / ``fear_score`` come from the candidate's record in the
counters knowledge base; entries match an enemy by name or by catalog id.
A candidate with no record scores 0 before the role bonus.

Candidates are sorted by total descending. The sort is stable, so ties keep
catalog order. The top ``limit`` (default 10) are returned.

An empty enemy roster yields ``[]``.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional

from mlbb_counterpick.models.counters import CountersKnowledgeBase
from mlbb_counterpick.models.entity import Hero

DEFAULT_LIMIT = 10
ROLE_MATCH_BONUS = 1.0
ROLE_MISMATCH_PENALTY = -0.3


@dataclass(frozen=True)
class MatchupContribution:
    """One enemy's effect on a candidate's base score."""

    enemy: str
    counter_score: float
    fear_score: float

    @property
    def net(self) -> float:
        return self.counter_score - self.fear_score


@dataclass(frozen=True)
class HeroScoreComponents:
    """Breakdown of a candidate's total score.

    Attributes:
        base_score:    Σ (counter − fear) over the enemy roster.
        role_bonus:    Role filter adjustment.
        matchups:      Per-enemy contributions, in enemy order.
    """

    base_score: float
    role_bonus: float
    matchups: tuple[MatchupContribution, ...] = field(default_factory=tuple)

    @property
    def total(self) -> float:
        value = self.base_score + self.role_bonus
        return value if math.isfinite(value) else 0.0


@dataclass(frozen=True)
class HeroRecommendation:
    hero: Hero
    score: float
    components: HeroScoreComponents


def score_hero(
    hero: Hero,
    enemies: Sequence[Hero],
    counters: CountersKnowledgeBase,
    role: Optional[str] = None,
    role_bonus: float = ROLE_MATCH_BONUS,
    role_penalty: float = ROLE_MISMATCH_PENALTY,
) -> HeroScoreComponents:
    """Compute the score breakdown of one candidate against ``enemies``."""
    record = counters.record_for(hero)
    matchups: list[MatchupContribution] = []
    base = 0.0
    for enemy in enemies:
        if record is None:
            counter, fear = 0.0, 0.0
        else:
            counter, fear = record.counter_score(enemy), record.fear_score(enemy)
        matchups.append(MatchupContribution(enemy.name, counter, fear))
        base += counter - fear

    if role:
        bonus = role_bonus if hero.has_role(role) else role_penalty
    else:
        bonus = 0.0

    return HeroScoreComponents(base_score=base, role_bonus=bonus, matchups=tuple(matchups))


def recommend_heroes(
    heroes: Sequence[Hero],
    enemies: Sequence[Hero],
    counters: CountersKnowledgeBase,
    role: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
    role_bonus: float = ROLE_MATCH_BONUS,
    role_penalty: float = ROLE_MISMATCH_PENALTY,
) -> list[HeroRecommendation]:
    """Rank pickable heroes against an enemy roster.

    Args:
        heroes:   Full hero catalog (candidate pool, in catalog order).
        enemies:  Opposing heroes.
        counters: Counters knowledge base.
        role:     Optional desired role (exact, case-sensitive).
        limit:    Maximum recommendations returned.

    Returns:
        Up to ``limit`` recommendations, best first.
    """
    if not enemies:
        return []

    scored: list[HeroRecommendation] = []
    for hero in heroes:
        if not hero.is_pickable:
            continue
        components = score_hero(
            hero, enemies, counters, role,
            role_bonus=role_bonus, role_penalty=role_penalty,
        )
        scored.append(HeroRecommendation(hero=hero, score=components.total, components=components))

    scored.sort(key=lambda rec: rec.score, reverse=True)
    return scored[:max(0, limit)]


def build_reasoning(components: HeroScoreComponents, role: Optional[str] = None) -> str:
    """Semicolon-separated explanation, e.g. ``"Counters Layla (+5.0); Has role Tank"``."""
    reasons: list[str] = []
    for m in components.matchups:
        if m.counter_score:
            reasons.append(f"Counters {m.enemy} (+{m.counter_score:.1f})")
        if m.fear_score:
            reasons.append(f"Fears {m.enemy} (-{m.fear_score:.1f})")
    if role:
        if components.role_bonus > 0:
            reasons.append(f"Has role {role}")
        else:
            reasons.append(f"Lacks role {role}")
    return "; ".join(reasons) or "No matchup data"
