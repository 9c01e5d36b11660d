"""
Item recommendations against an opposing roster.

Both recommenders are pure functions of (player hero, opponents, item
catalog). Rules add item ids in order; the final list is de-duplicated
(first occurrence wins), filtered to ids present in the item catalog, and
returned as ``Item`` objects in that order.

Defense rules
-------------
    1. magic_mix    >= 0.5  → athenas_shield, radiant_armor
    2. physical_mix >= 0.5  → antique_cuirass, blade_armor
    3. sustain_pressure >= 1 → dominance_ice
    4. always               → immortality

An exactly balanced roster (0.5 / 0.5) fires both 1 and 2.

Offense rules
-------------
Branch on the player's damage type: MAGIC uses the magic branch, everything
else (physical, hybrid, unset) the physical branch.

    1. always → core damage item
    2. any opponent with role "Tank", OR opposing mix for the player's own
       damage type < 0.6 → penetration item
    3. sustain_pressure >= 1 → anti-heal item

A missing player hero or an empty roster yields ``[]``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Optional

from mlbb_counterpick.models.entity import DamageType, Hero, Item
from mlbb_counterpick.recommendations.composition import summarize_opponents

MAGIC_RESIST_ITEMS: tuple[str, ...] = ("athenas_shield", "radiant_armor")
PHYSICAL_RESIST_ITEMS: tuple[str, ...] = ("antique_cuirass", "blade_armor")
DEFENSE_ANTI_HEAL_ITEM = "dominance_ice"
SAFETY_ITEM = "immortality"

MIX_THRESHOLD = 0.5
PENETRATION_MIX_THRESHOLD = 0.6
SUSTAIN_THRESHOLD = 1
TANK_ROLE = "Tank"


@dataclass(frozen=True)
class OffenseBranch:
    """Item ids for one offensive damage branch."""

    core: str
    penetration: str
    anti_heal: str


OFFENSE_BRANCHES: dict[DamageType, OffenseBranch] = {
    DamageType.PHYSICAL: OffenseBranch(
        core="blade_of_despair",
        penetration="malefic_roar",
        anti_heal="sea_halberd",
    ),
    DamageType.MAGIC: OffenseBranch(
        core="genius_wand",
        penetration="divine_glaive",
        anti_heal="necklace_of_durance",
    ),
}


def resolve_items(item_ids: Iterable[str], items: Sequence[Item]) -> list[Item]:
    """De-duplicate ids, drop those missing from the catalog, keep order."""
    by_id = {str(item.id): item for item in items}
    resolved: list[Item] = []
    seen: set[str] = set()
    for item_id in item_ids:
        if item_id in seen:
            continue
        seen.add(item_id)
        item = by_id.get(item_id)
        if item is not None:
            resolved.append(item)
    return resolved


def recommend_defense(
    hero: Optional[Hero],
    opponents: Sequence[Hero],
    items: Sequence[Item],
) -> list[Item]:
    """Defensive items against the opposing damage mix and sustain."""
    if hero is None or not opponents:
        return []

    summary = summarize_opponents(opponents)
    picks: list[str] = []

    if summary.magic_mix >= MIX_THRESHOLD:
        picks.extend(MAGIC_RESIST_ITEMS)
    if summary.physical_mix >= MIX_THRESHOLD:
        picks.extend(PHYSICAL_RESIST_ITEMS)
    if summary.sustain_pressure >= SUSTAIN_THRESHOLD:
        picks.append(DEFENSE_ANTI_HEAL_ITEM)
    picks.append(SAFETY_ITEM)

    return resolve_items(picks, items)


def offense_branch_for(hero: Hero) -> DamageType:
    if hero.damage_type == DamageType.MAGIC:
        return DamageType.MAGIC
    return DamageType.PHYSICAL


def recommend_offense(
    hero: Optional[Hero],
    opponents: Sequence[Hero],
    items: Sequence[Item],
) -> list[Item]:
    """Offensive items for the player's damage branch."""
    if hero is None or not opponents:
        return []

    summary = summarize_opponents(opponents)
    damage_type = offense_branch_for(hero)
    branch = OFFENSE_BRANCHES[damage_type]
    picks: list[str] = [branch.core]

    has_tank = any(opp.has_role(TANK_ROLE) for opp in opponents)
    if has_tank or summary.mix_for(damage_type) < PENETRATION_MIX_THRESHOLD:
        picks.append(branch.penetration)
    if summary.sustain_pressure >= SUSTAIN_THRESHOLD:
        picks.append(branch.anti_heal)

    return resolve_items(picks, items)
