"""
Opponent composition summary.

Reduces an opposing roster to the aggregate signals the item recommender
thresholds on:

    physical_mix = (physical + 0.5 * hybrid) / total
    magic_mix    = (magic    + 0.5 * hybrid) / total
    sustain_pressure = tags["sustain"] + tags["heal"] + tags["regen"]

Heroes with no damage type count as physical. For an empty roster ``total``
is taken as 1 so both mixes are 0; callers must treat ``is_empty`` as "no
data", not as an all-zero composition.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

from mlbb_counterpick.models.entity import DamageType, Hero

SUSTAIN_TAGS: tuple[str, ...] = ("sustain", "heal", "regen")


@dataclass(frozen=True)
class CompositionSummary:
    """Aggregate damage and tag signals for one opposing roster.

    Attributes:
        damage_counts: Opponents per damage type (physical/magic/hybrid).
        physical_mix:  Effective physical share in [0, 1].
        magic_mix:     Effective magic share in [0, 1].
        tag_counts:    Occurrences of each tag across the roster.
        total:         Roster size (0 for an empty roster).
    """

    damage_counts: dict[DamageType, int]
    physical_mix: float
    magic_mix: float
    tag_counts: dict[str, int] = field(default_factory=dict)
    total: int = 0

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    @property
    def sustain_pressure(self) -> int:
        return sum(self.tag_counts.get(tag, 0) for tag in SUSTAIN_TAGS)

    def mix_for(self, damage_type: DamageType) -> float:
        """Opposing mix for a branch; anything but MAGIC reads the physical mix."""
        if damage_type == DamageType.MAGIC:
            return self.magic_mix
        return self.physical_mix


def summarize_opponents(opponents: Sequence[Hero]) -> CompositionSummary:
    """Compute damage-type counts, mix ratios and tag frequencies."""
    damage_counts: dict[DamageType, int] = {
        DamageType.PHYSICAL: 0,
        DamageType.MAGIC: 0,
        DamageType.HYBRID: 0,
    }
    tags: Counter[str] = Counter()

    for hero in opponents:
        damage_counts[hero.effective_damage_type] += 1
        tags.update(hero.tags)

    total = len(opponents)
    denom = total or 1
    hybrid_half = 0.5 * damage_counts[DamageType.HYBRID]

    return CompositionSummary(
        damage_counts=damage_counts,
        physical_mix=(damage_counts[DamageType.PHYSICAL] + hybrid_half) / denom,
        magic_mix=(damage_counts[DamageType.MAGIC] + hybrid_half) / denom,
        tag_counts=dict(tags),
        total=total,
    )
