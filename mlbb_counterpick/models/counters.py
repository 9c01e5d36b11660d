"""
Counters knowledge base models.

The knowledge base is a read-only JSON document maintained outside this
package::

    {
      "Tigreal": {
        "counters": [{"id": "Layla", "score": 3}],
        "fears":    [{"id": 5, "score": 2.5}]
      }
    }

Keys are hero names. Entry ``id`` values may be either the target's name or
its catalog id, so every lookup tries both. Heroes without a record simply
have no matchup data and contribute zero.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from mlbb_counterpick.models.entity import CatalogEntity


class MatchupEntry(BaseModel):
    """One scored matchup against another entity."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Union[int, str]
    score: float = 0.0


class MatchupRecord(BaseModel):
    """Matchups for one hero.

    Attributes:
        counters: Entities this hero beats.
        fears:    Entities this hero loses to.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    counters: list[MatchupEntry] = Field(default_factory=list)
    fears: list[MatchupEntry] = Field(default_factory=list)

    def counter_score(self, target: CatalogEntity) -> float:
        return _first_score(self.counters, target)

    def fear_score(self, target: CatalogEntity) -> float:
        return _first_score(self.fears, target)


def _first_score(entries: Iterable[MatchupEntry], target: CatalogEntity) -> float:
    """Score of the first entry naming ``target`` (by name or id), else 0."""
    for entry in entries:
        if target.matches_ref(entry.id):
            return entry.score
    return 0.0


class CountersKnowledgeBase:
    """Read-only mapping from hero name (or id) to its ``MatchupRecord``."""

    def __init__(self, records: Optional[Mapping[str, MatchupRecord]] = None) -> None:
        self._records: dict[str, MatchupRecord] = dict(records or {})

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "CountersKnowledgeBase":
        """Validate a raw JSON mapping into a knowledge base.

        Raises:
            pydantic.ValidationError: If any record has the wrong shape.
        """
        return cls({
            str(key): MatchupRecord.model_validate(value)
            for key, value in raw.items()
        })

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return str(key) in self._records

    def record_for(self, entity: CatalogEntity) -> Optional[MatchupRecord]:
        """Look up by entity name first, then by stringified id."""
        record = self._records.get(entity.name)
        if record is None:
            record = self._records.get(str(entity.id))
        return record
