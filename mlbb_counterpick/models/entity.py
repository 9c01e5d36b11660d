"""
Catalog entity models.

``Hero`` and ``Item`` are two variants of one shape (``CatalogEntity``): an
identity, a wiki lookup name, free-form combat tags, and a lifecycle
``status`` written by the enrichment pipeline. Heroes additionally carry a
``damageType`` and the ``roles`` the recommender filters on.

Presentation-only keys (lanes, year, img, icon, notes, type, ...) are not
interpreted here. They are kept as pydantic extras so that a catalog file
survives a load → enrich → save cycle with every key it came in with.

Unlike most models in this package these are NOT frozen: enrichment mutates
``status`` in place, with assignment validation keeping it inside the
``LifecycleStatus`` taxonomy.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mlbb_counterpick.taxonomy.status_taxonomy import EXCLUDED_FROM_PICKS, LifecycleStatus


class DamageType(StrEnum):
    """Primary damage type a hero deals."""

    PHYSICAL = "physical"
    MAGIC = "magic"
    HYBRID = "hybrid"
    UNSET = ""


class CatalogEntity(BaseModel):
    """Fields shared by heroes and items.

    Attributes:
        id:     Integer (heroes) or slug string (items); unique per catalog.
        name:   Wiki page title used as the external lookup key. May be empty.
        tags:   Combat property tags, e.g. ``"sustain"``, ``"heal"``.
        status: Lifecycle status; ``None`` until enrichment has run.
    """

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        validate_assignment=True,
    )

    id: Union[int, str]
    name: str = ""
    tags: list[str] = Field(default_factory=list)
    status: Optional[LifecycleStatus] = None

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v: Any) -> list[str]:
        return [] if v is None else v

    @property
    def lookup_title(self) -> str:
        """Name normalized for wiki lookups (surrounding whitespace stripped)."""
        return self.name.strip()

    @property
    def is_pickable(self) -> bool:
        return self.status not in EXCLUDED_FROM_PICKS

    def matches_ref(self, ref: Union[int, str]) -> bool:
        """True if ``ref`` names this entity by name or by catalog id."""
        ref_str = str(ref)
        return ref_str == self.name or ref_str == str(self.id)

    def to_record(self) -> dict[str, Any]:
        """Serialize back to the catalog's JSON record shape."""
        record = self.model_dump(mode="json", by_alias=True)
        if self.status is None:
            record.pop("status", None)
        return record


class Hero(CatalogEntity):
    """A playable hero.

    Attributes:
        damage_type: Serialized as ``damageType``. Missing, null and ``""``
            all load as ``DamageType.UNSET``.
        roles:       Exact-match, case-sensitive role names (``"Tank"``, ...).
    """

    damage_type: DamageType = Field(default=DamageType.UNSET, alias="damageType")
    roles: list[str] = Field(default_factory=list)

    @field_validator("damage_type", mode="before")
    @classmethod
    def coerce_damage_type(cls, v: Any) -> Any:
        if v is None:
            return DamageType.UNSET
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("roles", mode="before")
    @classmethod
    def coerce_roles(cls, v: Any) -> list[str]:
        return [] if v is None else v

    @property
    def effective_damage_type(self) -> DamageType:
        """Damage type with ``UNSET`` resolved to ``PHYSICAL``."""
        if self.damage_type == DamageType.UNSET:
            return DamageType.PHYSICAL
        return self.damage_type

    def has_role(self, role: str) -> bool:
        return role in self.roles


class Item(CatalogEntity):
    """An equipment item. ``id`` is the slug the recommender refers to."""
