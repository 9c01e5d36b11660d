"""
Lifecycle status taxonomy and category-based classification rules.

Two dimensions describe an entity's standing in the catalog:
  - ``LifecycleStatus`` — is the entity currently in the game?
  - ``CatalogKind``     — which catalog (heroes or items) does it belong to?

Classification turns the wiki category labels of an entity's page into one
``LifecycleStatus`` by walking an ordered rule table. Hero and item catalogs
use different tables: the item taxonomy is two-valued (``removed`` vs
``present``) and folds "unreleased" into ``removed``, while heroes keep
``cancelled`` and ``unreleased`` as separate outcomes.

Usage example::

    from mlbb_counterpick.taxonomy.status_taxonomy import (
        HERO_STATUS_RULES, classify_categories,
    )

    classify_categories(["Category:Cancelled Heroes"], HERO_STATUS_RULES)
    # → LifecycleStatus.CANCELLED

This module has NO imports from any other ``mlbb_counterpick`` package.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum


class LifecycleStatus(StrEnum):
    """Lifecycle status written onto catalog entities by enrichment."""

    PRESENT = "present"
    """Page exists and carries no retirement signal."""

    CANCELLED = "cancelled"
    """Announced but cancelled before release (heroes only)."""

    UNRELEASED = "unreleased"
    """In beta/test servers or not yet released (heroes only)."""

    REMOVED = "removed"
    """Was in the game, has since been removed or retired."""

    UNKNOWN = "unknown"
    """Existence could not be confirmed (no name, missing page, lookup failure)."""


class CatalogKind(StrEnum):
    """Which catalog an entity belongs to."""

    HEROES = "heroes"
    ITEMS = "items"


EXCLUDED_FROM_PICKS: frozenset[LifecycleStatus] = frozenset({
    LifecycleStatus.CANCELLED,
    LifecycleStatus.REMOVED,
})
"""Statuses that disqualify a hero from recommendations."""


@dataclass(frozen=True)
class StatusRule:
    """One row of a classification table.

    Attributes:
        status:   Status returned when this rule matches.
        keywords: Lower-case substrings; any one appearing in any category
                  label is a match.
    """

    status: LifecycleStatus
    keywords: frozenset[str]

    def matches(self, labels: Iterable[str]) -> bool:
        return any(kw in label for label in labels for kw in self.keywords)


# Order is priority: first matching row wins.
HERO_STATUS_RULES: tuple[StatusRule, ...] = (
    StatusRule(LifecycleStatus.CANCELLED, frozenset({"cancelled", "canceled"})),
    StatusRule(LifecycleStatus.UNRELEASED, frozenset({"unreleased", "beta", "test"})),
    StatusRule(
        LifecycleStatus.REMOVED,
        frozenset({
            "removed", "retired", "deprecated", "obsolete", "legacy", "unavailable",
        }),
    ),
)

ITEM_STATUS_RULES: tuple[StatusRule, ...] = (
    StatusRule(
        LifecycleStatus.REMOVED,
        frozenset({
            "removed", "deprecated", "obsolete", "retired",
            "unreleased", "unavailable", "legacy",
        }),
    ),
)

_RULES_BY_KIND: dict[CatalogKind, tuple[StatusRule, ...]] = {
    CatalogKind.HEROES: HERO_STATUS_RULES,
    CatalogKind.ITEMS: ITEM_STATUS_RULES,
}


def rules_for(kind: CatalogKind | str) -> tuple[StatusRule, ...]:
    """Return the classification table for a catalog kind."""
    return _RULES_BY_KIND[CatalogKind(kind)]


def classify_categories(
    categories: Sequence[str],
    rules: Sequence[StatusRule],
    exists: bool = True,
) -> LifecycleStatus:
    """Classify an entity from its page's category labels.

    Args:
        categories: Category labels (e.g. ``"Category:Removed Items"``).
            Matching is case-insensitive substring search.
        rules:      Ordered rule table (``HERO_STATUS_RULES`` or
            ``ITEM_STATUS_RULES``).
        exists:     ``False`` when the page is missing or invalid.

    Returns:
        ``UNKNOWN`` if the page does not exist, the first matching rule's
        status otherwise, or ``PRESENT`` when no rule matches.
    """
    if not exists:
        return LifecycleStatus.UNKNOWN

    labels = [c.lower() for c in categories if c]
    for rule in rules:
        if rule.matches(labels):
            return rule.status
    return LifecycleStatus.PRESENT
