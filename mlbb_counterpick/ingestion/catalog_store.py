"""
Catalog and knowledge-base persistence.

Catalog files are JSON arrays of entity records, read wholesale and written
wholesale::

    data/heroes.json     [{"id": 1, "name": "Alucard", "damageType": "physical", ...}]
    data/items.json      [{"id": "blade_of_despair", "name": "Blade of Despair", ...}]
    data/counters.json   {"Alucard": {"counters": [...], "fears": [...]}}

Writes are atomic: the new document goes to a temporary file in the target
directory and is moved over the original with ``os.replace``. An interrupted
run therefore leaves either the previous file or the new one, never a
truncated mix.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Union

from mlbb_counterpick.models.counters import CountersKnowledgeBase
from mlbb_counterpick.models.entity import CatalogEntity, Hero, Item
from mlbb_counterpick.taxonomy.status_taxonomy import CatalogKind

logger = logging.getLogger(__name__)

_MODEL_BY_KIND: dict[CatalogKind, type[CatalogEntity]] = {
    CatalogKind.HEROES: Hero,
    CatalogKind.ITEMS: Item,
}


def _read_json(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc


def load_catalog(path: Union[str, Path], kind: Union[CatalogKind, str]) -> list[CatalogEntity]:
    """Load a heroes or items catalog.

    Args:
        path: Catalog JSON file.
        kind: ``"heroes"`` or ``"items"``; selects the record model.

    Returns:
        Entities in file order.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file is not valid JSON or not a JSON array.
        pydantic.ValidationError: If a record fails model validation.
    """
    path = Path(path)
    raw = _read_json(path)
    if not isinstance(raw, list):
        raise ValueError(f"Catalog {path} must contain a JSON array, got {type(raw).__name__}.")

    model = _MODEL_BY_KIND[CatalogKind(kind)]
    entities = [model.model_validate(record) for record in raw]
    logger.debug("Loaded %d %s from %s", len(entities), kind, path)
    return entities


def load_heroes(path: Union[str, Path]) -> list[Hero]:
    return load_catalog(path, CatalogKind.HEROES)  # type: ignore[return-value]


def load_items(path: Union[str, Path]) -> list[Item]:
    return load_catalog(path, CatalogKind.ITEMS)  # type: ignore[return-value]


def save_catalog(path: Union[str, Path], entities: Sequence[CatalogEntity]) -> int:
    """Atomically rewrite a catalog file.

    Returns:
        Number of records written.
    """
    records = [entity.to_record() for entity in entities]
    write_json_atomic(Path(path), records)
    logger.debug("Wrote %d records to %s", len(records), path)
    return len(records)


def write_json_atomic(path: Path, payload: Any) -> None:
    """Write ``payload`` as indented JSON via temp file + ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def load_counters(path: Union[str, Path]) -> CountersKnowledgeBase:
    """Load the read-only counters knowledge base.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file is not a JSON object.
        pydantic.ValidationError: If a record has the wrong shape.
    """
    path = Path(path)
    raw = _read_json(path)
    if not isinstance(raw, dict):
        raise ValueError(f"Counters file {path} must contain a JSON object.")
    kb = CountersKnowledgeBase.from_mapping(raw)
    logger.debug("Loaded counters for %d heroes from %s", len(kb), path)
    return kb
