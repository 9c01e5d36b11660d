"""
MLBB counter-pick — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute action (pipeline stage or recommendation).
  5. Report result to stdout.

Install and run::

    pip install -e .
    mlbb-counterpick --help
    mlbb-counterpick validate-config
    mlbb-counterpick acquire --kind heroes
    mlbb-counterpick prune-heroes
    mlbb-counterpick enrich --kind heroes
    mlbb-counterpick recommend-items --hero Layla -o Tigreal -o Alice
    mlbb-counterpick recommend-heroes -e Tigreal -e Alice --role Tank
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer

from mlbb_counterpick.taxonomy.status_taxonomy import CatalogKind

app = typer.Typer(
    name="mlbb-counterpick",
    help="MLBB catalog enrichment and counter-pick recommendations.",
    add_completion=False,
)

_NO_OPPONENTS_MSG = "Select your hero and at least one opponent."


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from mlbb_counterpick.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from mlbb_counterpick.utils.logging import configure_logging
    configure_logging(config.logging)


def _load_or_exit(loader, path: str, what: str):
    """Run a catalog/KB loader, converting load errors to exit code 1."""
    try:
        return loader(path)
    except FileNotFoundError:
        typer.echo(f"[ERROR] {what} file not found: {path}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Could not load {what} from {path}: {exc}", err=True)
        raise typer.Exit(code=1)


def _find_hero(heroes, ref: str):
    """Resolve a hero by id or exact name, then by case-insensitive name."""
    ref = ref.strip()
    for hero in heroes:
        if hero.matches_ref(ref):
            return hero
    folded = ref.casefold()
    for hero in heroes:
        if hero.lookup_title.casefold() == folded:
            return hero
    return None


def _resolve_heroes_or_exit(heroes, refs: List[str]):
    resolved = []
    for ref in refs:
        hero = _find_hero(heroes, ref)
        if hero is None:
            typer.echo(f"[ERROR] Unknown hero: {ref!r}", err=True)
            raise typer.Exit(code=1)
        resolved.append(hero)
    return resolved


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Heroes catalog:   {config.data.heroes_file}")
    typer.echo(f"  Items catalog:    {config.data.items_file}")
    typer.echo(f"  Counters KB:      {config.data.counters_file}")
    typer.echo(f"  Wiki API:         {config.wiki.api_url}")
    typer.echo(f"  Concurrency:      {config.wiki.concurrency}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("acquire")
def acquire(
    kind: CatalogKind = typer.Option(
        CatalogKind.HEROES,
        "--kind",
        help="Catalog to build: heroes or items.",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        help="Destination file (default: catalog path from config).",
    ),
    overwrite: bool = typer.Option(
        False,
        "--overwrite",
        help="Replace an existing catalog file (drops enrichment and hand edits).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Build a raw catalog from wiki category members and page images."""
    from mlbb_counterpick.pipeline.acquire import AcquireStage

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target = Path(output or (
        config.data.heroes_file if kind == CatalogKind.HEROES else config.data.items_file
    ))
    if target.exists() and not overwrite:
        typer.echo(f"[ERROR] {target} exists. Pass --overwrite to replace it.", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Fetching {kind.value} from {config.wiki.api_url} ...")
    try:
        run = AcquireStage(config).run(kind=kind, catalog_path=target)
    except Exception as exc:
        typer.echo(f"[ERROR] Acquisition failed: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  {kind.value.capitalize()}: {run.rows_processed}")
    typer.echo(f"[OK] Wrote {target}")


@app.command("prune-heroes")
def prune_heroes(
    catalog: Optional[str] = typer.Option(
        None,
        "--catalog",
        help="Heroes catalog file (default: from config).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Remove records that are not playable heroes (role pages, factions, ...)."""
    from mlbb_counterpick.pipeline.prune import PruneStage

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        run = PruneStage(config).run(catalog_path=catalog)
    except Exception as exc:
        typer.echo(f"[ERROR] Prune failed: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  Kept {run.rows_processed} hero(es) in {run.catalog_path}")
    typer.echo("[OK] Heroes pruned.")


@app.command("enrich")
def enrich(
    kind: CatalogKind = typer.Option(
        CatalogKind.HEROES,
        "--kind",
        help="Catalog to enrich: heroes or items.",
    ),
    catalog: Optional[str] = typer.Option(
        None,
        "--catalog",
        help="Catalog file (default: from config).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Classify every entity's lifecycle status from its wiki categories.

    \b
    Per-entity lookup failures degrade that entity to "unknown".
    Any other failure aborts the run without touching the catalog file
    and exits with code 1.
    """
    from mlbb_counterpick.pipeline.enrich import EnrichStage

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        run = EnrichStage(config).run(kind=kind, catalog_path=catalog)
    except Exception as exc:
        typer.echo(f"[ERROR] Enrichment failed: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"{kind.value.capitalize()} status ({run.rows_processed} records):")
    for status, count in run.status_counts.items():
        typer.echo(f"  {status:<11} {count}")
    typer.echo(f"[OK] Wrote {run.catalog_path}")


@app.command("recommend-items")
def recommend_items(
    hero: str = typer.Option(
        ...,
        "--hero",
        help="Your hero (name or id).",
    ),
    opponents: Optional[List[str]] = typer.Option(
        None,
        "--opponent",
        "-o",
        help="Opposing hero (name or id). Repeatable.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text."),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Recommend defensive and offensive items against an opposing roster."""
    from mlbb_counterpick.ingestion.catalog_store import load_heroes, load_items
    from mlbb_counterpick.recommendations.items import recommend_defense, recommend_offense

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    heroes = _load_or_exit(load_heroes, config.data.heroes_file, "Heroes catalog")
    items = _load_or_exit(load_items, config.data.items_file, "Items catalog")

    your_hero = _find_hero(heroes, hero)
    if your_hero is None:
        typer.echo(f"[ERROR] Unknown hero: {hero!r}", err=True)
        raise typer.Exit(code=1)
    enemy_team = _resolve_heroes_or_exit(heroes, opponents or [])
    if not enemy_team:
        typer.echo(f"[ERROR] {_NO_OPPONENTS_MSG}", err=True)
        raise typer.Exit(code=1)

    defense = recommend_defense(your_hero, enemy_team, items)
    offense = recommend_offense(your_hero, enemy_team, items)

    if as_json:
        typer.echo(json.dumps(
            {
                "hero": your_hero.name,
                "opponents": [h.name for h in enemy_team],
                "defense": [i.to_record() for i in defense],
                "offense": [i.to_record() for i in offense],
            },
            indent=2,
        ))
        return

    typer.echo(f"Items for {your_hero.name} vs {', '.join(h.name for h in enemy_team)}")
    for label, picks in (("Defense", defense), ("Offense", offense)):
        typer.echo(f"  {label}:")
        if not picks:
            typer.echo("    (none in catalog)")
        for item in picks:
            tags = f" ({', '.join(item.tags)})" if item.tags else ""
            typer.echo(f"    - {item.name}{tags}")


@app.command("recommend-heroes")
def recommend_heroes_cmd(
    enemies: Optional[List[str]] = typer.Option(
        None,
        "--enemy",
        "-e",
        help="Enemy hero (name or id). Repeatable.",
    ),
    role: Optional[str] = typer.Option(
        None,
        "--role",
        help="Preferred role (exact, case-sensitive, e.g. Tank).",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        help="Number of heroes to show (default: recommend.hero_limit).",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text."),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Rank counter-pick heroes against an enemy roster."""
    from mlbb_counterpick.ingestion.catalog_store import load_counters, load_heroes
    from mlbb_counterpick.recommendations.heroes import build_reasoning, recommend_heroes

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    heroes = _load_or_exit(load_heroes, config.data.heroes_file, "Heroes catalog")
    counters = _load_or_exit(load_counters, config.data.counters_file, "Counters")

    enemy_team = _resolve_heroes_or_exit(heroes, enemies or [])
    if not enemy_team:
        typer.echo("[ERROR] Select at least one enemy hero.", err=True)
        raise typer.Exit(code=1)

    picks = recommend_heroes(
        heroes,
        enemy_team,
        counters,
        role=role or None,
        limit=limit if limit is not None else config.recommend.hero_limit,
        role_bonus=config.recommend.role_bonus,
        role_penalty=config.recommend.role_penalty,
    )

    if as_json:
        typer.echo(json.dumps(
            [
                {
                    "id": rec.hero.id,
                    "name": rec.hero.name,
                    "score": round(rec.score, 2),
                    "base_score": round(rec.components.base_score, 2),
                    "role_bonus": rec.components.role_bonus,
                    "reasoning": build_reasoning(rec.components, role),
                }
                for rec in picks
            ],
            indent=2,
        ))
        return

    typer.echo(f"Counter-picks vs {', '.join(h.name for h in enemy_team)}")
    for rank, rec in enumerate(picks, start=1):
        typer.echo(
            f"  {rank:>2}. {rec.hero.name:<20} {rec.score:>6.2f}  "
            f"{build_reasoning(rec.components, role)}"
        )


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
