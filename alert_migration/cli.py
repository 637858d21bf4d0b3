from __future__ import annotations

import json
import logging
from typing import List, Optional, Tuple

import typer
from sqlalchemy import text

from alert_migration.db.session import get_database_url, get_session

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Legacy dashboard alert -> unified alert rule migration")


def _validate_migrate_params(*, orgs: List[int], workers: int) -> None:
    if not orgs:
        raise typer.BadParameter("At least one organization id is required (--org)")
    if any(o < 1 for o in orgs):
        raise typer.BadParameter("organization ids must be positive")
    if workers < 1 or workers > 64:
        raise typer.BadParameter("workers must be between 1 and 64")


def _persist(results) -> Tuple[int, int]:
    """Write rules, then the silences of the rules that were actually written."""
    from alert_migration.db.repo import insert_alert_rule, insert_silence

    rules_inserted = 0
    silences_inserted = 0
    for result in results:
        written = set()
        for rule in result.rules:
            if insert_alert_rule(rule):
                written.add(rule.uid)
            else:
                logger.warning(
                    "alert rule already stored, skipping it and its silences",
                    extra={"extra_data": {"org_id": rule.org_id, "rule_uid": rule.uid, "title": rule.title}},
                )
        rules_inserted += len(written)
        for silence in result.silences:
            if silence.rule_uid in written and insert_silence(silence):
                silences_inserted += 1
    return rules_inserted, silences_inserted


@app.command("db-check")
def db_check() -> None:
    """Check DB connectivity and print basic info."""
    try:
        get_database_url()
    except RuntimeError as e:
        raise typer.BadParameter(str(e)) from e

    with get_session() as session:
        session.execute(text("SELECT 1"))
        dialect = session.get_bind().dialect.name
        typer.echo("DB OK")
        typer.echo(f"dialect: {dialect}")


@app.command("show-config")
def show_config(
    config: Optional[str] = typer.Option(None, help="Path to migration YAML config"),
) -> None:
    """Print the effective migration configuration."""
    from alert_migration.config import load_config
    from alert_migration.errors import ConfigError

    try:
        cfg = load_config(config)
    except ConfigError as e:
        raise typer.BadParameter(str(e)) from e
    typer.echo(json.dumps(cfg.as_dict(), indent=2, sort_keys=True))


@app.command("migrate")
def migrate(
    org: List[int] = typer.Option(..., "--org", help="Organization id to migrate (repeatable)"),
    config: Optional[str] = typer.Option(None, help="Path to migration YAML config"),
    dry_run: bool = typer.Option(False, help="Build rules and silences without writing them"),
    workers: int = typer.Option(1, help="Organizations migrated in parallel"),
    output: Optional[str] = typer.Option(None, help="Write migration summary JSON to file"),
    log_level: str = typer.Option("INFO", help="Log level"),
    log_format: str = typer.Option("console", help="Log format: console or json"),
) -> None:
    """Migrate legacy dashboard alerts of the given organizations."""
    _validate_migrate_params(orgs=org, workers=workers)

    from alert_migration.condition_translation import ClassicConditionTranslator, DatasourceCache
    from alert_migration.config import load_config
    from alert_migration.db.repo import (
        load_dashboards,
        load_datasources,
        load_existing_rule_titles,
        load_existing_rule_uids,
        load_legacy_alerts,
    )
    from alert_migration.db.session import titles_case_insensitive
    from alert_migration.dedup import UIDAllocator
    from alert_migration.errors import ConfigError
    from alert_migration.logging_setup import configure_logging
    from alert_migration.observability import render_text, summarize_results
    from alert_migration.org_migration import OrgInput, migrate_orgs

    try:
        configure_logging(level=log_level, fmt=log_format)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    try:
        cfg = load_config(config)
    except ConfigError as e:
        raise typer.BadParameter(str(e)) from e
    if cfg.case_insensitive_titles is None:
        cfg = cfg.with_case_policy(titles_case_insensitive())

    orgs = []
    for org_id in org:
        dashboards, folder_by_dashboard = load_dashboards(org_id)
        orgs.append(
            OrgInput(
                org_id=org_id,
                alerts=load_legacy_alerts(org_id),
                dashboards=dashboards,
                folder_by_dashboard=folder_by_dashboard,
                existing_titles=load_existing_rule_titles(org_id),
            )
        )

    translator = ClassicConditionTranslator(DatasourceCache(load_datasources))
    allocator = UIDAllocator(
        max_len=cfg.max_uid_length,
        attempts=cfg.uid_attempts,
        existing=load_existing_rule_uids(),
    )
    results = migrate_orgs(orgs, cfg, translator, uid_allocator=allocator, max_workers=workers)

    if dry_run:
        typer.echo("Dry run: nothing written")
    else:
        rules_inserted, silences_inserted = _persist(results)
        typer.echo(f"Rules inserted:    {rules_inserted}")
        typer.echo(f"Silences inserted: {silences_inserted}")

    summary = summarize_results(results)
    if output:
        with open(output, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2)
        typer.echo(f"Migration summary written to {output}")
    else:
        typer.echo(render_text(summary))
