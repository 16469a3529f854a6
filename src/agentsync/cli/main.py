"""Click CLI group: sync, validate and migrate commands."""

from __future__ import annotations

import json
import sys

import click

from agentsync.config import get_settings, validate_settings_for_env
from agentsync.db.migrations.runner import run_migrations
from agentsync.errors import AgentSyncError
from agentsync.files.resolver import FileResolver
from agentsync.ids import new_id
from agentsync.logging import bound_context, configure_logging
from agentsync.main import build_orchestrator, load_config_document
from agentsync.sync.orchestrator import extract_declared_agents
from agentsync.sync.preflight import preflight


config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=str),
    default=None,
    help="Configuration document (default: CONFIG_PATH).",
)


def _resolve_config_path(config_path: str | None) -> str:
    path = config_path or get_settings().config_path
    if not path:
        raise click.UsageError("no configuration document given; pass --config or set CONFIG_PATH")
    return path


@click.group()
def cli() -> None:
    """Declarative system agent sync."""


@cli.command()
@config_option
@click.option("--json", "json_output", is_flag=True, help="Print the result as JSON.")
@click.option("--strict", is_flag=True, help="Exit non-zero when any agent failed to sync.")
def sync(config_path: str | None, json_output: bool, strict: bool) -> None:
    """Reconcile the record store with the declared agents."""
    settings = get_settings()
    path = _resolve_config_path(config_path)
    if config_path:
        settings = settings.model_copy(update={"config_path": config_path})
    configure_logging(settings)
    try:
        with bound_context(sync_run=new_id("sync")):
            validate_settings_for_env(settings)
            run_migrations(settings.app_db)
            document = load_config_document(path)
            result = build_orchestrator(settings).sync(document)
    except (AgentSyncError, ValueError) as exc:
        click.echo(f"sync failed: {exc}", err=True)
        sys.exit(2)

    if json_output:
        click.echo(json.dumps(result.as_dict(), indent=2, sort_keys=True))
    else:
        click.echo(
            f"synced: {result.synced_count}  removed: {result.removed_count}  "
            f"errors: {len(result.errors)}"
        )
        for err in result.errors:
            click.echo(f"  {err.id}: {err.message}")
    if strict and not result.success:
        sys.exit(1)


@cli.command()
@config_option
def validate(config_path: str | None) -> None:
    """Check every declared agent and its files without writing anything."""
    settings = get_settings()
    path = _resolve_config_path(config_path)
    try:
        document = load_config_document(path)
    except AgentSyncError as exc:
        click.echo(f"validate failed: {exc}", err=True)
        sys.exit(2)

    declared = extract_declared_agents(document)
    if not declared:
        click.echo("no agents declared")
        return
    resolver = FileResolver(settings.model_copy(update={"config_path": path}).config_base_dir())
    reports = preflight(
        declared, resolver, max_instructions_length=settings.instructions_max_length
    )
    failed = 0
    for report in reports:
        if report.ok:
            click.echo(f"ok    {report.agent_id}")
            continue
        failed += 1
        click.echo(f"FAIL  {report.agent_id or '<missing id>'}")
        for error in report.errors:
            click.echo(f"      - {error}")
    if failed:
        sys.exit(1)


@cli.command()
def migrate() -> None:
    """Apply pending database migrations."""
    applied = run_migrations(get_settings().app_db)
    click.echo(f"applied: {', '.join(applied) if applied else 'none'}")
