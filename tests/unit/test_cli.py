from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from agentsync.cli.main import cli
from agentsync.config import DEFAULT_SYSTEM_OWNER_ID, get_settings
from agentsync.store.sqlite import SqliteAgentStore


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch) -> None:
    monkeypatch.setattr("agentsync.cli.main.configure_logging", lambda *_args, **_kw: None)


def _write_config(config_dir: Path, agents: list[dict[str, object]]) -> Path:
    path = config_dir / "agents.yaml"
    path.write_text(
        yaml.safe_dump({"endpoints": {"agents": {"defaultAgents": agents}}}), encoding="utf-8"
    )
    return path


def _agent(agent_id: str, **overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "id": agent_id,
        "name": agent_id.title(),
        "instructions": "Be helpful.",
        "provider": "openai",
        "model": "gpt-4o",
    }
    data.update(overrides)
    return data


def test_sync_prints_summary(config_dir: Path, store: SqliteAgentStore) -> None:
    path = _write_config(config_dir, [_agent("helper")])
    result = CliRunner().invoke(cli, ["sync", "--config", str(path)])
    assert result.exit_code == 0
    assert "synced: 1  removed: 0  errors: 0" in result.output
    assert store.get_agent("helper", DEFAULT_SYSTEM_OWNER_ID) is not None


def test_sync_json_output(config_dir: Path) -> None:
    path = _write_config(config_dir, [_agent("helper"), {"id": "broken"}])
    result = CliRunner().invoke(cli, ["sync", "--config", str(path), "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["success"] is False
    assert payload["synced_count"] == 1
    assert payload["errors"][0]["id"] == "broken"


def test_sync_strict_exits_non_zero_on_errors(config_dir: Path) -> None:
    path = _write_config(config_dir, [{"id": "broken"}])
    result = CliRunner().invoke(cli, ["sync", "--config", str(path), "--strict"])
    assert result.exit_code == 1
    assert "broken: Invalid agent configuration" in result.output


def test_sync_uses_config_path_env(config_dir: Path, monkeypatch) -> None:
    path = _write_config(config_dir, [_agent("helper")])
    monkeypatch.setenv("CONFIG_PATH", str(path))
    get_settings.cache_clear()
    result = CliRunner().invoke(cli, ["sync"])
    assert result.exit_code == 0
    assert "synced: 1" in result.output


def test_sync_without_config_is_a_usage_error() -> None:
    result = CliRunner().invoke(cli, ["sync"])
    assert result.exit_code == 2
    assert "no configuration document given" in result.output


def test_sync_missing_document(config_dir: Path) -> None:
    result = CliRunner().invoke(cli, ["sync", "--config", str(config_dir / "missing.yaml")])
    assert result.exit_code == 2
    assert "sync failed: configuration document not found" in result.output


def test_validate_reports_each_agent(config_dir: Path, store: SqliteAgentStore) -> None:
    path = _write_config(
        config_dir, [_agent("helper"), _agent("broken", instructionsFile="missing.md")]
    )
    result = CliRunner().invoke(cli, ["validate", "--config", str(path)])
    assert result.exit_code == 1
    assert "ok    helper" in result.output
    assert "FAIL  broken" in result.output
    assert store.list_agents_by_owner(DEFAULT_SYSTEM_OWNER_ID) == []


def test_validate_empty_document(config_dir: Path) -> None:
    path = config_dir / "agents.yaml"
    path.write_text("", encoding="utf-8")
    result = CliRunner().invoke(cli, ["validate", "--config", str(path)])
    assert result.exit_code == 0
    assert "no agents declared" in result.output


def test_migrate_is_idempotent() -> None:
    result = CliRunner().invoke(cli, ["migrate"])
    assert result.exit_code == 0
    assert "applied: none" in result.output
