"""SQLite-backed agent and action record store."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from agentsync.agents.types import ActionRecord, AgentRecord, AgentVersion, Avatar
from agentsync.db.connection import open_db
from agentsync.errors import PersistenceFailure


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _dumps(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value, sort_keys=True)


def _loads(raw: Any, default: Any = None) -> Any:
    if not isinstance(raw, str) or not raw:
        return default
    return json.loads(raw)


class SqliteAgentStore:
    """Implements both AgentStore and ActionStore on one database file.

    Every public call runs in its own transaction, so each upsert is atomic.
    """

    def __init__(self, db_path: str | None = None) -> None:
        self.db_path = db_path

    @contextmanager
    def _transaction(self, *, write: bool = False) -> Iterator[sqlite3.Connection]:
        try:
            with open_db(self.db_path, write=write) as conn:
                yield conn
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"record store error: {exc}") from exc

    # agents

    def get_agent(self, agent_id: str, owner: str) -> AgentRecord | None:
        with self._transaction() as conn:
            return self._fetch_agent(conn, agent_id, owner)

    def create_agent(self, record: AgentRecord, config_hash: str) -> AgentRecord:
        now = now_iso()
        with self._transaction(write=True) as conn:
            conn.execute(
                (
                    "INSERT INTO agents("
                    "id, author, name, description, instructions, avatar_json, provider, model, "
                    "category, model_parameters_json, recursion_limit, tools_json, "
                    "tool_resources_json, actions_json, created_at, updated_at"
                    ") VALUES(?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?)"
                ),
                (
                    record.id,
                    record.author,
                    *self._mutable_columns(record),
                    json.dumps(record.actions),
                    now,
                    now,
                ),
            )
            self._append_version(conn, record.id, record.author, config_hash, now)
            created = self._fetch_agent(conn, record.id, record.author)
        assert created is not None
        return created

    def update_agent(self, record: AgentRecord, config_hash: str | None = None) -> AgentRecord:
        now = now_iso()
        with self._transaction(write=True) as conn:
            cursor = conn.execute(
                (
                    "UPDATE agents SET name=?, description=?, instructions=?, avatar_json=?, "
                    "provider=?, model=?, category=?, model_parameters_json=?, "
                    "recursion_limit=?, tools_json=?, tool_resources_json=?, updated_at=? "
                    "WHERE id=? AND author=?"
                ),
                (*self._mutable_columns(record), now, record.id, record.author),
            )
            if cursor.rowcount == 0:
                raise PersistenceFailure(f"agent not found: {record.id}", retryable=False)
            if config_hash is not None:
                self._append_version(conn, record.id, record.author, config_hash, now)
            updated = self._fetch_agent(conn, record.id, record.author)
        assert updated is not None
        return updated

    def set_agent_actions(self, agent_id: str, owner: str, action_ids: list[str]) -> AgentRecord:
        with self._transaction(write=True) as conn:
            cursor = conn.execute(
                "UPDATE agents SET actions_json=?, updated_at=? WHERE id=? AND author=?",
                (json.dumps(action_ids), now_iso(), agent_id, owner),
            )
            if cursor.rowcount == 0:
                raise PersistenceFailure(f"agent not found: {agent_id}", retryable=False)
            updated = self._fetch_agent(conn, agent_id, owner)
        assert updated is not None
        return updated

    def delete_agent(self, agent_id: str, owner: str) -> None:
        with self._transaction(write=True) as conn:
            conn.execute(
                "DELETE FROM agent_versions WHERE agent_id=? AND author=?", (agent_id, owner)
            )
            conn.execute("DELETE FROM agents WHERE id=? AND author=?", (agent_id, owner))

    def list_agents_by_owner(self, owner: str) -> list[AgentRecord]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT id FROM agents WHERE author=? ORDER BY id", (owner,)
            ).fetchall()
            records = [self._fetch_agent(conn, str(row["id"]), owner) for row in rows]
        return [record for record in records if record is not None]

    # actions

    def get_action(self, action_id: str, owner: str) -> ActionRecord | None:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM actions WHERE action_id=? AND user=?", (action_id, owner)
            ).fetchone()
        return self._action_from_row(row) if row is not None else None

    def upsert_action(self, record: ActionRecord) -> ActionRecord:
        with self._transaction(write=True) as conn:
            conn.execute(
                (
                    "INSERT INTO actions("
                    "action_id, user, agent_id, type, metadata_json, config_hash, updated_at"
                    ") VALUES(?,?,?,?,?,?,?) "
                    "ON CONFLICT(action_id, user) DO UPDATE SET "
                    "agent_id=excluded.agent_id, type=excluded.type, "
                    "metadata_json=excluded.metadata_json, config_hash=excluded.config_hash, "
                    "updated_at=excluded.updated_at"
                ),
                (
                    record.action_id,
                    record.user,
                    record.agent_id,
                    record.type,
                    json.dumps(record.metadata, sort_keys=True),
                    record.config_hash,
                    now_iso(),
                ),
            )
        return record

    def delete_action(self, action_id: str, owner: str) -> None:
        with self._transaction(write=True) as conn:
            conn.execute("DELETE FROM actions WHERE action_id=? AND user=?", (action_id, owner))

    def list_actions_by_owner(self, owner: str) -> list[ActionRecord]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM actions WHERE user=? ORDER BY action_id", (owner,)
            ).fetchall()
        return [self._action_from_row(row) for row in rows]

    # helpers

    @staticmethod
    def _mutable_columns(record: AgentRecord) -> tuple[Any, ...]:
        return (
            record.name,
            record.description,
            record.instructions,
            _dumps(record.avatar.as_dict()) if record.avatar is not None else None,
            record.provider,
            record.model,
            record.category,
            _dumps(record.model_parameters),
            record.recursion_limit,
            json.dumps(record.tools),
            _dumps(record.tool_resources),
        )

    @staticmethod
    def _append_version(
        conn: sqlite3.Connection, agent_id: str, owner: str, config_hash: str, now: str
    ) -> None:
        row = conn.execute(
            "SELECT COALESCE(MAX(version), 0) AS latest FROM agent_versions "
            "WHERE agent_id=? AND author=?",
            (agent_id, owner),
        ).fetchone()
        conn.execute(
            (
                "INSERT INTO agent_versions(agent_id, author, version, config_hash, created_at) "
                "VALUES(?,?,?,?,?)"
            ),
            (agent_id, owner, int(row["latest"]) + 1, config_hash, now),
        )

    @staticmethod
    def _fetch_agent(conn: sqlite3.Connection, agent_id: str, owner: str) -> AgentRecord | None:
        row = conn.execute(
            "SELECT * FROM agents WHERE id=? AND author=?", (agent_id, owner)
        ).fetchone()
        if row is None:
            return None
        versions = [
            AgentVersion(
                version=int(item["version"]),
                config_hash=str(item["config_hash"]),
                created_at=str(item["created_at"]),
            )
            for item in conn.execute(
                "SELECT version, config_hash, created_at FROM agent_versions "
                "WHERE agent_id=? AND author=? ORDER BY version",
                (agent_id, owner),
            ).fetchall()
        ]
        avatar_raw = _loads(row["avatar_json"])
        return AgentRecord(
            id=str(row["id"]),
            author=str(row["author"]),
            name=str(row["name"]),
            description=row["description"],
            instructions=str(row["instructions"]),
            avatar=(
                Avatar(path=str(avatar_raw["filepath"]), source=str(avatar_raw["source"]))
                if isinstance(avatar_raw, dict)
                else None
            ),
            provider=str(row["provider"]),
            model=str(row["model"]),
            category=str(row["category"]),
            model_parameters=_loads(row["model_parameters_json"]),
            recursion_limit=row["recursion_limit"],
            tools=_loads(row["tools_json"], []),
            tool_resources=_loads(row["tool_resources_json"]),
            actions=_loads(row["actions_json"], []),
            versions=versions,
        )

    @staticmethod
    def _action_from_row(row: sqlite3.Row) -> ActionRecord:
        return ActionRecord(
            action_id=str(row["action_id"]),
            user=str(row["user"]),
            agent_id=str(row["agent_id"]),
            type=str(row["type"]),
            metadata=_loads(row["metadata_json"], {}),
            config_hash=str(row["config_hash"]),
        )
