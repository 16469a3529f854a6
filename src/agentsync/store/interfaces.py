"""Protocol interfaces for the agent and action record store."""

from __future__ import annotations

from typing import Protocol

from agentsync.agents.types import ActionRecord, AgentRecord


class AgentStore(Protocol):
    def get_agent(self, agent_id: str, owner: str) -> AgentRecord | None: ...

    def create_agent(self, record: AgentRecord, config_hash: str) -> AgentRecord: ...

    def update_agent(
        self, record: AgentRecord, config_hash: str | None = None
    ) -> AgentRecord: ...

    def set_agent_actions(
        self, agent_id: str, owner: str, action_ids: list[str]
    ) -> AgentRecord: ...

    def delete_agent(self, agent_id: str, owner: str) -> None: ...

    def list_agents_by_owner(self, owner: str) -> list[AgentRecord]: ...


class ActionStore(Protocol):
    def get_action(self, action_id: str, owner: str) -> ActionRecord | None: ...

    def upsert_action(self, record: ActionRecord) -> ActionRecord: ...

    def delete_action(self, action_id: str, owner: str) -> None: ...

    def list_actions_by_owner(self, owner: str) -> list[ActionRecord]: ...
