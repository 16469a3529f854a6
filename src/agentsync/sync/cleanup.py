"""Removal of system agents that are no longer declared."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from agentsync.agents.types import AgentRecord
from agentsync.store.interfaces import ActionStore, AgentStore

logger = logging.getLogger(__name__)


class OrphanCleanup:
    def __init__(self, agents: AgentStore, actions: ActionStore, *, owner: str) -> None:
        self.agents = agents
        self.actions = actions
        self.owner = owner

    def find_orphans(self, declared_ids: Iterable[str]) -> list[AgentRecord]:
        declared = set(declared_ids)
        return [
            record
            for record in self.agents.list_agents_by_owner(self.owner)
            if record.id not in declared
        ]

    def remove(self, record: AgentRecord) -> None:
        for action_id in record.actions:
            self.actions.delete_action(action_id, self.owner)
        self.agents.delete_agent(record.id, self.owner)

    def cleanup(self, declared_ids: Iterable[str]) -> int:
        """Delete orphaned agents and their actions; returns how many agents were removed.

        Each orphan is attempted independently. Failures are logged and retried
        on the next pass rather than raised.
        """
        orphans = self.find_orphans(declared_ids)
        if not orphans:
            logger.info("No system agents to remove")
            return 0

        logger.info(
            "Removing %d system agents no longer in configuration: %s",
            len(orphans),
            ", ".join(record.id for record in orphans),
        )
        removed = 0
        for record in orphans:
            try:
                self.remove(record)
            except Exception:
                logger.exception("Failed to delete orphaned agent %s", record.id)
                continue
            removed += 1
            logger.info("Deleted agent %s (%d actions)", record.id, len(record.actions))
        return removed
