"""Reconciliation of one declared system agent."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from agentsync.agents.types import AgentDeclaration, AgentRecord, Avatar, ResolvedAgentContent
from agentsync.errors import InvalidConfiguration
from agentsync.files.icons import AvatarStore, process_icon_file
from agentsync.files.resolver import FileKind, FileResolver
from agentsync.hashing import (
    calculate_action_metadata_hash,
    calculate_agent_config_hash,
    hashes_equal,
)
from agentsync.logging import bound_context
from agentsync.store.interfaces import ActionStore, AgentStore
from agentsync.sync.actions import ActionReconciler
from agentsync.validation import (
    DEFAULT_MAX_INSTRUCTIONS_LENGTH,
    validate_agent,
    validate_instructions,
)

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "general"


class AgentOutcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(frozen=True, slots=True)
class ReconciledAgent:
    record: AgentRecord
    outcome: AgentOutcome


def parse_agent_declaration(decl: Mapping[str, Any] | AgentDeclaration) -> AgentDeclaration:
    """Validate a raw declaration and build the typed model, or raise InvalidConfiguration."""
    if isinstance(decl, AgentDeclaration):
        decl = decl.model_dump(exclude_none=True)
    result = validate_agent(decl)
    if not result.valid:
        raise InvalidConfiguration(
            f"Invalid agent configuration: {', '.join(result.errors)}", errors=result.errors
        )
    try:
        return AgentDeclaration.model_validate(decl)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        ]
        raise InvalidConfiguration(
            f"Invalid agent configuration: {', '.join(errors)}", errors=errors
        ) from exc


class AgentReconciler:
    def __init__(
        self,
        agents: AgentStore,
        actions: ActionStore,
        action_reconciler: ActionReconciler,
        resolver: FileResolver,
        avatar_store: AvatarStore,
        *,
        owner: str,
        max_instructions_length: int = DEFAULT_MAX_INSTRUCTIONS_LENGTH,
        icon_max_size_mb: float = 5.0,
    ) -> None:
        self.agents = agents
        self.actions = actions
        self.action_reconciler = action_reconciler
        self.resolver = resolver
        self.avatar_store = avatar_store
        self.owner = owner
        self.max_instructions_length = max_instructions_length
        self.icon_max_size_mb = icon_max_size_mb

    def resolve_content(self, decl: AgentDeclaration) -> ResolvedAgentContent:
        if decl.instructions_file:
            instructions = self.resolver.resolve(decl.instructions_file, FileKind.TEXT)
        else:
            instructions = decl.instructions
        validate_instructions(instructions, self.max_instructions_length)

        avatar: Avatar | None = None
        if decl.icon_file:
            avatar = process_icon_file(
                self.resolver,
                decl.icon_file,
                decl.id,
                self.avatar_store,
                max_size_mb=self.icon_max_size_mb,
            )
        elif decl.icon:
            avatar = Avatar(path=decl.icon, source="inline")
        return ResolvedAgentContent(instructions=instructions, avatar=avatar)

    def _build_record(self, decl: AgentDeclaration, content: ResolvedAgentContent) -> AgentRecord:
        return AgentRecord(
            id=decl.id,
            author=self.owner,
            name=decl.name,
            description=decl.description,
            instructions=content.instructions,
            avatar=content.avatar,
            provider=decl.provider,
            model=decl.model,
            category=decl.category or DEFAULT_CATEGORY,
            model_parameters=decl.model_parameters,
            recursion_limit=decl.recursion_limit,
            tools=list(decl.tools),
            tool_resources=decl.tool_resources,
        )

    def reconcile_agent(self, decl: Mapping[str, Any] | AgentDeclaration) -> ReconciledAgent:
        started = time.monotonic()
        declaration = parse_agent_declaration(decl)
        with bound_context(agent_id=declaration.id):
            reconciled = self._reconcile(declaration)
        logger.info(
            "Agent %s sync completed (%s, %d actions) in %.0fms",
            declaration.id,
            reconciled.outcome,
            len(reconciled.record.actions),
            (time.monotonic() - started) * 1000,
        )
        return reconciled

    def _reconcile(self, decl: AgentDeclaration) -> ReconciledAgent:
        content = self.resolve_content(decl)
        # Actions are fully resolved before any write so a broken action
        # leaves the agent record untouched for this pass.
        prepared = self.action_reconciler.prepare_actions(decl.id, decl.actions)
        if decl.actions:
            logger.debug(
                "Prepared %d actions (fingerprint %s)",
                len(prepared),
                calculate_action_metadata_hash(decl.actions)[:8],
            )

        config_hash = calculate_agent_config_hash(decl, content.instructions, content.avatar)
        existing = self.agents.get_agent(decl.id, self.owner)
        desired = self._build_record(decl, content)

        if existing is None:
            logger.info("Agent %s does not exist, creating", decl.id)
            record = self.agents.create_agent(desired, config_hash)
            outcome = AgentOutcome.CREATED
        elif hashes_equal(existing.latest_hash, config_hash):
            logger.info("Agent %s configuration unchanged, skipping update", decl.id)
            record = existing
            outcome = AgentOutcome.UNCHANGED
        else:
            logger.info(
                "Agent %s configuration changed (%s -> %s), updating",
                decl.id,
                (existing.latest_hash or "")[:8],
                config_hash[:8],
            )
            record = self.agents.update_agent(desired, config_hash)
            outcome = AgentOutcome.UPDATED

        synced = self.action_reconciler.apply_actions(prepared)
        action_ids = [item.action_id for item in synced]
        if record.actions != action_ids:
            stale = [action_id for action_id in record.actions if action_id not in action_ids]
            record = self.agents.set_agent_actions(decl.id, self.owner, action_ids)
            for action_id in stale:
                self.actions.delete_action(action_id, self.owner)
                logger.info("Removed action %s no longer declared on %s", action_id, decl.id)
        return ReconciledAgent(record=record, outcome=outcome)
