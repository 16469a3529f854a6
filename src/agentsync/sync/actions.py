"""Reconciliation of the external-API actions attached to a system agent."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from agentsync.agents.types import SECRET_AUTH_FIELDS, ActionDeclaration, ActionRecord
from agentsync.crypto import Encryptor, encrypt_metadata
from agentsync.errors import InvalidOpenAPISpec
from agentsync.files.resolver import FileKind, FileResolver
from agentsync.hashing import calculate_action_config_hash, hashes_equal
from agentsync.ids import ActionId
from agentsync.store.interfaces import ActionStore
from agentsync.validation import spec_text, validate_action_spec

logger = logging.getLogger(__name__)

ACTION_RECORD_TYPE = "action_prototype"
_ENV_REFERENCE = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$")


def extract_env_variable(value: str) -> str:
    """Expand a whole-value ``${NAME}`` reference from the environment."""
    match = _ENV_REFERENCE.match(value.strip())
    if match is None:
        return value
    resolved = os.environ.get(match[1])
    if resolved is None:
        logger.warning("Environment variable %s referenced by action auth is unset", match[1])
        return value
    return resolved


@dataclass(frozen=True, slots=True)
class PreparedAction:
    """A resolved, validated and encrypted action that has not been written yet."""

    action_id: ActionId
    config_hash: str
    metadata: dict[str, Any]


class ActionReconciler:
    def __init__(
        self,
        store: ActionStore,
        resolver: FileResolver,
        encryptor: Encryptor,
        *,
        owner: str,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.encryptor = encryptor
        self.owner = owner

    def load_spec(self, decl: ActionDeclaration, agent_id: str) -> str:
        if decl.spec_file:
            content = self.resolver.resolve(decl.spec_file, FileKind.AUTO)
            spec = spec_text(content)
            logger.debug("Loaded spec for %s on %s from %s", decl.domain, agent_id, decl.spec_file)
        elif decl.spec:
            spec = decl.spec
        else:
            raise InvalidOpenAPISpec(f"Action {decl.domain} must have either spec or specFile")
        validate_action_spec(spec)
        return spec

    def build_metadata(self, decl: ActionDeclaration, raw_spec: str) -> dict[str, Any]:
        metadata: dict[str, Any] = {"domain": decl.domain, "raw_spec": raw_spec}
        if decl.privacy_policy_url:
            metadata["privacy_policy_url"] = decl.privacy_policy_url
        if decl.auth is None:
            return metadata

        secrets = SECRET_AUTH_FIELDS[decl.auth_type]
        auth_fields = decl.auth.model_dump(exclude_none=True)
        metadata["auth"] = {key: value for key, value in auth_fields.items() if key not in secrets}
        for name in secrets:
            value = auth_fields.get(name)
            if value:
                metadata[name] = extract_env_variable(str(value))
        return metadata

    def prepare_action(self, agent_id: str, decl: ActionDeclaration) -> PreparedAction:
        raw_spec = self.load_spec(decl, agent_id)
        metadata = self.build_metadata(decl, raw_spec)
        return PreparedAction(
            action_id=ActionId(domain=decl.domain, agent_id=agent_id),
            config_hash=calculate_action_config_hash(metadata),
            metadata=encrypt_metadata(self.encryptor, metadata),
        )

    def prepare_actions(
        self, agent_id: str, declarations: Sequence[ActionDeclaration]
    ) -> list[PreparedAction]:
        """Resolve, validate and encrypt every declared action without writing anything."""
        prepared: list[PreparedAction] = []
        for decl in declarations:
            try:
                prepared.append(self.prepare_action(agent_id, decl))
            except Exception:
                logger.error("Failed to prepare action %s for agent %s", decl.domain, agent_id)
                raise
        return prepared

    def apply_action(self, prepared: PreparedAction) -> ActionRecord:
        action_id = prepared.action_id
        existing = self.store.get_action(action_id.value, self.owner)
        if (
            existing is not None
            and existing.agent_id == action_id.agent_id
            and hashes_equal(existing.config_hash, prepared.config_hash)
        ):
            logger.debug("Action %s unchanged, skipping write", action_id)
            return existing

        record = ActionRecord(
            action_id=action_id.value,
            user=self.owner,
            agent_id=action_id.agent_id,
            type=ACTION_RECORD_TYPE,
            metadata=prepared.metadata,
            config_hash=prepared.config_hash,
        )
        saved = self.store.upsert_action(record)
        logger.info("Synced action %s (%s)", action_id, "updated" if existing else "created")
        return saved

    def apply_actions(self, prepared: Sequence[PreparedAction]) -> list[ActionRecord]:
        return [self.apply_action(item) for item in prepared]

    def reconcile_actions(
        self, agent_id: str, declarations: Sequence[ActionDeclaration]
    ) -> list[ActionRecord]:
        """Upsert every declared action; the first failure aborts the whole agent."""
        if not declarations:
            return []
        return self.apply_actions(self.prepare_actions(agent_id, declarations))
