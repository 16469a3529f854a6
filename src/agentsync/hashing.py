"""Order-independent content fingerprints used for change detection."""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from agentsync.agents.types import ActionDeclaration, AgentDeclaration, Avatar

logger = logging.getLogger(__name__)


def sort_object(value: Any) -> Any:
    """Recursively sort mapping keys; sequences keep their order."""
    if isinstance(value, Mapping):
        return {str(key): sort_object(value[key]) for key in sorted(value, key=str)}
    if isinstance(value, Sequence) and not isinstance(value, str | bytes):
        return [sort_object(item) for item in value]
    return value


def calculate_hash(data: Any) -> str:
    encoded = json.dumps(sort_object(data), separators=(",", ":"), ensure_ascii=False)
    digest = hashlib.sha256(encoded.encode("utf-8")).hexdigest()
    logger.debug("Calculated hash %s...", digest[:16])
    return digest


def calculate_agent_config_hash(
    decl: AgentDeclaration,
    instructions: str | None = None,
    avatar: Avatar | None = None,
) -> str:
    """Fingerprint the agent-identity fields of a declaration.

    Actions are left out: they are reconciled every pass and
    must not bump the agent's version history on their own.
    """
    return calculate_hash(
        {
            "id": decl.id,
            "name": decl.name,
            "description": decl.description,
            "instructions": instructions or decl.instructions,
            "provider": decl.provider,
            "model": decl.model,
            "category": decl.category,
            "model_parameters": decl.model_parameters,
            "recursion_limit": decl.recursion_limit,
            "tools": list(decl.tools),
            "tool_resources": decl.tool_resources,
            "avatar_filepath": avatar.path if avatar is not None else decl.icon,
        }
    )


def calculate_action_config_hash(metadata: Mapping[str, Any]) -> str:
    """Fingerprint one action's plaintext metadata before encryption."""
    return calculate_hash(dict(metadata))


def calculate_action_metadata_hash(actions: Sequence[ActionDeclaration]) -> str:
    if not actions:
        return ""
    return calculate_hash(
        [
            {
                "domain": action.domain,
                "spec_hash": calculate_hash({"spec": action.spec}) if action.spec else None,
                "auth_type": action.auth_type.value,
            }
            for action in actions
        ]
    )


def hashes_equal(left: str | None, right: str | None) -> bool:
    return left is not None and right is not None and left == right
