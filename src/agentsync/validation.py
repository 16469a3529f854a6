"""Structural validation of declarations and content validation of resolved files.

Declaration validators aggregate every problem into a ValidationResult so a
single pass reports all of them. Content validators raise the matching
ContentValidationError subclass.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import yaml

from agentsync.agents.types import AuthType
from agentsync.errors import InstructionsEmpty, InstructionsTooLong, InvalidOpenAPISpec

logger = logging.getLogger(__name__)

DEFAULT_MAX_INSTRUCTIONS_LENGTH = 10_000
REQUIRED_AGENT_FIELDS = ("id", "name", "provider", "model")
VALID_AUTH_TYPES = frozenset(item.value for item in AuthType)


@dataclass(slots=True)
class ValidationResult:
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True, slots=True)
class ParsedSpec:
    document: dict[str, Any]
    format: str
    version: str


def _first(decl: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = decl.get(key)
        if value is not None:
            return value
    return None


def _present(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


def validate_action(decl: Mapping[str, Any]) -> ValidationResult:
    result = ValidationResult()
    if not isinstance(decl, Mapping):
        result.errors.append("Action must be a mapping")
        return result

    if not _present(decl.get("domain")):
        result.errors.append("Missing required field: domain")

    has_spec = _present(decl.get("spec"))
    has_spec_file = _present(_first(decl, "spec_file", "specFile"))
    if not has_spec and not has_spec_file:
        result.errors.append("Action must have either spec or specFile")
    elif has_spec and has_spec_file:
        result.errors.append("Action must not have both spec and specFile")

    auth = decl.get("auth")
    if auth is not None:
        if not isinstance(auth, Mapping):
            result.errors.append("Auth configuration must be a mapping")
            return result
        auth_type = auth.get("type")
        if not auth_type:
            result.errors.append("Auth configuration must have a type")
        elif auth_type not in VALID_AUTH_TYPES:
            result.errors.append(f"Invalid auth type: {auth_type}")
        if auth_type == AuthType.OAUTH:
            if not _present(auth.get("client_url")):
                result.errors.append("OAuth auth requires client_url")
            if not _present(auth.get("authorization_url")):
                result.errors.append("OAuth auth requires authorization_url")
    return result


def validate_agent(decl: Mapping[str, Any]) -> ValidationResult:
    result = ValidationResult()
    if not isinstance(decl, Mapping):
        result.errors.append("Agent declaration must be a mapping")
        return result

    for name in REQUIRED_AGENT_FIELDS:
        value = decl.get(name)
        if not isinstance(value, str) or not value.strip():
            result.errors.append(f"Missing required field: {name}")

    has_inline = _present(decl.get("instructions"))
    has_file = _present(_first(decl, "instructions_file", "instructionsFile"))
    if not has_inline and not has_file:
        result.errors.append("Agent must have either instructions or instructionsFile")
    elif has_inline and has_file:
        result.errors.append("Agent must not have both instructions and instructionsFile")

    if _present(decl.get("icon")) and _present(_first(decl, "icon_file", "iconFile")):
        result.errors.append("Agent must not have both icon and iconFile")

    actions = decl.get("actions")
    if actions is not None:
        if not isinstance(actions, list):
            result.errors.append("Agent actions must be a list")
        else:
            # Action ids are "{domain}_{agent_id}", so one domain per agent.
            seen_domains: set[str] = set()
            for index, action in enumerate(actions):
                action_result = validate_action(action)
                if not action_result.valid:
                    result.errors.append(f"Action {index}: {', '.join(action_result.errors)}")
                    continue
                domain = str(action["domain"]).strip()
                if domain in seen_domains:
                    result.errors.append(f"Action {index}: duplicate domain {domain}")
                seen_domains.add(domain)
    return result


def validate_instructions(
    instructions: Any, max_length: int = DEFAULT_MAX_INSTRUCTIONS_LENGTH
) -> str:
    if not isinstance(instructions, str) or not instructions.strip():
        raise InstructionsEmpty("Instructions cannot be empty")
    if len(instructions) > max_length:
        raise InstructionsTooLong(
            f"Instructions too long: {len(instructions)} characters (max: {max_length})"
        )
    return instructions


def spec_text(content: Any) -> str:
    """Return a loaded spec file as text, dumping parsed documents back to JSON."""
    if isinstance(content, str):
        return content
    # YAML loads unquoted timestamps as date and datetime objects.
    return json.dumps(content, default=str)


def validate_openapi_document(document: Any) -> str:
    if not isinstance(document, Mapping):
        raise InvalidOpenAPISpec("OpenAPI spec must be an object")
    version = document.get("openapi") or document.get("swagger")
    if not version:
        raise InvalidOpenAPISpec("Missing openapi or swagger version field")
    if not isinstance(document.get("info"), Mapping):
        raise InvalidOpenAPISpec("Missing required field: info")
    if document.get("paths") is None and document.get("components") is None:
        raise InvalidOpenAPISpec("Spec must have either paths or components")
    return str(version)


def validate_action_spec(content: str) -> ParsedSpec:
    """Parse an action spec as YAML, falling back to JSON, and check its OpenAPI shape."""
    if not isinstance(content, str) or not content.strip():
        raise InvalidOpenAPISpec("Action spec is empty")
    try:
        document, fmt = yaml.safe_load(content), "yaml"
    except yaml.YAMLError as yaml_exc:
        try:
            document, fmt = json.loads(content), "json"
        except json.JSONDecodeError as json_exc:
            raise InvalidOpenAPISpec(
                f"Invalid spec format. YAML error: {yaml_exc}. JSON error: {json_exc}"
            ) from json_exc
    version = validate_openapi_document(document)
    logger.debug("Action spec is valid (format=%s version=%s)", fmt, version)
    return ParsedSpec(document=dict(document), format=fmt, version=version)
