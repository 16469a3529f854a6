"""Dry-run checks of declared agents without touching the record store."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from agentsync.errors import AgentSyncError
from agentsync.files.icons import is_image_file
from agentsync.files.resolver import FileKind, FileRequest, FileResolver
from agentsync.sync.agents import parse_agent_declaration
from agentsync.sync.orchestrator import declared_id
from agentsync.validation import (
    DEFAULT_MAX_INSTRUCTIONS_LENGTH,
    spec_text,
    validate_action_spec,
    validate_instructions,
)


@dataclass(slots=True)
class PreflightReport:
    agent_id: str
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def preflight_agent(
    decl: Any,
    resolver: FileResolver,
    *,
    max_instructions_length: int = DEFAULT_MAX_INSTRUCTIONS_LENGTH,
) -> PreflightReport:
    report = PreflightReport(agent_id=declared_id(decl))
    try:
        declaration = parse_agent_declaration(decl)
    except AgentSyncError as exc:
        report.errors.append(str(exc))
        return report

    requests: list[FileRequest] = []
    if declaration.instructions_file:
        requests.append(FileRequest(declaration.instructions_file, FileKind.TEXT))
    spec_files = [action for action in declaration.actions if action.spec_file]
    requests.extend(FileRequest(action.spec_file or "", FileKind.AUTO) for action in spec_files)
    try:
        loaded = resolver.resolve_many(requests)
    except AgentSyncError as exc:
        report.errors.append(str(exc))
        return report

    instructions = loaded.pop(0) if declaration.instructions_file else declaration.instructions
    try:
        validate_instructions(instructions, max_instructions_length)
    except AgentSyncError as exc:
        report.errors.append(str(exc))

    if declaration.icon_file and not is_image_file(declaration.icon_file):
        report.errors.append(f"Invalid icon file format: {declaration.icon_file}")

    specs = iter(loaded)
    for action in declaration.actions:
        if action.spec_file:
            content = next(specs)
            spec = spec_text(content)
        else:
            spec = action.spec or ""
        try:
            validate_action_spec(spec)
        except AgentSyncError as exc:
            report.errors.append(f"Action {action.domain}: {exc}")
    return report


def preflight(
    declared: Sequence[Any],
    resolver: FileResolver,
    *,
    max_instructions_length: int = DEFAULT_MAX_INSTRUCTIONS_LENGTH,
) -> list[PreflightReport]:
    return [
        preflight_agent(decl, resolver, max_instructions_length=max_instructions_length)
        for decl in declared
    ]
