"""Resolution and loading of files referenced from the configuration document."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml

from agentsync.config import Settings
from agentsync.errors import FileNotFound, ParseError, PathTraversal

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = frozenset({".yaml", ".yml"})
_JSON_SUFFIXES = frozenset({".json"})


class FileKind(StrEnum):
    TEXT = "text"
    STRUCTURED = "structured"
    BINARY = "binary"
    AUTO = "auto"


@dataclass(frozen=True, slots=True)
class FileRequest:
    path: str
    kind: FileKind = FileKind.AUTO


class FileResolver:
    """Loads text, YAML/JSON and binary content relative to a base directory.

    Absolute paths are trusted as explicit administrator intent. Relative
    paths must stay inside ``base_dir``.
    """

    def __init__(self, base_dir: Path | str | None = None, *, max_workers: int = 4) -> None:
        self.base_dir = Path(base_dir).resolve() if base_dir is not None else Path.cwd()
        self.max_workers = max_workers

    @classmethod
    def from_settings(cls, settings: Settings) -> FileResolver:
        return cls(settings.config_base_dir())

    def resolve_path(self, path: str) -> Path:
        candidate = Path(path).expanduser()
        if candidate.is_absolute():
            return candidate
        resolved = (self.base_dir / candidate).resolve()
        try:
            resolved.relative_to(self.base_dir)
        except ValueError:
            raise PathTraversal(
                f"Path traversal detected: {path} attempts to access files "
                f"outside base directory {self.base_dir}"
            ) from None
        return resolved

    def resolve(self, path: str, kind: FileKind | str = FileKind.AUTO) -> Any:
        started = time.monotonic()
        kind = FileKind(kind)
        resolved = self.resolve_path(path)
        if not resolved.is_file():
            raise FileNotFound(f"File not found: {resolved}")

        if kind is FileKind.BINARY:
            content: Any = resolved.read_bytes()
            logger.debug("Loaded binary file %s (%d bytes)", resolved, len(content))
            return content

        raw = resolved.read_text(encoding="utf-8")
        fmt = self._detect_format(resolved) if kind is not FileKind.TEXT else "text"
        if kind is FileKind.STRUCTURED and fmt == "text":
            fmt = "yaml"
        if fmt == "yaml":
            content = _parse_yaml(raw, resolved)
        elif fmt == "json":
            content = _parse_json(raw, resolved)
        else:
            content = raw
        logger.debug(
            "Loaded %s file %s in %.1fms", fmt, resolved, (time.monotonic() - started) * 1000
        )
        return content

    def resolve_many(self, requests: Sequence[FileRequest]) -> list[Any]:
        """Resolve independent files concurrently, preserving request order."""
        if not requests:
            return []
        if len(requests) == 1:
            return [self.resolve(requests[0].path, requests[0].kind)]
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(requests))) as pool:
            futures = [pool.submit(self.resolve, req.path, req.kind) for req in requests]
            return [future.result() for future in futures]

    @staticmethod
    def _detect_format(path: Path) -> str:
        suffix = path.suffix.lower()
        if suffix in _YAML_SUFFIXES:
            return "yaml"
        if suffix in _JSON_SUFFIXES:
            return "json"
        return "text"


def _parse_yaml(raw: str, path: Path) -> Any:
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ParseError(f"Failed to parse YAML file {path}: {exc}") from exc


def _parse_json(raw: str, path: Path) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Failed to parse JSON file {path}: {exc}") from exc
