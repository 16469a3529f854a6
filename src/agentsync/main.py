"""Startup wiring for the sync engine."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from agentsync.agents.types import SyncResult
from agentsync.cache import SystemRecordCache
from agentsync.config import Settings, get_settings, validate_settings_for_env
from agentsync.crypto import Encryptor, FernetEncryptor
from agentsync.db.migrations.runner import run_migrations
from agentsync.errors import ConfigError, ParseError
from agentsync.files.icons import AvatarStore, LocalAvatarStore
from agentsync.files.resolver import FileResolver
from agentsync.ids import new_id
from agentsync.logging import bound_context
from agentsync.store.sqlite import SqliteAgentStore
from agentsync.sync.actions import ActionReconciler
from agentsync.sync.agents import AgentReconciler
from agentsync.sync.cleanup import OrphanCleanup
from agentsync.sync.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)


def load_config_document(path: str | Path) -> dict[str, Any]:
    config_path = Path(path).expanduser()
    if not config_path.is_file():
        raise ConfigError(f"configuration document not found: {config_path}")
    try:
        document = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ParseError(f"Failed to parse configuration document {config_path}: {exc}") from exc
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigError(f"configuration document must be a mapping: {config_path}")
    return document


def build_orchestrator(
    settings: Settings,
    *,
    store: SqliteAgentStore | None = None,
    encryptor: Encryptor | None = None,
    avatar_store: AvatarStore | None = None,
    resolver: FileResolver | None = None,
    cache: SystemRecordCache | None = None,
) -> SyncOrchestrator:
    store = store or SqliteAgentStore(settings.app_db)
    resolver = resolver or FileResolver.from_settings(settings)
    owner = settings.system_owner_id
    action_reconciler = ActionReconciler(
        store,
        resolver,
        encryptor or FernetEncryptor.from_settings(settings),
        owner=owner,
    )
    reconciler = AgentReconciler(
        store,
        store,
        action_reconciler,
        resolver,
        avatar_store or LocalAvatarStore.from_settings(settings),
        owner=owner,
        max_instructions_length=settings.instructions_max_length,
        icon_max_size_mb=settings.icon_max_size_mb,
    )
    return SyncOrchestrator(
        reconciler,
        OrphanCleanup(store, store, owner=owner),
        cache=cache,
    )


@lru_cache(maxsize=1)
def get_record_cache() -> SystemRecordCache:
    """Process-wide cache of system actions, invalidated by every startup sync.

    Runtime readers list system actions through
    ``get_record_cache().get_actions(store, owner)`` instead of querying the store.
    """
    return SystemRecordCache(get_settings().system_record_cache_ttl_seconds)


def run_startup_sync(
    settings: Settings | None = None, cache: SystemRecordCache | None = None
) -> SyncResult | None:
    """Run one pass at process start; failures are logged, never raised."""
    settings = settings or get_settings()
    try:
        validate_settings_for_env(settings)
        if not settings.config_path.strip():
            logger.info("CONFIG_PATH not set, skipping system agent sync")
            return None
        run_migrations(settings.app_db)
        document = load_config_document(settings.config_path)
        orchestrator = build_orchestrator(settings, cache=cache or get_record_cache())
        with bound_context(sync_run=new_id("sync")):
            result = orchestrator.sync(document)
    except Exception:
        logger.exception("System agent sync could not run")
        return None
    if not result.success:
        logger.warning(
            "System agent sync finished with %d errors: %s",
            len(result.errors),
            "; ".join(f"{err.id}: {err.message}" for err in result.errors),
        )
    return result
