"""Top-level driver of a declarative sync pass."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any

from agentsync.agents.types import SyncResult
from agentsync.cache import SystemRecordCache
from agentsync.sync.agents import AgentReconciler
from agentsync.sync.cleanup import OrphanCleanup

logger = logging.getLogger(__name__)


def extract_declared_agents(config: Any) -> list[Any]:
    """Pull the agent declarations out of a configuration document.

    Accepts either the full document (``endpoints.agents.defaultAgents``) or
    the bare list of declarations.
    """
    if config is None:
        return []
    if isinstance(config, Sequence) and not isinstance(config, str | bytes):
        return list(config)
    if not isinstance(config, Mapping):
        return []
    endpoints = config.get("endpoints")
    agents_section = endpoints.get("agents") if isinstance(endpoints, Mapping) else None
    declared = agents_section.get("defaultAgents") if isinstance(agents_section, Mapping) else None
    if not isinstance(declared, list):
        return []
    return declared


def declared_id(decl: Any) -> str:
    if isinstance(decl, Mapping):
        return str(decl.get("id") or "")
    return str(getattr(decl, "id", "") or "")


class SyncOrchestrator:
    def __init__(
        self,
        reconciler: AgentReconciler,
        cleanup: OrphanCleanup,
        *,
        cache: SystemRecordCache | None = None,
    ) -> None:
        self.reconciler = reconciler
        self.cleanup = cleanup
        self.cache = cache

    def sync(self, config: Any) -> SyncResult:
        started = time.monotonic()
        result = SyncResult()
        declared = extract_declared_agents(config)
        if not declared:
            logger.info("No system agents configured, skipping sync")
            return result

        logger.info("Starting sync of %d declared agents", len(declared))
        for decl in declared:
            agent_id = declared_id(decl)
            try:
                self.reconciler.reconcile_agent(decl)
            except Exception as exc:
                logger.error("Failed to sync agent %s: %s", agent_id or "<missing id>", exc)
                result.record_failure(agent_id, str(exc))
                continue
            result.record_success()

        # Every declared id is protected, including ones that just failed.
        declared_ids = [agent_id for agent_id in map(declared_id, declared) if agent_id]
        try:
            result.removed_count = self.cleanup.cleanup(declared_ids)
        except Exception:
            logger.exception("Orphan cleanup failed")
        finally:
            if self.cache is not None:
                self.cache.invalidate(self.cleanup.owner)

        logger.info(
            "Sync completed (synced=%d removed=%d errors=%d success=%s) in %.0fms",
            result.synced_count,
            result.removed_count,
            len(result.errors),
            result.success,
            (time.monotonic() - started) * 1000,
        )
        return result
