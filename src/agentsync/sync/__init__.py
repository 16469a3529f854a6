from agentsync.sync.actions import ActionReconciler
from agentsync.sync.agents import AgentReconciler
from agentsync.sync.cleanup import OrphanCleanup
from agentsync.sync.orchestrator import SyncOrchestrator

__all__ = ["ActionReconciler", "AgentReconciler", "OrphanCleanup", "SyncOrchestrator"]
