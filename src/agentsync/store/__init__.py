from agentsync.store.interfaces import ActionStore, AgentStore
from agentsync.store.sqlite import SqliteAgentStore

__all__ = ["ActionStore", "AgentStore", "SqliteAgentStore"]
