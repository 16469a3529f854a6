from agentsync.agents.types import ActionRecord
from agentsync.cache import SystemRecordCache
from agentsync.config import DEFAULT_SYSTEM_OWNER_ID
from agentsync.store.sqlite import SqliteAgentStore

OWNER = DEFAULT_SYSTEM_OWNER_ID


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class _CountingActions:
    def __init__(self, inner: SqliteAgentStore) -> None:
        self.inner = inner
        self.calls = 0

    def list_actions_by_owner(self, owner: str) -> list[ActionRecord]:
        self.calls += 1
        return self.inner.list_actions_by_owner(owner)


def _seed(store: SqliteAgentStore, action_id: str) -> None:
    store.upsert_action(
        ActionRecord(
            action_id=action_id, user=OWNER, agent_id="helper", metadata={}, config_hash="h"
        )
    )


def test_cache_serves_within_ttl(store: SqliteAgentStore) -> None:
    _seed(store, "a_helper")
    clock = _Clock()
    source = _CountingActions(store)
    cache = SystemRecordCache(ttl_seconds=60, clock=clock)

    first = cache.get_actions(source, OWNER)
    _seed(store, "b_helper")
    clock.now += 59
    second = cache.get_actions(source, OWNER)

    assert source.calls == 1
    assert [a.action_id for a in first] == [a.action_id for a in second] == ["a_helper"]


def test_cache_reloads_after_ttl(store: SqliteAgentStore) -> None:
    _seed(store, "a_helper")
    clock = _Clock()
    source = _CountingActions(store)
    cache = SystemRecordCache(ttl_seconds=60, clock=clock)

    cache.get_actions(source, OWNER)
    _seed(store, "b_helper")
    clock.now += 60
    reloaded = cache.get_actions(source, OWNER)

    assert source.calls == 2
    assert [a.action_id for a in reloaded] == ["a_helper", "b_helper"]


def test_invalidate_forces_reload(store: SqliteAgentStore) -> None:
    clock = _Clock()
    source = _CountingActions(store)
    cache = SystemRecordCache(ttl_seconds=60, clock=clock)

    cache.get_actions(source, OWNER)
    cache.invalidate(OWNER)
    cache.get_actions(source, OWNER)
    cache.invalidate()
    cache.get_actions(source, OWNER)
    assert source.calls == 3


def test_returned_list_is_a_copy(store: SqliteAgentStore) -> None:
    _seed(store, "a_helper")
    cache = SystemRecordCache(ttl_seconds=60, clock=_Clock())
    cache.get_actions(store, OWNER).clear()
    assert len(cache.get_actions(store, OWNER)) == 1
