from pathlib import Path

import pytest
import structlog
from cryptography.fernet import Fernet

from agentsync.config import get_settings
from agentsync.crypto import FernetEncryptor
from agentsync.db.migrations.runner import run_migrations
from agentsync.files.resolver import FileResolver
from agentsync.main import get_record_cache
from agentsync.store.sqlite import SqliteAgentStore

OPENAPI_SPEC = """\
openapi: 3.0.0
info:
  title: Weather
  version: "1.0"
paths:
  /forecast:
    get:
      operationId: getForecast
"""

_WRITE_METHODS = frozenset(
    {
        "create_agent",
        "update_agent",
        "set_agent_actions",
        "delete_agent",
        "upsert_action",
        "delete_action",
    }
)


class CountingStore:
    """Delegates to a real store and records the name of every write call."""

    def __init__(self, inner: SqliteAgentStore) -> None:
        self.inner = inner
        self.writes: list[str] = []

    def __getattr__(self, name: str):  # type: ignore[no-untyped-def]
        attr = getattr(self.inner, name)
        if name not in _WRITE_METHODS:
            return attr

        def _record(*args, **kwargs):  # type: ignore[no-untyped-def]
            self.writes.append(name)
            return attr(*args, **kwargs)

        return _record


@pytest.fixture(autouse=True)
def test_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.setenv("APP_DB", str(tmp_path / "test.db"))
    monkeypatch.setenv("AVATAR_DIR", str(tmp_path / "avatars"))
    monkeypatch.setenv("CONFIG_PATH", "")
    monkeypatch.setenv("CREDS_KEY", Fernet.generate_key().decode("ascii"))
    get_settings.cache_clear()
    get_record_cache.cache_clear()
    run_migrations()
    yield
    get_settings.cache_clear()
    get_record_cache.cache_clear()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    path = tmp_path / "config"
    path.mkdir()
    return path


@pytest.fixture
def resolver(config_dir: Path) -> FileResolver:
    return FileResolver(config_dir)


@pytest.fixture
def store() -> SqliteAgentStore:
    return SqliteAgentStore()


@pytest.fixture
def counting_store(store: SqliteAgentStore) -> CountingStore:
    return CountingStore(store)


@pytest.fixture
def encryptor() -> FernetEncryptor:
    return FernetEncryptor.from_settings(get_settings())


@pytest.fixture
def openapi_spec() -> str:
    return OPENAPI_SPEC
