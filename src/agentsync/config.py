"""Application configuration contract."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_OWNER_ID = "000000000000000000000000"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field(alias="APP_ENV", default="dev")
    app_db: str = Field(alias="APP_DB", default="/tmp/agentsync.db")
    log_level: str = Field(alias="LOG_LEVEL", default="INFO")

    # Location of the top-level configuration document; relative file
    # references inside it resolve against its directory.
    config_path: str = Field(alias="CONFIG_PATH", default="")
    system_owner_id: str = Field(alias="SYSTEM_OWNER_ID", default=DEFAULT_SYSTEM_OWNER_ID)
    instructions_max_length: int = Field(alias="INSTRUCTIONS_MAX_LENGTH", default=10_000)
    icon_max_size_mb: float = Field(alias="ICON_MAX_SIZE_MB", default=5.0)
    avatar_dir: str = Field(alias="AVATAR_DIR", default="/tmp/agentsync/avatars")
    avatar_size_px: int = Field(alias="AVATAR_SIZE_PX", default=256)
    creds_key: str = Field(alias="CREDS_KEY", default="")
    system_record_cache_ttl_seconds: int = Field(
        alias="SYSTEM_RECORD_CACHE_TTL_SECONDS", default=600
    )

    def config_base_dir(self) -> Path:
        if self.config_path.strip():
            return Path(self.config_path).expanduser().resolve().parent
        return Path.cwd()


def validate_settings_for_env(settings: Settings) -> None:
    missing: list[str] = []
    if not settings.system_owner_id.strip():
        missing.append("SYSTEM_OWNER_ID")
    if settings.instructions_max_length < 1:
        missing.append("INSTRUCTIONS_MAX_LENGTH(positive value required)")
    if settings.icon_max_size_mb <= 0:
        missing.append("ICON_MAX_SIZE_MB(positive value required)")

    if settings.app_env == "prod":
        if not settings.creds_key.strip():
            missing.append("CREDS_KEY")
        if not settings.app_db.startswith("/"):
            missing.append("APP_DB(absolute path required)")
        if not settings.config_path.strip():
            missing.append("CONFIG_PATH")

    if missing:
        keys = ", ".join(sorted(set(missing)))
        raise ValueError(f"invalid configuration: {keys}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
