"""Agent and action declaration and record models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class AuthType(StrEnum):
    NONE = "none"
    SERVICE_HTTP = "service_http"
    OAUTH = "oauth"


class _Declaration(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class NoAuth(_Declaration):
    type: Literal["none"] = "none"


class ServiceHttpAuth(_Declaration):
    type: Literal["service_http"]
    api_key: str | None = None
    authorization_type: str | None = None
    custom_auth_header: str | None = None


class OAuthAuth(_Declaration):
    type: Literal["oauth"]
    client_url: str
    authorization_url: str
    scope: str | None = None
    oauth_client_id: str | None = None
    oauth_client_secret: str | None = None
    token_exchange_method: str | None = None


ActionAuth = Annotated[NoAuth | ServiceHttpAuth | OAuthAuth, Field(discriminator="type")]

# Fields of an auth block that must never be persisted in plaintext.
SECRET_AUTH_FIELDS: dict[AuthType, tuple[str, ...]] = {
    AuthType.NONE: (),
    AuthType.SERVICE_HTTP: ("api_key",),
    AuthType.OAUTH: ("oauth_client_id", "oauth_client_secret"),
}


class ActionDeclaration(_Declaration):
    domain: str
    spec: str | None = None
    spec_file: str | None = Field(
        default=None, validation_alias=AliasChoices("spec_file", "specFile")
    )
    auth: ActionAuth | None = None
    privacy_policy_url: str | None = Field(
        default=None, validation_alias=AliasChoices("privacy_policy_url", "privacyPolicyUrl")
    )

    @property
    def auth_type(self) -> AuthType:
        return AuthType(self.auth.type) if self.auth is not None else AuthType.NONE


class AgentDeclaration(_Declaration):
    id: str
    name: str
    description: str | None = None
    instructions: str | None = None
    instructions_file: str | None = Field(
        default=None, validation_alias=AliasChoices("instructions_file", "instructionsFile")
    )
    icon: str | None = None
    icon_file: str | None = Field(
        default=None, validation_alias=AliasChoices("icon_file", "iconFile")
    )
    provider: str
    model: str
    category: str | None = None
    model_parameters: dict[str, Any] | None = Field(
        default=None, validation_alias=AliasChoices("model_parameters", "modelParameters")
    )
    recursion_limit: int | None = Field(
        default=None, validation_alias=AliasChoices("recursion_limit", "recursionLimit")
    )
    tools: list[str] = Field(default_factory=list)
    tool_resources: dict[str, Any] | None = Field(
        default=None, validation_alias=AliasChoices("tool_resources", "toolResources")
    )
    actions: list[ActionDeclaration] = Field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Avatar:
    path: str
    source: str

    def as_dict(self) -> dict[str, str]:
        return {"filepath": self.path, "source": self.source}


@dataclass(frozen=True, slots=True)
class ResolvedAgentContent:
    instructions: str
    avatar: Avatar | None = None


@dataclass(slots=True)
class AgentVersion:
    version: int
    config_hash: str
    created_at: str


@dataclass(slots=True)
class AgentRecord:
    id: str
    author: str
    name: str
    provider: str
    model: str
    instructions: str
    description: str | None = None
    avatar: Avatar | None = None
    category: str = "general"
    model_parameters: dict[str, Any] | None = None
    recursion_limit: int | None = None
    tools: list[str] = field(default_factory=list)
    tool_resources: dict[str, Any] | None = None
    actions: list[str] = field(default_factory=list)
    versions: list[AgentVersion] = field(default_factory=list)

    @property
    def latest_hash(self) -> str | None:
        if not self.versions:
            return None
        return self.versions[-1].config_hash


@dataclass(slots=True)
class ActionRecord:
    action_id: str
    user: str
    agent_id: str
    metadata: dict[str, Any]
    config_hash: str
    type: str = "action_prototype"


@dataclass(frozen=True, slots=True)
class SyncError:
    id: str
    message: str


@dataclass(slots=True)
class SyncResult:
    synced_count: int = 0
    removed_count: int = 0
    errors: list[SyncError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def record_success(self) -> None:
        self.synced_count += 1

    def record_failure(self, agent_id: str, message: str) -> None:
        self.errors.append(SyncError(id=agent_id, message=message))

    def as_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "synced_count": self.synced_count,
            "removed_count": self.removed_count,
            "errors": [{"id": err.id, "message": err.message} for err in self.errors],
        }
