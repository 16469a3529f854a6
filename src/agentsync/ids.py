"""Identifier helpers."""

from dataclasses import dataclass
from uuid import uuid4


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex}"


@dataclass(frozen=True, slots=True)
class ActionId:
    """Stable key of an action owned by a system agent."""

    domain: str
    agent_id: str

    @property
    def value(self) -> str:
        return f"{self.domain}_{self.agent_id}"

    def __str__(self) -> str:
        return self.value
