import json
from datetime import date

import pytest

from agentsync.errors import InstructionsEmpty, InstructionsTooLong, InvalidOpenAPISpec
from agentsync.validation import (
    spec_text,
    validate_action,
    validate_action_spec,
    validate_agent,
    validate_instructions,
)


def _agent(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "id": "helper",
        "name": "Helper",
        "instructions": "Be helpful.",
        "provider": "openai",
        "model": "gpt-4o",
    }
    data.update(overrides)
    return data


def test_valid_agent_passes() -> None:
    result = validate_agent(_agent(actions=[{"domain": "a.com", "spec": "x"}]))
    assert result.valid is True
    assert result.errors == []


def test_agent_errors_are_aggregated() -> None:
    result = validate_agent({})
    assert result.valid is False
    assert result.errors == [
        "Missing required field: id",
        "Missing required field: name",
        "Missing required field: provider",
        "Missing required field: model",
        "Agent must have either instructions or instructionsFile",
    ]


def test_agent_rejects_both_content_sources() -> None:
    result = validate_agent(_agent(instructionsFile="helper.md"))
    assert result.errors == ["Agent must not have both instructions and instructionsFile"]
    result = validate_agent(_agent(icon="https://x/icon.png", icon_file="icon.png"))
    assert result.errors == ["Agent must not have both icon and iconFile"]


def test_agent_accepts_instructions_file_only() -> None:
    data = _agent(instructionsFile="helper.md")
    del data["instructions"]
    assert validate_agent(data).valid is True


def test_action_errors_are_prefixed_with_index() -> None:
    result = validate_agent(
        _agent(actions=[{"domain": "ok.com", "spec": "x"}, {"spec": "x", "specFile": "a.yaml"}])
    )
    assert result.errors == [
        "Action 1: Missing required field: domain, Action must not have both spec and specFile"
    ]


def test_duplicate_action_domains_are_rejected() -> None:
    result = validate_agent(
        _agent(
            actions=[
                {"domain": "w.example.com", "spec": "a"},
                {"domain": "other.example.com", "spec": "b"},
                {"domain": " w.example.com ", "spec": "c"},
            ]
        )
    )
    assert result.errors == ["Action 2: duplicate domain w.example.com"]


def test_agent_actions_must_be_list() -> None:
    assert validate_agent(_agent(actions={"domain": "a"})).errors == [
        "Agent actions must be a list"
    ]


@pytest.mark.parametrize(
    ("action", "expected"),
    [
        ({"domain": "a.com"}, ["Action must have either spec or specFile"]),
        ({"domain": "a.com", "spec": "x", "auth": {}}, ["Auth configuration must have a type"]),
        (
            {"domain": "a.com", "spec": "x", "auth": {"type": "basic"}},
            ["Invalid auth type: basic"],
        ),
        (
            {"domain": "a.com", "spec": "x", "auth": {"type": "oauth"}},
            ["OAuth auth requires client_url", "OAuth auth requires authorization_url"],
        ),
        (
            {"domain": "a.com", "spec": "x", "auth": "token"},
            ["Auth configuration must be a mapping"],
        ),
    ],
)
def test_validate_action_errors(action: dict[str, object], expected: list[str]) -> None:
    assert validate_action(action).errors == expected


def test_validate_action_accepts_complete_oauth() -> None:
    action = {
        "domain": "a.com",
        "specFile": "a.yaml",
        "auth": {
            "type": "oauth",
            "client_url": "https://a.com/token",
            "authorization_url": "https://a.com/authorize",
        },
    }
    assert validate_action(action).valid is True


def test_validate_instructions() -> None:
    assert validate_instructions("ok", 2) == "ok"
    with pytest.raises(InstructionsEmpty, match="Instructions cannot be empty"):
        validate_instructions("   \n")
    with pytest.raises(InstructionsTooLong, match=r"3 characters \(max: 2\)"):
        validate_instructions("abc", 2)


def test_validate_action_spec_yaml(openapi_spec: str) -> None:
    parsed = validate_action_spec(openapi_spec)
    assert parsed.format == "yaml"
    assert parsed.version == "3.0.0"
    assert "/forecast" in parsed.document["paths"]


def test_validate_action_spec_swagger_with_components() -> None:
    parsed = validate_action_spec(
        '{"swagger": "2.0", "info": {"title": "t"}, "components": {"schemas": {}}, "x": 1}'
    )
    assert parsed.version == "2.0"


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("", "Action spec is empty"),
        ("just a string", "OpenAPI spec must be an object"),
        ("info: {title: t}\npaths: {/a: {}}\n", "Missing openapi or swagger version field"),
        ("openapi: 3.0.0\npaths: {/a: {}}\n", "Missing required field: info"),
        ("openapi: 3.0.0\ninfo: {title: t}\n", "Spec must have either paths or components"),
        ("{ invalid: [", "Invalid spec format"),
    ],
)
def test_validate_action_spec_rejects(content: str, message: str) -> None:
    with pytest.raises(InvalidOpenAPISpec, match=message):
        validate_action_spec(content)


@pytest.mark.parametrize(
    "content",
    [
        "openapi: 3.0.0\ninfo: {title: t, version: '1'}\npaths: {}\n",
        "openapi: 3.0.0\ninfo: {title: t, version: '1'}\ncomponents: {}\n",
    ],
)
def test_validate_action_spec_accepts_empty_paths_or_components(content: str) -> None:
    assert validate_action_spec(content).version == "3.0.0"


def test_validate_action_spec_treats_null_paths_as_missing() -> None:
    with pytest.raises(InvalidOpenAPISpec, match="Spec must have either paths or components"):
        validate_action_spec("openapi: 3.0.0\ninfo: {title: t}\npaths: null\n")


def test_spec_text_dumps_yaml_dates() -> None:
    document = {"openapi": "3.0.0", "info": {"title": "t", "version": date(2024, 1, 1)}}
    assert spec_text("raw: text") == "raw: text"
    assert json.loads(spec_text(document))["info"]["version"] == "2024-01-01"
