"""Tests for error hierarchy."""

from agentsync.errors import (
    AgentSyncError,
    AvatarProcessingFailure,
    ConfigError,
    ContentValidationError,
    EncryptionFailure,
    FileNotFound,
    FileResolutionError,
    InstructionsEmpty,
    InstructionsTooLong,
    InvalidConfiguration,
    InvalidOpenAPISpec,
    ParseError,
    PathTraversal,
    PersistenceFailure,
)


def test_hierarchy() -> None:
    for error in (
        ConfigError,
        InvalidConfiguration,
        FileResolutionError,
        ContentValidationError,
        EncryptionFailure,
        PersistenceFailure,
        AvatarProcessingFailure,
    ):
        assert issubclass(error, AgentSyncError)
    assert issubclass(PathTraversal, FileResolutionError)
    assert issubclass(FileNotFound, FileResolutionError)
    assert issubclass(ParseError, FileResolutionError)
    assert issubclass(InstructionsEmpty, ContentValidationError)
    assert issubclass(InstructionsTooLong, ContentValidationError)
    assert issubclass(InvalidOpenAPISpec, ContentValidationError)


def test_retryable_default() -> None:
    assert AgentSyncError("test").retryable is False
    assert FileNotFound("test").retryable is False
    assert PersistenceFailure("test").retryable is True
    assert PersistenceFailure("test", retryable=False).retryable is False


def test_invalid_configuration_carries_errors() -> None:
    err = InvalidConfiguration("bad agent", errors=["Missing required field: id"])
    assert str(err) == "bad agent"
    assert err.errors == ["Missing required field: id"]
    assert InvalidConfiguration("bad").errors == []


def test_catch_as_agentsync_error() -> None:
    try:
        raise InstructionsTooLong("too long")
    except AgentSyncError as exc:
        assert exc.retryable is False
