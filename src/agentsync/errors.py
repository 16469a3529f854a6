"""agentsync exception hierarchy.

All sync failures inherit from AgentSyncError so the orchestrator can
capture them per agent with a single except clause.
"""


class AgentSyncError(Exception):
    """Base exception for all agentsync errors."""

    def __init__(self, message: str = "", *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class ConfigError(AgentSyncError):
    """Invalid or missing process settings."""


class InvalidConfiguration(AgentSyncError):
    """A declaration failed structural validation."""

    def __init__(self, message: str = "", *, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class FileResolutionError(AgentSyncError):
    """Referenced content could not be loaded."""


class PathTraversal(FileResolutionError):
    """A relative path escapes the configuration base directory."""


class FileNotFound(FileResolutionError):
    """A referenced file does not exist."""


class ParseError(FileResolutionError):
    """Structured content could not be parsed."""


class ContentValidationError(AgentSyncError):
    """Resolved content is not acceptable."""


class InstructionsEmpty(ContentValidationError):
    """Instructions resolved to an empty string."""


class InstructionsTooLong(ContentValidationError):
    """Instructions exceed the configured maximum length."""


class InvalidOpenAPISpec(ContentValidationError):
    """An action spec is not a usable OpenAPI document."""


class EncryptionFailure(AgentSyncError):
    """A credential field could not be encrypted or decrypted."""


class PersistenceFailure(AgentSyncError):
    """Error reading from or writing to the record store."""

    def __init__(self, message: str = "", *, retryable: bool = True) -> None:
        super().__init__(message, retryable=retryable)


class AvatarProcessingFailure(AgentSyncError):
    """An icon file could not be turned into a stored avatar."""
