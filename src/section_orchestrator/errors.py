from __future__ import annotations


class OrchestratorError(Exception):
    """Base class for errors raised by the section orchestrator."""


class ConfigurationError(OrchestratorError):
    """Raised when settings cannot be loaded from the environment."""


class BackendError(OrchestratorError):
    """A generation call failed. Scoped to a single step."""


class BackendNetworkError(BackendError):
    """The generative backend could not be reached."""


class BackendTimeoutError(BackendError):
    """The generative backend did not answer within the request timeout."""


class BackendResponseError(BackendError):
    """The backend answered with a non-success status or an error payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ResponseParseError(OrchestratorError):
    """A single parse strategy could not extract a usable payload."""


__all__ = [
    "BackendError",
    "BackendNetworkError",
    "BackendResponseError",
    "BackendTimeoutError",
    "ConfigurationError",
    "OrchestratorError",
    "ResponseParseError",
]
