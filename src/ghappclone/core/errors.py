"""Error taxonomy for clone runs.

Every failure is terminal for the run. Each error kind carries a stable code
and the process exit status the CLI reports for it.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error codes for programmatic handling."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    INSTALLATION_NOT_FOUND = "INSTALLATION_NOT_FOUND"
    INVALID_REPOSITORY_REFERENCE = "INVALID_REPOSITORY_REFERENCE"
    REPOSITORY_NOT_FOUND = "REPOSITORY_NOT_FOUND"
    GIT_OPERATION_FAILED = "GIT_OPERATION_FAILED"


class CloneError(Exception):
    """Base class for every error that aborts a clone run."""

    code: ErrorCode
    exit_code: int = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(CloneError):
    """Missing or invalid startup inputs."""

    code = ErrorCode.CONFIGURATION_ERROR
    exit_code = 2


class AuthenticationError(CloneError):
    """App credentials were rejected or a token could not be minted."""

    code = ErrorCode.AUTHENTICATION_FAILED
    exit_code = 3


class InstallationNotFoundError(CloneError):
    """No installation of the App matched the selection strategy."""

    code = ErrorCode.INSTALLATION_NOT_FOUND
    exit_code = 4


class InvalidRepositoryReferenceError(CloneError):
    """A repository reference is neither ``owner/name`` nor a git remote URL."""

    code = ErrorCode.INVALID_REPOSITORY_REFERENCE
    exit_code = 5

    def __init__(self, reference: str) -> None:
        super().__init__(
            f"Invalid repository reference {reference!r}: "
            "expected 'owner/name' or a git remote URL"
        )
        self.reference = reference


class RepositoryNotFoundError(CloneError):
    """The repository could not be resolved through the API."""

    code = ErrorCode.REPOSITORY_NOT_FOUND
    exit_code = 6


class GitOperationError(CloneError):
    """A git subprocess failed, timed out, or could not be started."""

    code = ErrorCode.GIT_OPERATION_FAILED
    exit_code = 7

    def __init__(self, operation: str, detail: str, returncode: int | None = None) -> None:
        message = f"git {operation} failed"
        if returncode is not None:
            message += f" (exit {returncode})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.operation = operation
        self.returncode = returncode


__all__ = [
    "AuthenticationError",
    "CloneError",
    "ConfigurationError",
    "ErrorCode",
    "GitOperationError",
    "InstallationNotFoundError",
    "InvalidRepositoryReferenceError",
    "RepositoryNotFoundError",
]
