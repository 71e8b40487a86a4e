"""Core ghappclone functionality."""

from ghappclone.core.config import Settings, load_settings
from ghappclone.core.errors import (
    AuthenticationError,
    CloneError,
    ConfigurationError,
    ErrorCode,
    GitOperationError,
    InstallationNotFoundError,
    InvalidRepositoryReferenceError,
    RepositoryNotFoundError,
)

# Lazy imports to avoid circular import with github
# Import these directly from ghappclone.core.service when needed


def __getattr__(name: str):
    """Lazy import to avoid circular imports."""
    if name in ("CloneResult", "CloneService", "run_clone"):
        from ghappclone.core import service

        return getattr(service, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "AuthenticationError",
    "CloneError",
    "CloneResult",
    "CloneService",
    "ConfigurationError",
    "ErrorCode",
    "GitOperationError",
    "InstallationNotFoundError",
    "InvalidRepositoryReferenceError",
    "RepositoryNotFoundError",
    "Settings",
    "load_settings",
    "run_clone",
]
