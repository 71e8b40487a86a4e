"""Security helpers for ghappclone."""

from ghappclone.security.errors import (
    redact_secrets,
    sanitize_error_message,
)

__all__ = [
    "redact_secrets",
    "sanitize_error_message",
]
