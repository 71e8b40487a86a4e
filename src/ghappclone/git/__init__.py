"""Local git operations."""

from ghappclone.git.workspace import (
    CheckoutTarget,
    GitResult,
    GitWorkspace,
    build_authenticated_url,
    prepare_checkout,
)

__all__ = [
    "CheckoutTarget",
    "GitResult",
    "GitWorkspace",
    "build_authenticated_url",
    "prepare_checkout",
]
