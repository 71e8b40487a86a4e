"""Repository reference parsing."""

import re
from dataclasses import dataclass

from ghappclone.core.errors import InvalidRepositoryReferenceError

_SEGMENT = r"[A-Za-z0-9_.-]+"

# Accepted forms:
#   owner/name
#   git@host:owner/name[.git]
#   ssh://git@host[:port]/owner/name[.git]
#   https://host/owner/name[.git][/]
_PATH = rf"(?P<owner>{_SEGMENT})/(?P<name>{_SEGMENT})"

_REFERENCE_PATTERNS = [
    re.compile(rf"^{_PATH}$"),
    re.compile(rf"^[\w.-]+@[\w.-]+:{_PATH}$"),
    re.compile(rf"^ssh://(?:[\w.-]+@)?[\w.-]+(?::\d+)?/{_PATH}/?$"),
    re.compile(rf"^https?://[\w.-]+(?::\d+)?/{_PATH}/?$"),
]


@dataclass(frozen=True)
class RepositoryReference:
    """Owner and name of a GitHub repository."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


def parse_repository_reference(reference: str) -> RepositoryReference:
    """Parse ``owner/name`` or a git remote URL into a RepositoryReference.

    A trailing ``.git`` is stripped from the name.

    Raises:
        InvalidRepositoryReferenceError: If the string matches no accepted form
    """
    text = reference.strip()
    for pattern in _REFERENCE_PATTERNS:
        match = pattern.match(text)
        if match is None:
            continue

        name = match["name"].removesuffix(".git")
        if not name or name in (".", "..") or match["owner"] in (".", ".."):
            break
        return RepositoryReference(owner=match["owner"], name=name)

    raise InvalidRepositoryReferenceError(reference)
