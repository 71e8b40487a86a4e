"""GitHub App integration."""

from ghappclone.github.auth import (
    AppCredential,
    GitHubAuth,
    Installation,
    InstallationToken,
    load_app_credential,
)
from ghappclone.github.client import GitHubClient, Repository
from ghappclone.github.installations import (
    FirstInstallation,
    InstallationSelector,
    MatchAccountLogin,
    get_selector,
)
from ghappclone.github.refs import RepositoryReference, parse_repository_reference

__all__ = [
    "AppCredential",
    "FirstInstallation",
    "GitHubAuth",
    "GitHubClient",
    "Installation",
    "InstallationSelector",
    "InstallationToken",
    "MatchAccountLogin",
    "Repository",
    "RepositoryReference",
    "get_selector",
    "load_app_credential",
    "parse_repository_reference",
]
