"""Installation selection strategies.

An App can be installed on many accounts. The strategy that picks the
installation to clone through is always chosen explicitly by configuration.
"""

from collections.abc import Sequence
from typing import Protocol

import logfire

from ghappclone.core.config import Settings
from ghappclone.core.errors import ConfigurationError, InstallationNotFoundError
from ghappclone.github.auth import Installation


class InstallationSelector(Protocol):
    """Picks one installation out of the App's installations."""

    name: str

    def select(self, installations: Sequence[Installation]) -> Installation: ...


class MatchAccountLogin:
    """Select the installation whose account login matches (case-insensitive)."""

    name = "login"

    def __init__(self, login: str) -> None:
        if not login:
            raise ConfigurationError("The 'login' installation strategy needs GITHUB_USER")
        self.login = login

    def select(self, installations: Sequence[Installation]) -> Installation:
        wanted = self.login.casefold()
        for installation in installations:
            if installation.account_login.casefold() == wanted:
                return installation

        raise InstallationNotFoundError(
            f"No installation of this GitHub App found for account '{self.login}' "
            f"({len(installations)} installation(s) visible)"
        )


class FirstInstallation:
    """Select the first installation the API returns.

    Only meaningful for Apps installed on exactly one account.
    """

    name = "first"

    def select(self, installations: Sequence[Installation]) -> Installation:
        if not installations:
            raise InstallationNotFoundError("This GitHub App has no installations")

        if len(installations) > 1:
            logfire.warn(
                "App has several installations; using the first one",
                count=len(installations),
                account=installations[0].account_login,
            )
        return installations[0]


def get_selector(settings: Settings) -> InstallationSelector:
    """Build the selector named by ``settings.installation_strategy``."""
    if settings.installation_strategy == "first":
        return FirstInstallation()
    return MatchAccountLogin(settings.github_user or "")


__all__ = [
    "FirstInstallation",
    "InstallationSelector",
    "MatchAccountLogin",
    "get_selector",
]
