"""Clone service - orchestrates authenticate, resolve, clone and checkout."""

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import httpx
import logfire

from ghappclone.core.config import Settings
from ghappclone.core.errors import CloneError, ConfigurationError
from ghappclone.git import CheckoutTarget, GitWorkspace, build_authenticated_url, prepare_checkout
from ghappclone.github import (
    GitHubAuth,
    GitHubClient,
    Installation,
    Repository,
    get_selector,
    load_app_credential,
    parse_repository_reference,
)


@dataclass
class CloneResult:
    """Result of a clone run."""

    repository: Repository
    installation: Installation
    directory: Path
    head_sha: str | None
    branch: str | None
    commit: str | None
    reused: bool

    started_at: datetime | None = None
    completed_at: datetime | None = None


class CloneService:
    """Runs one clone of a repository as a GitHub App installation.

    The workflow is strictly sequential:
    1. Load the App credential
    2. Select an installation
    3. Mint an installation token
    4. Resolve the repository's clone URL
    5. Clone (or reuse) the working tree and apply the checkout target

    Configuration is validated and the repository reference parsed before any
    network call is made.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        workspace: GitWorkspace | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            settings: Settings for this run
            http_client: HTTP client shared by every API call (for testing)
            workspace: Working tree to clone into (defaults to ``settings.clone_dir``)
        """
        self.settings = settings
        self._http_client = http_client
        self.workspace = workspace or GitWorkspace(
            settings.clone_dir,
            timeout=settings.git_timeout,
        )

    async def clone(self) -> CloneResult:
        """Run the full workflow.

        Raises:
            CloneError: Any failure; every error kind is terminal for the run
        """
        settings = self.settings
        started_at = datetime.now(UTC)

        settings.require_run_inputs()
        credential = load_app_credential(settings)
        reference = parse_repository_reference(settings.repository or "")
        selector = get_selector(settings)
        target = CheckoutTarget(branch=settings.branch, commit=settings.commit)

        directory = self.workspace.directory
        if directory.exists() and not directory.is_dir():
            raise ConfigurationError(f"Clone directory {directory} exists and is not a directory")

        logfire.info(
            "Starting clone",
            repo=reference.full_name,
            app_id=credential.app_id,
            strategy=selector.name,
            branch=target.branch,
            commit=target.commit,
            directory=str(self.workspace.directory),
        )

        client = self._http_client or httpx.AsyncClient(timeout=settings.http_timeout)
        try:
            auth = GitHubAuth(
                credential,
                api_url=settings.github_api_url,
                timeout=settings.http_timeout,
            )

            app = await auth.get_app(http_client=client)
            logfire.info("Authenticated as GitHub App", app=app.get("name"), slug=app.get("slug"))

            installations = await auth.get_app_installations(http_client=client)
            installation = selector.select(installations)
            logfire.info(
                "Selected installation",
                installation_id=installation.id,
                account=installation.account_login,
            )

            token = await auth.get_installation_token(installation.id, http_client=client)

            github = GitHubClient(
                token,
                base_url=settings.github_api_url,
                timeout=settings.http_timeout,
                http_client=client,
            )
            repository = await github.get_repository(reference)
            authenticated_url = build_authenticated_url(repository.clone_url, token.token)
            del token
        finally:
            if self._http_client is None:
                await client.aclose()

        reused, head_sha = await self._checkout(authenticated_url, target)
        if head_sha is None:
            logfire.warn("HEAD has no commit yet", directory=str(self.workspace.directory))

        logfire.info(
            "Clone complete",
            repo=repository.full_name,
            directory=str(self.workspace.directory),
            head=head_sha,
            reused=reused,
        )

        return CloneResult(
            repository=repository,
            installation=installation,
            directory=self.workspace.directory,
            head_sha=head_sha,
            branch=target.branch,
            commit=target.commit,
            reused=reused,
            started_at=started_at,
            completed_at=datetime.now(UTC),
        )

    async def _checkout(self, url: str, target: CheckoutTarget) -> tuple[bool, str | None]:
        """Clone or reuse the working tree, removing a fresh clone on failure if configured."""
        directory = self.workspace.directory
        preexisting = directory.is_dir() and any(directory.iterdir())

        try:
            reused = await prepare_checkout(self.workspace, url, target)
            head_sha = await self.workspace.head_sha()
        except CloneError as e:
            if self.settings.cleanup_on_failure and not preexisting:
                logfire.warn(
                    "Removing partially cloned directory",
                    directory=str(directory),
                    error=e.message,
                )
                self.workspace.remove()
            raise

        return reused, head_sha


async def run_clone(settings: Settings) -> CloneResult:
    """Clone ``settings.repository`` as configured."""
    return await CloneService(settings).clone()
