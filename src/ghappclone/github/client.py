"""GitHub API client for repository lookups."""

from dataclasses import dataclass
from typing import Any

import httpx
import logfire

from ghappclone.core.errors import AuthenticationError, RepositoryNotFoundError
from ghappclone.github.auth import GITHUB_HEADERS, InstallationToken
from ghappclone.github.refs import RepositoryReference


@dataclass
class Repository:
    """GitHub repository metadata."""

    id: int
    name: str
    full_name: str
    clone_url: str
    default_branch: str
    private: bool
    html_url: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Repository":
        return cls(
            id=data["id"],
            name=data["name"],
            full_name=data["full_name"],
            clone_url=data["clone_url"],
            default_branch=data.get("default_branch", "main"),
            private=data.get("private", False),
            html_url=data.get("html_url", ""),
        )


class GitHubClient:
    """Client for GitHub API operations made with an installation token."""

    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: InstallationToken,
        base_url: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._token = token
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Make an authenticated request to GitHub API."""
        client = await self._get_client()

        headers = {**GITHUB_HEADERS, **kwargs.pop("headers", {})}
        headers["Authorization"] = f"Bearer {self._token.token}"

        response = await client.request(
            method,
            f"{self.base_url}{path}",
            headers=headers,
            timeout=self.timeout,
            **kwargs,
        )

        logfire.debug(
            "GitHub API request",
            method=method,
            path=path,
            status=response.status_code,
        )

        return response

    async def get_repository(self, ref: RepositoryReference) -> Repository:
        """Get repository metadata, including its canonical clone URL.

        Raises:
            AuthenticationError: If the token is rejected (401/403)
            RepositoryNotFoundError: If the repository cannot be resolved
        """
        try:
            response = await self._request("GET", f"/repos/{ref.owner}/{ref.name}")
        except httpx.TimeoutException as e:
            raise RepositoryNotFoundError(f"Timed out looking up repository {ref}") from e
        except httpx.RequestError as e:
            raise RepositoryNotFoundError(
                f"Could not reach GitHub to look up repository {ref}: {type(e).__name__}"
            ) from e

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Installation token not authorized for repository {ref} "
                f"(HTTP {response.status_code})"
            )
        if response.status_code == 404:
            raise RepositoryNotFoundError(
                f"Repository {ref} not found or not accessible to this installation"
            )
        if response.is_error:
            raise RepositoryNotFoundError(
                f"GitHub API failed to return repository {ref} (HTTP {response.status_code})"
            )

        try:
            repository = Repository.from_api(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise RepositoryNotFoundError(
                f"GitHub API returned an unreadable response for repository {ref}"
            ) from e

        logfire.info(
            "Resolved repository",
            repo=repository.full_name,
            default_branch=repository.default_branch,
            private=repository.private,
        )
        return repository
