"""GitHub App authentication and installation token minting."""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import jwt
import logfire

from ghappclone.core.config import Settings
from ghappclone.core.errors import AuthenticationError, ConfigurationError

GITHUB_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}


@dataclass(frozen=True)
class AppCredential:
    """GitHub App identity: app ID plus PEM private key."""

    app_id: str
    private_key: str = field(repr=False)


@dataclass(frozen=True)
class Installation:
    """A GitHub App installation on a user or organization account."""

    id: int
    account_login: str
    account_type: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Installation":
        account = data.get("account") or {}
        return cls(
            id=data["id"],
            account_login=account.get("login", ""),
            account_type=account.get("type"),
        )


@dataclass
class InstallationToken:
    """GitHub App installation access token."""

    token: str = field(repr=False)
    expires_at: str
    permissions: dict[str, str]
    repository_selection: str


def load_app_credential(settings: Settings) -> AppCredential:
    """Load the App identity from settings.

    An inline private key wins over a key file path. Literal ``\\n`` sequences
    in an inline key are expanded so keys can be passed through single-line
    environment variables.

    Raises:
        ConfigurationError: If the app ID or key is missing, unreadable, or not PEM
    """
    if not settings.github_app_id:
        raise ConfigurationError("GitHub App ID not configured. Set GITHUB_APP_ID.")

    if settings.github_app_private_key is not None:
        private_key = settings.github_app_private_key.get_secret_value().replace("\\n", "\n")
    elif settings.github_app_private_key_path:
        key_path = Path(settings.github_app_private_key_path).expanduser()
        try:
            private_key = key_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Cannot read private key file {key_path}: {e}") from e
    else:
        raise ConfigurationError(
            "GitHub App private key not configured. "
            "Set GITHUB_APP_PRIVATE_KEY or GITHUB_APP_PRIVATE_KEY_PATH."
        )

    private_key = private_key.strip()
    if "-----BEGIN" not in private_key or "PRIVATE KEY-----" not in private_key:
        raise ConfigurationError("GitHub App private key is not PEM-encoded")

    return AppCredential(app_id=settings.github_app_id, private_key=private_key + "\n")


class GitHubAuth:
    """Handles GitHub App authentication.

    GitHub Apps authenticate in two steps:
    1. Generate a JWT signed with the app's private key
    2. Exchange the JWT for an installation access token

    Installation tokens are short-lived (1 hour) and scoped to one installation.
    Nothing is cached: each run mints its own token.
    """

    def __init__(
        self,
        credential: AppCredential,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
    ) -> None:
        self.credential = credential
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def _generate_jwt(self) -> str:
        """Generate a JWT for GitHub App authentication.

        JWTs are valid for up to 10 minutes. We use 9 minutes to be safe.
        """
        now = int(time.time())
        payload = {
            "iat": now - 60,  # clock drift tolerance
            "exp": now + (9 * 60),
            "iss": str(self.credential.app_id),
        }

        try:
            return jwt.encode(payload, self.credential.private_key, algorithm="RS256")
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            raise AuthenticationError(
                f"Cannot sign App JWT with the configured private key: {type(e).__name__}"
            ) from e

    def _app_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._generate_jwt()}", **GITHUB_HEADERS}

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send an App-authenticated request, mapping failures to AuthenticationError."""
        try:
            response = await client.request(
                method, url, headers=self._app_headers(), timeout=self.timeout, **kwargs
            )
        except httpx.TimeoutException as e:
            raise AuthenticationError(f"GitHub API request timed out: {method} {url}") from e
        except httpx.RequestError as e:
            raise AuthenticationError(
                f"GitHub API request failed: {method} {url}: {type(e).__name__}"
            ) from e

        logfire.debug(
            "GitHub App API request",
            method=method,
            url=url,
            status=response.status_code,
        )

        if response.is_error:
            raise AuthenticationError(
                f"GitHub API rejected {method} {url} "
                f"(HTTP {response.status_code}): {_error_message(response)}"
            )
        return response

    async def get_app(
        self,
        http_client: httpx.AsyncClient | None = None,
    ) -> dict[str, Any]:
        """Fetch the authenticated App, verifying the App credential works."""
        client = http_client or httpx.AsyncClient()
        try:
            url = f"{self.api_url}/app"
            response = await self._send(client, "GET", url)
            app = _json(response, "GET", url)
            if not isinstance(app, dict):
                raise AuthenticationError(f"Unexpected response from GitHub for GET {url}")
            return app
        finally:
            if http_client is None:
                await client.aclose()

    async def get_app_installations(
        self,
        http_client: httpx.AsyncClient | None = None,
    ) -> list[Installation]:
        """List all installations of this GitHub App.

        Follows ``Link: rel="next"`` pagination until every page is read.

        Returns:
            List of installations in API order
        """
        client = http_client or httpx.AsyncClient()
        try:
            installations: list[Installation] = []
            url: str | None = f"{self.api_url}/app/installations"
            params: dict[str, Any] | None = {"per_page": 100}

            while url:
                response = await self._send(client, "GET", url, params=params)
                page = _json(response, "GET", url)
                try:
                    installations.extend(Installation.from_api(item) for item in page)
                except (KeyError, TypeError, AttributeError) as e:
                    raise AuthenticationError(
                        f"Unexpected installation list from GitHub for GET {url}"
                    ) from e

                next_link = response.links.get("next")
                url = next_link["url"] if next_link else None
                params = None  # the next link already carries the query

            logfire.info("Listed App installations", count=len(installations))
            return installations

        finally:
            if http_client is None:
                await client.aclose()

    async def get_installation_token(
        self,
        installation_id: int,
        http_client: httpx.AsyncClient | None = None,
    ) -> InstallationToken:
        """Get an installation access token.

        Args:
            installation_id: The GitHub App installation ID
            http_client: Optional HTTP client (for testing)

        Returns:
            InstallationToken with the access token and metadata

        Raises:
            AuthenticationError: If GitHub declines to mint a token
        """
        client = http_client or httpx.AsyncClient()
        try:
            url = f"{self.api_url}/app/installations/{installation_id}/access_tokens"
            response = await self._send(client, "POST", url)
            data = _json(response, "POST", url)
            if not isinstance(data, dict) or not data.get("token"):
                raise AuthenticationError(
                    f"GitHub returned no token for installation {installation_id}"
                )

            token = InstallationToken(
                token=data["token"],
                expires_at=data.get("expires_at", ""),
                permissions=data.get("permissions", {}),
                repository_selection=data.get("repository_selection", "all"),
            )

            logfire.info(
                "Minted installation token",
                installation_id=installation_id,
                expires_at=token.expires_at,
                repository_selection=token.repository_selection,
            )
            return token

        finally:
            if http_client is None:
                await client.aclose()


def _error_message(response: httpx.Response) -> str:
    """Extract GitHub's error message from a failed response."""
    try:
        data = response.json()
    except ValueError:
        return response.reason_phrase or "request failed"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase or "request failed"


def _json(response: httpx.Response, method: str, url: str) -> Any:
    """Decode a successful response body, which GitHub always sends as JSON."""
    try:
        return response.json()
    except ValueError as e:
        raise AuthenticationError(f"GitHub API returned invalid JSON for {method} {url}") from e
