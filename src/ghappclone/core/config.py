"""Application configuration using pydantic-settings."""

from typing import Any, Literal

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ghappclone.core.errors import ConfigurationError

DEFAULT_CLONE_DIR = "./repo-clone"


class Settings(BaseSettings):
    """Settings for a single clone run, loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["trace", "debug", "info", "notice", "warn", "error", "fatal"] = "info"

    # GitHub App
    github_app_id: str | None = None
    github_app_private_key: SecretStr | None = None
    github_app_private_key_path: str | None = None
    github_api_url: str = "https://api.github.com"

    # Installation selection
    github_user: str | None = None
    installation_strategy: Literal["login", "first"] = "login"

    # Clone target
    repository: str | None = None
    branch: str | None = None
    commit: str | None = None
    clone_dir: str = DEFAULT_CLONE_DIR
    cleanup_on_failure: bool = False

    # Timeouts (seconds)
    http_timeout: float = Field(default=30.0, gt=0)
    git_timeout: float = Field(default=600.0, gt=0)

    @field_validator(
        "github_app_id", "github_user", "repository", "branch", "commit", mode="before"
    )
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        """Treat empty strings as unset; accept numeric IDs from YAML."""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return "warn" if value == "warning" else value
        return value

    @field_validator("github_api_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def require_run_inputs(self) -> None:
        """Check the inputs a clone run cannot start without.

        Raises:
            ConfigurationError: If a required value is missing
        """
        missing = []
        if not self.github_app_id:
            missing.append("GITHUB_APP_ID")
        if self.github_app_private_key is None and not self.github_app_private_key_path:
            missing.append("GITHUB_APP_PRIVATE_KEY or GITHUB_APP_PRIVATE_KEY_PATH")
        if self.installation_strategy == "login" and not self.github_user:
            missing.append("GITHUB_USER")
        if not self.repository:
            missing.append("REPOSITORY")

        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")


def load_settings(**overrides: Any) -> Settings:
    """Build settings from the environment, with explicit overrides on top.

    Overrides set to ``None`` are ignored so that unset CLI options fall back
    to the environment.

    Raises:
        ConfigurationError: If a value fails validation
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**values)
    except ValidationError as e:
        fields = ", ".join(".".join(str(loc) for loc in err["loc"]) for err in e.errors())
        raise ConfigurationError(f"Invalid configuration: {fields}") from e
