"""Clone command for ghappclone CLI."""

from __future__ import annotations

import asyncio
from typing import Any

import logfire
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from ghappclone.cli.config import load_cli_config
from ghappclone.core.config import Settings, load_settings
from ghappclone.core.errors import CloneError
from ghappclone.core.service import CloneResult, run_clone
from ghappclone.security import sanitize_error_message

app = typer.Typer()
console = Console()
err_console = Console(stderr=True)


def configure_logging(settings: Settings) -> None:
    """Configure Logfire for a CLI run."""
    logfire.configure(
        service_name="ghappclone",
        environment=settings.environment,
        send_to_logfire="if-token-present",
        console=logfire.ConsoleOptions(min_log_level=settings.log_level),
    )


def build_settings(config: str | None, **options: Any) -> Settings:
    """Merge CLI options over the config file over the environment."""
    values: dict[str, Any] = load_cli_config(config) if config else {}
    values.update({key: value for key, value in options.items() if value is not None})
    return load_settings(**values)


def print_result(result: CloneResult) -> None:
    lines = [
        f"Repository: [blue]{result.repository.full_name}[/blue]",
        f"Installation: [blue]{result.installation.account_login}[/blue] "
        f"([dim]{result.installation.id}[/dim])",
        f"Directory: [blue]{escape(str(result.directory))}[/blue]",
        f"Branch: [blue]{result.branch or result.repository.default_branch}[/blue]",
        f"HEAD: [blue]{result.head_sha}[/blue]"
        if result.head_sha
        else "HEAD: [dim]no commits yet[/dim]",
    ]
    if result.reused:
        lines.append("[dim]Existing working tree reused[/dim]")

    console.print(Panel("\n".join(lines), title="Repository cloned", border_style="green"))


@app.callback(invoke_without_command=True)
def clone(
    repo: str | None = typer.Option(
        None,
        "--repo",
        "-r",
        help="Repository as 'owner/repo' or a git URL. Defaults to REPOSITORY.",
    ),
    branch: str | None = typer.Option(
        None,
        "--branch",
        "-b",
        help="Branch to check out after cloning, tracking origin/<branch>.",
    ),
    commit: str | None = typer.Option(
        None,
        "--commit",
        "-c",
        help="Commit to hard-reset to, after any branch checkout.",
    ),
    directory: str | None = typer.Option(
        None,
        "--dir",
        "-d",
        help="Target directory. Defaults to CLONE_DIR or ./repo-clone.",
    ),
    user: str | None = typer.Option(
        None,
        "--user",
        "-u",
        help="Account login whose installation to use. Defaults to GITHUB_USER.",
    ),
    strategy: str | None = typer.Option(
        None,
        "--strategy",
        help="Installation selection: 'login' (match --user) or 'first'.",
    ),
    config: str | None = typer.Option(
        None,
        "--config",
        help="YAML file with settings; CLI options take precedence.",
    ),
    cleanup_on_failure: bool | None = typer.Option(
        None,
        "--cleanup-on-failure/--no-cleanup-on-failure",
        help="Remove a freshly cloned directory if a later git step fails.",
    ),
) -> None:
    """Clone a repository as a GitHub App installation.

    Examples:

        ghappclone clone --repo acme/widgets

        ghappclone clone --repo git@github.com:acme/widgets.git --branch release-2

        ghappclone clone -r acme/widgets -b release-2 -c abc1234 -d ./widgets
    """
    logging_configured = False
    try:
        settings = build_settings(
            config,
            repository=repo,
            branch=branch,
            commit=commit,
            clone_dir=directory,
            github_user=user,
            installation_strategy=strategy,
            cleanup_on_failure=cleanup_on_failure,
        )
        configure_logging(settings)
        logging_configured = True
        result = asyncio.run(run_clone(settings))
    except CloneError as e:
        message = sanitize_error_message(e)
        if logging_configured:
            logfire.error("Clone failed", error_code=e.code.value, error=message)
        err_console.print(f"[red]Error:[/red] {escape(message)}", highlight=False, soft_wrap=True)
        raise typer.Exit(e.exit_code) from e
    except Exception as e:
        message = f"Unexpected {type(e).__name__}: {sanitize_error_message(e)}"
        err_console.print(f"[red]Error:[/red] {escape(message)}", highlight=False, soft_wrap=True)
        raise typer.Exit(1) from e

    print_result(result)
