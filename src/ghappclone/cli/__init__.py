"""ghappclone CLI for cloning repositories as a GitHub App."""

from __future__ import annotations

import typer
from rich.console import Console

from ghappclone import __version__
from ghappclone.cli.commands import clone

app = typer.Typer(
    name="ghappclone",
    help="Clone GitHub repositories with GitHub App installation tokens",
    no_args_is_help=True,
)
console = Console()

app.add_typer(clone.app, name="clone", help="Clone a repository")


@app.command()
def version() -> None:
    """Show the CLI version."""
    console.print(f"ghappclone version {__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


__all__ = ["app", "main"]
