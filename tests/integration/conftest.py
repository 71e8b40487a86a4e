"""Fixtures for integration tests that run the real git binary."""

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

import pytest

GIT_IDENTITY = {
    "GIT_AUTHOR_NAME": "ghappclone tests",
    "GIT_AUTHOR_EMAIL": "tests@example.com",
    "GIT_COMMITTER_NAME": "ghappclone tests",
    "GIT_COMMITTER_EMAIL": "tests@example.com",
}


def git(cwd: Path, *args: str) -> str:
    """Run git synchronously in ``cwd`` and return stdout."""
    result = subprocess.run(
        ["git", "-c", "commit.gpgsign=false", "-c", "init.defaultBranch=main", *args],
        cwd=cwd,
        env={**os.environ, **GIT_IDENTITY},
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@dataclass
class SourceRepository:
    """A local repository standing in for the remote."""

    path: Path
    main_sha: str
    release_shas: list[str]

    @property
    def url(self) -> str:
        return self.path.as_uri()


@pytest.fixture
def source_repo(tmp_path: Path) -> SourceRepository:
    """Repository with ``main`` and a two-commit ``release-2`` branch."""
    path = tmp_path / "source"
    path.mkdir()
    git(path, "init")

    (path / "README.md").write_text("# widgets\n")
    git(path, "add", "README.md")
    git(path, "commit", "-m", "Initial commit")
    main_sha = git(path, "rev-parse", "HEAD")

    git(path, "checkout", "-b", "release-2")
    release_shas = []
    for version in ("2.0", "2.1"):
        (path / "VERSION").write_text(f"{version}\n")
        git(path, "add", "VERSION")
        git(path, "commit", "-m", f"Release {version}")
        release_shas.append(git(path, "rev-parse", "HEAD"))

    git(path, "checkout", "main")
    return SourceRepository(path=path, main_sha=main_sha, release_shas=release_shas)


@pytest.fixture
def run_git():
    """The synchronous git helper, for assertions on a working tree."""
    return git
