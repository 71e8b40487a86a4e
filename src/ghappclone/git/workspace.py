"""Local git working tree operations.

Every git invocation runs as an asyncio subprocess with a timeout. Output is
scrubbed of credentials before it reaches an exception or a log line, since
the remote URL carries the installation token.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, urlsplit, urlunsplit

import logfire

from ghappclone.core.errors import GitOperationError
from ghappclone.security import sanitize_error_message

DEFAULT_GIT_TIMEOUT = 600.0


@dataclass(frozen=True)
class CheckoutTarget:
    """Optional branch and/or commit to move the working tree to."""

    branch: str | None = None
    commit: str | None = None


@dataclass(frozen=True)
class GitResult:
    """Captured output of a finished git process."""

    returncode: int
    stdout: str
    stderr: str


def build_authenticated_url(clone_url: str, token: str) -> str:
    """Embed an installation token in an HTTPS clone URL.

    Produces ``https://x-access-token:<token>@<host>/<owner>/<name>.git``.
    """
    parts = urlsplit(clone_url)
    if parts.scheme != "https" or not parts.hostname:
        raise GitOperationError("clone", f"unsupported clone URL {clone_url!r}")

    host = parts.hostname
    if parts.port:
        host = f"{host}:{parts.port}"

    path = parts.path.rstrip("/")
    if not path.endswith(".git"):
        path += ".git"

    netloc = f"x-access-token:{quote(token, safe='')}@{host}"
    return urlunsplit(("https", netloc, path, "", ""))


class GitWorkspace:
    """A local directory managed through the git CLI."""

    def __init__(
        self,
        directory: str | Path,
        git_binary: str = "git",
        timeout: float = DEFAULT_GIT_TIMEOUT,
    ) -> None:
        self.directory = Path(directory)
        self.git_binary = git_binary
        self.timeout = timeout

    def is_repository(self) -> bool:
        """Whether the directory already holds git metadata."""
        return (self.directory / ".git").exists()

    async def run(
        self,
        *args: str,
        operation: str | None = None,
        cwd: Path | None = None,
        check: bool = True,
    ) -> GitResult:
        """Run ``git <args>`` and wait for it to finish.

        Args:
            *args: Arguments after the git binary
            operation: Name used in error messages (defaults to the subcommand)
            cwd: Working directory (defaults to the workspace directory)
            check: Raise GitOperationError on a non-zero exit

        Raises:
            GitOperationError: On a non-zero exit (when ``check``), a timeout,
                or a missing git binary
        """
        operation = operation or args[0]
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}

        try:
            proc = await asyncio.create_subprocess_exec(
                self.git_binary,
                *args,
                cwd=str(cwd or self.directory),
                env=env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise GitOperationError(
                operation, f"git executable not found: {self.git_binary}"
            ) from e
        except OSError as e:
            raise GitOperationError(operation, sanitize_error_message(e)) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise GitOperationError(operation, f"timed out after {self.timeout:g}s") from e

        result = GitResult(
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

        logfire.debug("git command finished", operation=operation, returncode=result.returncode)

        if check and result.returncode != 0:
            raise GitOperationError(
                operation,
                sanitize_error_message(result.stderr or result.stdout),
                returncode=result.returncode,
            )
        return result

    async def clone(self, url: str) -> None:
        """Full clone of ``url`` into the workspace directory."""
        target = self.directory.resolve()
        target.mkdir(parents=True, exist_ok=True)
        await self.run("clone", "--", url, str(target), cwd=target.parent)

    async def is_work_tree(self) -> bool:
        """Whether git treats the directory itself as the top of a working tree."""
        result = await self.run("rev-parse", "--show-toplevel", check=False)
        if result.returncode != 0:
            return False
        return Path(result.stdout.strip()).resolve() == self.directory.resolve()

    async def init(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        await self.run("init")

    async def ensure_origin(self, url: str) -> None:
        """Point the ``origin`` remote at ``url``, adding it when absent."""
        existing = await self.run("remote", "get-url", "origin", operation="remote", check=False)
        if existing.returncode == 0:
            await self.run("remote", "set-url", "origin", url)
        else:
            await self.run("remote", "add", "origin", url)

    async def fetch(self) -> None:
        await self.run("fetch", "origin")

    async def checkout_branch(self, branch: str) -> None:
        """Check out a local ``branch`` tracking ``origin/<branch>``.

        ``-B`` resets an existing local branch, so repeated runs succeed.
        """
        await self.run("checkout", "-B", branch, "--track", f"origin/{branch}")

    async def reset_hard(self, commit: str) -> None:
        await self.run("reset", "--hard", commit)

    async def head_sha(self) -> str | None:
        """Commit checked out at HEAD, or None while HEAD is unborn."""
        result = await self.run("rev-parse", "HEAD", check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def remove(self) -> None:
        """Delete the workspace directory and everything in it."""
        shutil.rmtree(self.directory, ignore_errors=True)


async def prepare_checkout(
    workspace: GitWorkspace,
    url: str,
    target: CheckoutTarget | None = None,
) -> bool:
    """Clone or reuse ``workspace``, then apply the checkout target.

    A directory that already holds git metadata is reused: instead of a
    second clone, the repository is (re)initialized if git does not accept
    it as a working tree, ``origin`` is repointed at ``url`` and fetched.

    Returns:
        True if an existing working tree was reused
    """
    target = target or CheckoutTarget()
    reused = workspace.is_repository()

    if reused:
        logfire.info("Reusing existing working tree", directory=str(workspace.directory))
        if not await workspace.is_work_tree():
            logfire.warn(
                "Git metadata incomplete; initializing", directory=str(workspace.directory)
            )
            await workspace.init()
        await workspace.ensure_origin(url)
        await workspace.fetch()
    else:
        logfire.info("Cloning repository", directory=str(workspace.directory))
        await workspace.clone(url)

    if target.branch:
        if not reused:
            await workspace.fetch()
        logfire.info("Checking out branch", branch=target.branch)
        await workspace.checkout_branch(target.branch)

    if target.commit:
        logfire.info("Resetting to commit", commit=target.commit)
        await workspace.reset_hard(target.commit)

    return reused
