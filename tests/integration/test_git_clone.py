"""Integration tests for cloning and checkout with the real git binary."""

import shutil
from pathlib import Path

import pytest

from ghappclone.core.errors import GitOperationError
from ghappclone.core.service import CloneService
from ghappclone.git import CheckoutTarget, GitWorkspace, prepare_checkout

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(shutil.which("git") is None, reason="git not installed"),
]


@pytest.fixture
def workspace(tmp_path: Path) -> GitWorkspace:
    return GitWorkspace(tmp_path / "repo-clone", timeout=60)


class TestPrepareCheckout:
    """End-to-end checkout sequences against a local remote."""

    @pytest.mark.asyncio
    async def test_default_branch(self, source_repo, workspace) -> None:
        reused = await prepare_checkout(workspace, source_repo.url)

        assert reused is False
        assert await workspace.head_sha() == source_repo.main_sha
        assert (workspace.directory / "README.md").exists()

    @pytest.mark.asyncio
    async def test_branch_tracks_origin(self, source_repo, workspace, run_git) -> None:
        await prepare_checkout(workspace, source_repo.url, CheckoutTarget(branch="release-2"))

        directory = workspace.directory
        assert run_git(directory, "rev-parse", "--abbrev-ref", "HEAD") == "release-2"
        upstream = run_git(directory, "rev-parse", "--abbrev-ref", "@{upstream}")
        assert upstream == "origin/release-2"
        assert await workspace.head_sha() == source_repo.release_shas[-1]

    @pytest.mark.asyncio
    async def test_branch_and_commit(self, source_repo, workspace, run_git) -> None:
        """HEAD ends at the commit; the branch's remote ref is still fetched."""
        first_release = source_repo.release_shas[0]

        await prepare_checkout(
            workspace,
            source_repo.url,
            CheckoutTarget(branch="release-2", commit=first_release),
        )

        directory = workspace.directory
        assert await workspace.head_sha() == first_release
        remote_tip = run_git(directory, "rev-parse", "origin/release-2")
        assert remote_tip == source_repo.release_shas[-1]
        assert (directory / "VERSION").read_text() == "2.0\n"

    @pytest.mark.asyncio
    async def test_reuse_updates_origin(
        self, source_repo, workspace, run_git, tmp_path: Path
    ) -> None:
        """A second run reuses the tree and repoints origin instead of cloning."""
        await prepare_checkout(workspace, source_repo.url)
        marker = workspace.directory / "untracked.txt"
        marker.write_text("kept\n")

        mirror = tmp_path / "mirror"
        run_git(tmp_path, "clone", "--mirror", str(source_repo.path), str(mirror))

        reused = await prepare_checkout(
            workspace, mirror.as_uri(), CheckoutTarget(branch="release-2")
        )

        assert reused is True
        assert marker.exists()
        assert run_git(workspace.directory, "remote", "get-url", "origin") == mirror.as_uri()
        assert await workspace.head_sha() == source_repo.release_shas[-1]

    @pytest.mark.asyncio
    async def test_repeated_branch_checkout(self, source_repo, workspace) -> None:
        target = CheckoutTarget(branch="release-2")

        await prepare_checkout(workspace, source_repo.url, target)
        reused = await prepare_checkout(workspace, source_repo.url, target)

        assert reused is True
        assert await workspace.head_sha() == source_repo.release_shas[-1]

    @pytest.mark.asyncio
    async def test_missing_branch(self, source_repo, workspace) -> None:
        with pytest.raises(GitOperationError, match="git checkout failed"):
            await prepare_checkout(workspace, source_repo.url, CheckoutTarget(branch="nope"))

    @pytest.mark.asyncio
    async def test_unknown_commit(self, source_repo, workspace) -> None:
        with pytest.raises(GitOperationError, match="git reset failed"):
            await prepare_checkout(workspace, source_repo.url, CheckoutTarget(commit="0" * 40))


class TestEmptyExistingRepository:
    """A directory that was only ``git init``-ed is reused, not cloned over."""

    @pytest.fixture
    def empty_repo(self, workspace, run_git) -> GitWorkspace:
        workspace.directory.mkdir(parents=True)
        run_git(workspace.directory, "init")
        run_git(workspace.directory, "remote", "add", "origin", "https://example.invalid/old.git")
        return workspace

    @pytest.mark.asyncio
    async def test_no_target(self, source_repo, empty_repo, run_git, make_settings) -> None:
        """Without a branch or commit HEAD stays unborn and the run still succeeds."""
        service = CloneService(make_settings(), workspace=empty_repo)

        reused, head_sha = await service._checkout(source_repo.url, CheckoutTarget())

        assert reused is True
        assert head_sha is None
        assert run_git(empty_repo.directory, "remote", "get-url", "origin") == source_repo.url
        remote_tip = run_git(empty_repo.directory, "rev-parse", "origin/main")
        assert remote_tip == source_repo.main_sha

    @pytest.mark.asyncio
    async def test_with_branch(self, source_repo, empty_repo, run_git, make_settings) -> None:
        service = CloneService(make_settings(), workspace=empty_repo)

        reused, head_sha = await service._checkout(
            source_repo.url, CheckoutTarget(branch="release-2")
        )

        assert reused is True
        assert head_sha == source_repo.release_shas[-1]
        assert run_git(empty_repo.directory, "remote", "get-url", "origin") == source_repo.url
        assert run_git(empty_repo.directory, "rev-parse", "--abbrev-ref", "HEAD") == "release-2"
