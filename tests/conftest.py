"""Test configuration and fixtures."""

from pathlib import Path
from typing import Callable, Generator

import pytest
from git import Repo

from branchsync.report import OutputConfig, Reporter
from helpers import AUTHOR, commit_file


@pytest.fixture
def reporter() -> Reporter:
    """Plain reporter that also reports untouched branches."""
    return Reporter(OutputConfig(color=False, verbose=True))


@pytest.fixture
def test_env(tmp_path: Path) -> Generator[tuple[Path, Path], None, None]:
    """Create a local repository with a bare origin and one branch per disposition.

    Local branches, with main checked out:
        main                    identical to origin/main
        feature/uptodate        tracks origin, identical
        feature/behind          tracks origin, one commit behind
        feature/unpushed        tracks origin, one local commit ahead
        feature/gone-merged     upstream deleted, merged into main
        feature/gone-unmerged   upstream deleted, not merged
        feature/untracked       no tracking config, one commit behind origin/feature/untracked
        local-only              never pushed

    Returns:
        Tuple of (local_repo_path, remote_repo_path)
    """
    remote_path = tmp_path / "remote"
    local_path = tmp_path / "local"
    remote_path.mkdir()
    local_path.mkdir()

    remote_repo = Repo.init(remote_path, bare=True)
    remote_repo.git.symbolic_ref("HEAD", "refs/heads/main")
    local_repo = Repo.init(local_path)
    with local_repo.config_writer() as config:
        config.set_value("user", "name", AUTHOR.name)
        config.set_value("user", "email", AUTHOR.email)

    commit_file(local_repo, "README.md", "# Test Repository")

    # Normalize the initial branch name to main
    local_repo.git.checkout("-B", "main")
    for head in list(local_repo.heads):
        if head.name != "main":
            local_repo.delete_head(head, force=True)

    local_repo.create_remote("origin", url=str(remote_path))
    local_repo.git.push("-u", "origin", "main")
    local_repo.git.remote("set-head", "origin", "main")

    def create_branch(name: str, commits: int = 1, track: bool = True) -> None:
        """Create a branch off main with some commits and push it."""
        local_repo.git.checkout("-b", name, "main")
        for i in range(commits):
            commit_file(local_repo, f"{name.replace('/', '_')}_{i}.txt", f"{name} {i}")
        if track:
            local_repo.git.push("-u", "origin", name)
        else:
            local_repo.git.push("origin", name)
        local_repo.git.checkout("main")

    create_branch("feature/uptodate")

    create_branch("feature/behind", commits=2)
    local_repo.git.branch("-f", "feature/behind", "feature/behind~1")

    create_branch("feature/unpushed")
    local_repo.git.checkout("feature/unpushed")
    commit_file(local_repo, "unpushed.txt", "not on origin")
    local_repo.git.checkout("main")

    create_branch("feature/gone-merged")
    local_repo.git.merge("feature/gone-merged", "--no-ff", "-m", "Merge feature/gone-merged")
    local_repo.git.push("origin", "main")
    local_repo.git.push("origin", "--delete", "feature/gone-merged")

    create_branch("feature/gone-unmerged")
    local_repo.git.push("origin", "--delete", "feature/gone-unmerged")

    create_branch("feature/untracked", commits=2, track=False)
    local_repo.git.branch("-f", "feature/untracked", "feature/untracked~1")

    local_repo.git.checkout("-b", "local-only", "main")
    commit_file(local_repo, "local_only.txt", "never pushed")
    local_repo.git.checkout("main")

    yield local_path, remote_path

    # Cleanup is handled by pytest's tmp_path fixture


@pytest.fixture
def remote_clone(test_env: tuple[Path, Path], tmp_path: Path) -> Callable[[], Repo]:
    """Factory for a second clone of origin, to make changes the local repo has to fetch."""
    _, remote_path = test_env

    def make() -> Repo:
        clone = Repo.clone_from(str(remote_path), str(tmp_path / "remote_clone"))
        with clone.config_writer() as config:
            config.set_value("user", "name", AUTHOR.name)
            config.set_value("user", "email", AUTHOR.email)
        return clone

    return make


@pytest.fixture
def local_repo(test_env: tuple[Path, Path]) -> Repo:
    local_path, _ = test_env
    return Repo(local_path)

