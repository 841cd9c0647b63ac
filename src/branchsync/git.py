"""Git repository operations."""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

logger = logging.getLogger(__name__)

CONFIG_REMOTE_PATTERN = re.compile(r"^branch\.(.+?)\.remote (.+)")


class ErrorKind(Enum):
    """Kind of git failure."""

    NOT_A_GIT_REPO = "not-a-git-repo"
    NOT_RESOLVABLE = "not-resolvable"
    FETCH_FAILED = "fetch-failed"
    UNRESOLVABLE_RANGE = "unresolvable-range"
    NO_UPSTREAM = "no-upstream"
    QUERY_FAILED = "query-failed"
    MUTATION_FAILED = "mutation-failed"


class GitError(Exception):
    """Git operation error."""

    def __init__(self, message: str, kind: ErrorKind, op: Optional[str] = None) -> None:
        """Initialize error.

        Args:
            message: Error text, as reported by git when git reported one
            kind: What went wrong
            op: Name of the mutating operation, for MUTATION_FAILED
        """
        super().__init__(message)
        self.kind = kind
        self.op = op


def tool_message(err: GitCommandError) -> str:
    """Return git's own error text from a GitCommandError."""
    for text in (err.stderr, err.stdout):
        text = (text or "").strip()
        for prefix in ("stderr: '", "stdout: '"):
            if text.startswith(prefix) and text.endswith("'"):
                text = text[len(prefix) : -1].strip()
        if text:
            return text
    return str(err)


def output_lines(output: str) -> list[str]:
    """Split command output into lines, no lines for empty output."""
    output = output.rstrip("\n")
    if not output:
        return []
    return output.split("\n")


@dataclass(frozen=True)
class Range:
    """Two resolved commits: a local branch tip and what it is compared against."""

    a: str
    b: str
    repo: Any = field(repr=False, compare=False)

    def is_identical(self) -> bool:
        return self.a.lower() == self.b.lower()

    def is_ancestor(self) -> bool:
        """Whether A is reachable from B (A == B counts)."""
        return self.repo.is_ancestor(self.a, self.b)


class GitRepo:
    """Git repository operations."""

    def __init__(self, path: Path) -> None:
        """Initialize repository."""
        try:
            self.repo: Repo = Repo(path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as err:
            raise GitError("not a git repository", ErrorKind.NOT_A_GIT_REPO) from err
        if self.repo.bare:
            raise GitError("cannot sync a bare repository", ErrorKind.NOT_A_GIT_REPO)

    def _git(self, command: str, *args: str) -> str:
        """Run a git subcommand in the working tree and return its output."""
        logger.debug("git %s %s", command, " ".join(args))
        return getattr(self.repo.git, command.replace("-", "_"))(*args)

    # Queries

    def is_git_root(self) -> bool:
        """Check that the working directory is inside a repository."""
        try:
            self._git("rev-parse", "--git-dir")
        except GitCommandError:
            return False
        return True

    def resolve_default_branch(self, remote: str) -> str:
        """Get the default branch (like main) that the remote's HEAD points to."""
        ref = f"refs/remotes/{remote}/HEAD"
        try:
            out = self._git("symbolic-ref", ref)
        except GitCommandError as err:
            raise GitError(tool_message(err), ErrorKind.NOT_RESOLVABLE) from err
        return out.strip().replace(f"refs/remotes/{remote}/", "", 1)

    def current_branch(self) -> str:
        """Get the checked-out branch, or an empty string on a detached HEAD."""
        try:
            name = self._git("rev-parse", "--abbrev-ref", "HEAD").strip()
        except GitCommandError:
            return ""
        return "" if name == "HEAD" else name

    def list_local_branches(self) -> list[str]:
        """List all local branches in for-each-ref order."""
        try:
            out = self._git("for-each-ref", "--format=%(refname:short)", "refs/heads/")
        except GitCommandError as err:
            raise GitError(tool_message(err), ErrorKind.QUERY_FAILED) from err
        return output_lines(out)

    def branch_remote_config(self) -> dict[str, str]:
        """Map each branch with a `branch.<name>.remote` entry to that remote."""
        try:
            out = self._git("config", "--get-regexp", "branch.*.remote")
        except GitCommandError as err:
            # git config exits 1 when no key matches
            if err.status == 1:
                return {}
            raise GitError(tool_message(err), ErrorKind.QUERY_FAILED) from err

        branch_to_remote: dict[str, str] = {}
        for line in output_lines(out):
            match = CONFIG_REMOTE_PATTERN.match(line)
            if match:
                branch_to_remote[match.group(1)] = match.group(2)
        return branch_to_remote

    def resolve_upstream(self, branch_name: str) -> str:
        """Resolve a branch's upstream to its full ref name.

        Raises:
            GitError: NO_UPSTREAM when the upstream no longer resolves,
                e.g. it was deleted on the remote and pruned by fetch
        """
        try:
            out = self._git("rev-parse", "--symbolic-full-name", f"{branch_name}@{{upstream}}")
        except GitCommandError as err:
            raise GitError(tool_message(err), ErrorKind.NO_UPSTREAM) from err
        upstream = out.strip()
        if not upstream:
            raise GitError(f"no upstream configured for '{branch_name}'", ErrorKind.NO_UPSTREAM)
        return upstream

    def path_exists(self, *segments: str) -> bool:
        """Check whether a path inside the git directory exists on disk."""
        try:
            out = self._git("rev-parse", "-q", "--git-path", "/".join(segments))
        except GitCommandError:
            return False
        lines = output_lines(out)
        if len(lines) != 1:
            return False
        return (Path(self.repo.working_dir) / lines[0]).exists()

    def range(self, a: str, b: str) -> Range:
        """Resolve two revisions in a single rev-parse call."""
        try:
            out = self._git("rev-parse", "--quiet", a, b)
        except GitCommandError as err:
            raise GitError(tool_message(err), ErrorKind.UNRESOLVABLE_RANGE) from err
        lines = output_lines(out)
        if len(lines) != 2:
            raise GitError(f"cannot parse range {a}..{b}", ErrorKind.UNRESOLVABLE_RANGE)
        return Range(lines[0].strip(), lines[1].strip(), self)

    def is_ancestor(self, a: str, b: str) -> bool:
        try:
            self._git("merge-base", "--is-ancestor", a, b)
        except GitCommandError:
            return False
        return True

    # Mutations

    def fetch(self, remote: str) -> None:
        """Fetch and prune the remote."""
        try:
            self._git("fetch", "--quiet", "--prune", "--progress", remote)
        except GitCommandError as err:
            raise GitError(tool_message(err), ErrorKind.FETCH_FAILED) from err

    def _mutate(self, op: str, command: str, *args: str) -> None:
        try:
            self._git(command, *args)
        except GitCommandError as err:
            raise GitError(tool_message(err), ErrorKind.MUTATION_FAILED, op=op) from err

    def merge_fast_forward(self, target: str) -> None:
        """Fast-forward the checked-out branch and working tree to target."""
        self._mutate("merge", "merge", "--ff-only", "--quiet", target)

    def update_ref(self, full_ref: str, commit: str) -> None:
        """Point a ref at a commit without touching the working tree."""
        self._mutate("update-ref", "update-ref", full_ref, commit)

    def delete_branch(self, branch_name: str) -> None:
        self._mutate("delete", "branch", "-D", branch_name)

    def checkout(self, branch_name: str) -> None:
        self._mutate("checkout", "checkout", "--quiet", branch_name)
