"""Branch reconciliation.

Every local branch is classified from read-only queries into a
:class:`Disposition`, then the :class:`Reconciler` applies the single
mutation that disposition calls for:

- up to date or without a remote counterpart: nothing
- behind its remote counterpart: fast-forward (merge for the checked-out
  branch, ``update-ref`` for any other)
- ahead of or diverged from its remote counterpart: warning only
- upstream gone and merged into the default branch: delete
- upstream gone and not merged: warning only
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from branchsync.git import ErrorKind, GitError, GitRepo, Range
from branchsync.report import Reporter

logger = logging.getLogger(__name__)

REMOTE = "origin"


class Disposition(Enum):
    """What to do with a local branch."""

    UP_TO_DATE = "up-to-date"
    FAST_FORWARD = "fast-forward"
    DIVERGED_WARNING = "diverged"
    ORPHAN_MERGED = "orphan-merged"
    ORPHAN_UNMERGED = "orphan-unmerged"
    NO_REMOTE_COUNTERPART = "no-remote-counterpart"


@dataclass(frozen=True)
class LocalBranch:
    """A local branch and its relation to the remote."""

    name: str
    tracked_remote: str = ""
    remote_ref: str = ""
    is_gone: bool = False

    @property
    def full_ref(self) -> str:
        return f"refs/heads/{self.name}"


@dataclass(frozen=True)
class Classification:
    """Result of classifying one branch."""

    branch: LocalBranch
    disposition: Disposition
    range: Optional[Range] = None

    @property
    def target(self) -> str:
        """The ref the branch was compared against."""
        return self.branch.remote_ref


@dataclass
class SyncResult:
    """What a sync run did."""

    current_branch: str = ""
    updated: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    dispositions: dict[str, Disposition] = field(default_factory=dict)


def resolve_branch(repo: GitRepo, name: str, branch_to_remote: dict[str, str], remote: str = REMOTE) -> LocalBranch:
    """Find the remote counterpart of a local branch.

    A branch configured for the remote is compared with its upstream; if the
    upstream no longer resolves the branch is gone. Any other branch is
    compared with ``refs/remotes/<remote>/<name>`` when that ref exists.
    """
    tracked_remote = branch_to_remote.get(name, "")
    if tracked_remote == remote:
        try:
            return LocalBranch(name, tracked_remote, remote_ref=repo.resolve_upstream(name))
        except GitError as err:
            if err.kind != ErrorKind.NO_UPSTREAM:
                raise
            logger.debug("Upstream of %s is gone: %s", name, err)
            return LocalBranch(name, tracked_remote, is_gone=True)

    remote_ref = f"refs/remotes/{remote}/{name}"
    if repo.path_exists(*remote_ref.split("/")):
        return LocalBranch(name, tracked_remote, remote_ref=remote_ref)
    return LocalBranch(name, tracked_remote)


def classify_branch(repo: GitRepo, branch: LocalBranch, default_branch: str, remote: str = REMOTE) -> Classification:
    """Decide the disposition of a branch. Runs no mutating commands."""
    if branch.remote_ref:
        diff = repo.range(branch.full_ref, branch.remote_ref)
        if diff.is_identical():
            disposition = Disposition.UP_TO_DATE
        elif diff.is_ancestor():
            disposition = Disposition.FAST_FORWARD
        else:
            disposition = Disposition.DIVERGED_WARNING
        return Classification(branch, disposition, diff)

    if branch.is_gone:
        diff = repo.range(branch.full_ref, f"refs/remotes/{remote}/{default_branch}")
        if diff.is_ancestor():
            return Classification(branch, Disposition.ORPHAN_MERGED, diff)
        return Classification(branch, Disposition.ORPHAN_UNMERGED, diff)

    return Classification(branch, Disposition.NO_REMOTE_COUNTERPART)


class Reconciler:
    """Applies the action for each classified branch."""

    def __init__(
        self,
        repo: GitRepo,
        reporter: Reporter,
        default_branch: str,
        current_branch: str,
        remote: str = REMOTE,
    ) -> None:
        self.repo = repo
        self.reporter = reporter
        self.default_branch = default_branch
        self.remote = remote
        self.result = SyncResult(current_branch=current_branch)

    @property
    def current_branch(self) -> str:
        return self.result.current_branch

    def apply(self, classification: Classification) -> None:
        """Run the mutation for one branch.

        Raises:
            GitError: MUTATION_FAILED if git refuses the mutation
        """
        branch = classification.branch
        disposition = classification.disposition
        diff = classification.range
        self.result.dispositions[branch.name] = disposition
        logger.debug("%s: %s", branch.name, disposition.value)

        if disposition == Disposition.UP_TO_DATE:
            self.reporter.up_to_date(branch.name)
        elif disposition == Disposition.NO_REMOTE_COUNTERPART:
            self.result.skipped.append(branch.name)
            self.reporter.skipped(branch.name)
        elif disposition == Disposition.FAST_FORWARD:
            if branch.name == self.current_branch:
                self.repo.merge_fast_forward(classification.target)
            else:
                self.repo.update_ref(branch.full_ref, diff.b)
            self.result.updated.append(branch.name)
            self.reporter.updated(branch.name, diff.a)
        elif disposition == Disposition.DIVERGED_WARNING:
            self._warn(branch.name, f"'{branch.name}' seems to contain unpushed commits")
        elif disposition == Disposition.ORPHAN_MERGED:
            if branch.name == self.current_branch:
                self.repo.checkout(self.default_branch)
                self.result.current_branch = self.default_branch
            self.repo.delete_branch(branch.name)
            self.result.deleted.append(branch.name)
            self.reporter.deleted(branch.name, diff.a)
        elif disposition == Disposition.ORPHAN_UNMERGED:
            self._warn(
                branch.name,
                f"'{branch.name}' was deleted on {self.remote}, but appears not merged into '{self.default_branch}'",
            )

    def _warn(self, branch_name: str, message: str) -> None:
        self.result.warnings.append(branch_name)
        self.reporter.warning(message)


def sync(repo: GitRepo, reporter: Reporter, remote: str = REMOTE) -> SyncResult:
    """Fetch the remote and reconcile every local branch with it.

    Raises:
        GitError: on the first fatal failure; branches after it are not processed
    """
    if not repo.is_git_root():
        raise GitError("not a git repository", ErrorKind.NOT_A_GIT_REPO)

    default_branch = repo.resolve_default_branch(remote)
    reconciler = Reconciler(repo, reporter, default_branch, repo.current_branch(), remote)

    repo.fetch(remote)

    branches = repo.list_local_branches()
    branch_to_remote = repo.branch_remote_config()
    logger.debug("Syncing %d branches against %s/%s", len(branches), remote, default_branch)

    for name in branches:
        branch = resolve_branch(repo, name, branch_to_remote, remote)
        reconciler.apply(classify_branch(repo, branch, default_branch, remote))

    return reconciler.result
