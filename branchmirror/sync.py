"""Reconcile a mirror branch with its upstream.

The engine compares the local branch tip with the tip of its upstream and
takes the smallest safe action:

* identical tips: nothing to do;
* local is an ancestor of upstream: fast-forward the local branch;
* upstream is an ancestor of local: push the local branch;
* otherwise the histories diverged and the user has to merge.

Divergence is never merged automatically and a dirty working tree blocks
every history change. Remote-side failures are reported and returned as
results; they never raise.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import typing as typ

import pygit2
from pygit2.enums import CheckoutStrategy

from .errors import BranchMirrorError
from .guard import find_dirty_path

if typ.TYPE_CHECKING:
    from .reporting import Reporter

REFLOG_MESSAGE = "branchmirror: update to remote"

type CallbacksFactory = typ.Callable[[], pygit2.RemoteCallbacks | None]

_logger = logging.getLogger(__name__)


class SyncOutcome(enum.StrEnum):
    """Result of reconciling a mirror branch with its upstream."""

    UP_TO_DATE = "up-to-date"
    FAST_FORWARDED_LOCAL = "fast-forwarded-local"
    PUSHED_TO_REMOTE = "pushed-to-remote"
    DIVERGED_BARE_NEEDS_MANUAL_MERGE = "diverged-bare-needs-manual-merge"
    DIVERGED_NOT_HEAD = "diverged-not-head"
    DIVERGED_NEEDS_MERGE = "diverged-needs-merge"
    DIRTY_WORKING_TREE = "dirty-working-tree"
    ERROR = "error"


_SUCCESSFUL = frozenset(
    {
        SyncOutcome.UP_TO_DATE,
        SyncOutcome.FAST_FORWARDED_LOCAL,
        SyncOutcome.PUSHED_TO_REMOTE,
    }
)
_LEVELS = {
    SyncOutcome.UP_TO_DATE: logging.DEBUG,
    SyncOutcome.FAST_FORWARDED_LOCAL: logging.INFO,
    SyncOutcome.PUSHED_TO_REMOTE: logging.INFO,
}


@dataclasses.dataclass(frozen=True, slots=True)
class SyncResult:
    """Outcome of one synchronisation attempt and the message reported."""

    outcome: SyncOutcome
    message: str

    @property
    def level(self) -> int:
        """Return the logging level the outcome is reported at."""
        return _LEVELS.get(self.outcome, logging.WARNING)

    @property
    def succeeded(self) -> bool:
        """Return True when local and remote agree after the attempt."""
        return self.outcome in _SUCCESSFUL

    def render(self) -> str:
        """Return a human-readable summary."""
        return f"{self.outcome}: {self.message}"


def _report(reporter: Reporter, outcome: SyncOutcome, message: str) -> SyncResult:
    result = SyncResult(outcome=outcome, message=message)
    reporter(result.level, message)
    return result


def refresh_mirror(
    repository: pygit2.Repository,
    remote: pygit2.Remote,
    branch: str,
    *,
    make_callbacks: CallbacksFactory,
    reporter: Reporter,
    proxy: str | None = None,
) -> SyncResult:
    """Fetch ``remote`` and reconcile ``branch`` with its upstream.

    ``make_callbacks`` is called once per network operation. A failed fetch
    is reported and leaves the mirror untouched.
    """
    try:
        remote.fetch(callbacks=make_callbacks(), proxy=proxy)
    except (pygit2.GitError, BranchMirrorError) as error:
        detail = f"Unable to fetch remote {remote.url!r}: {error}"
        return _report(reporter, SyncOutcome.ERROR, detail)
    return synchronise(
        repository,
        remote,
        branch,
        make_callbacks=make_callbacks,
        reporter=reporter,
        proxy=proxy,
    )


def _lookup_upstream(local_branch: pygit2.Branch) -> pygit2.Branch | None:
    try:
        return local_branch.upstream
    except (KeyError, ValueError, pygit2.GitError):
        return None


def synchronise(
    repository: pygit2.Repository,
    remote: pygit2.Remote,
    branch: str,
    *,
    make_callbacks: CallbacksFactory,
    reporter: Reporter,
    proxy: str | None = None,
) -> SyncResult:
    """Reconcile the already fetched ``branch`` with its upstream."""
    local_branch = repository.branches.local.get(branch)
    if local_branch is None:
        detail = f"Mirror branch {branch!r} no longer exists."
        return _report(reporter, SyncOutcome.ERROR, detail)

    upstream = _lookup_upstream(local_branch)
    if upstream is None:
        detail = f"Mirror branch {branch!r} no longer has an upstream branch."
        return _report(reporter, SyncOutcome.ERROR, detail)

    local_id = local_branch.target
    remote_id = upstream.target
    _logger.debug("local %s, upstream %s for %s", local_id, remote_id, branch)
    if local_id == remote_id:
        detail = f"Mirror branch {branch!r} is up to date."
        return _report(reporter, SyncOutcome.UP_TO_DATE, detail)

    if (dirty := find_dirty_path(repository)) is not None:
        detail = f"Mirror working tree is modified (path {dirty}); skipping update."
        return _report(reporter, SyncOutcome.DIRTY_WORKING_TREE, detail)

    try:
        base = repository.merge_base(local_id, remote_id)
    except pygit2.GitError as error:
        base = None
        _logger.debug("merge base lookup failed: %s", error)
    if base is None:
        detail = f"Unable to find a common commit of {branch!r} and its upstream."
        return _report(reporter, SyncOutcome.ERROR, detail)

    if base == local_id:
        return _fast_forward(repository, local_branch, remote_id, reporter)
    if base == remote_id:
        return _push(remote, local_branch, make_callbacks, reporter, proxy)
    return _diverged(repository, local_branch, reporter)


def _fast_forward(
    repository: pygit2.Repository,
    local_branch: pygit2.Branch,
    target: pygit2.Oid,
    reporter: Reporter,
) -> SyncResult:
    """Move ``local_branch`` to ``target``, updating the checkout if needed."""
    if repository.is_bare or not local_branch.is_head():
        try:
            local_branch.set_target(target, REFLOG_MESSAGE)
        except pygit2.GitError as error:
            detail = f"Could not update local ref to newer remote ref: {error}"
            return _report(reporter, SyncOutcome.ERROR, detail)
        detail = f"Updated local branch {local_branch.branch_name!r} from remote."
        return _report(reporter, SyncOutcome.FAST_FORWARDED_LOCAL, detail)

    try:
        commit = repository[target].peel(pygit2.Commit)
        # SAFE refuses to overwrite local changes; HEAD still names the old
        # commit here so unchanged files are updated or removed correctly.
        repository.checkout_tree(commit.tree, strategy=CheckoutStrategy.SAFE)
        local_branch.set_target(target, REFLOG_MESSAGE)
    except (KeyError, pygit2.GitError) as error:
        detail = f"Local head checkout failed after update: {error}"
        return _report(reporter, SyncOutcome.ERROR, detail)
    detail = f"Updated local working tree of {local_branch.branch_name!r} from remote."
    return _report(reporter, SyncOutcome.FAST_FORWARDED_LOCAL, detail)


def _push(
    remote: pygit2.Remote,
    local_branch: pygit2.Branch,
    make_callbacks: CallbacksFactory,
    reporter: Reporter,
    proxy: str | None,
) -> SyncResult:
    """Publish ``local_branch`` to the remote it tracks."""
    try:
        remote.push([local_branch.name], callbacks=make_callbacks(), proxy=proxy)
    except (pygit2.GitError, BranchMirrorError) as error:
        detail = f"Unable to update remote with current local mirror state ({error})."
        return _report(reporter, SyncOutcome.ERROR, detail)
    detail = (
        f"Local mirror of {local_branch.branch_name!r} was more recent than "
        "the remote; pushed."
    )
    return _report(reporter, SyncOutcome.PUSHED_TO_REMOTE, detail)


def _diverged(
    repository: pygit2.Repository,
    local_branch: pygit2.Branch,
    reporter: Reporter,
) -> SyncResult:
    name = local_branch.branch_name
    if repository.is_bare:
        detail = f"Local and remote {name!r} have diverged; bare mirror needs a merge."
        return _report(reporter, SyncOutcome.DIVERGED_BARE_NEEDS_MANUAL_MERGE, detail)
    if not local_branch.is_head():
        detail = f"Local and remote {name!r} differ and {name!r} is not checked out."
        return _report(reporter, SyncOutcome.DIVERGED_NOT_HEAD, detail)
    detail = f"Local and remote {name!r} have diverged; merge them manually."
    return _report(reporter, SyncOutcome.DIVERGED_NEEDS_MERGE, detail)
