"""Open or clone the mirror backing a (remote, branch) pair."""

from __future__ import annotations

import dataclasses
import functools
import logging
import typing as typ

import pygit2

from .credentials import apply_proxy, build_remote_callbacks, proxy_for
from .errors import BranchMirrorError
from .sync import refresh_mirror

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .credentials import ConnectionContext
    from .locator import RemoteLocator
    from .reporting import Reporter
    from .sync import SyncResult

ORIGIN = "origin"

_logger = logging.getLogger(__name__)


class AcquisitionError(BranchMirrorError):
    """Raised when a mirror cannot be opened or cloned."""


class CacheCorruptError(AcquisitionError):
    """Raised when the mirror location exists but is not a directory."""

    def __init__(self, path: Path) -> None:
        """Initialise the error with the offending cache path."""
        super().__init__(f"Local mirror at {str(path)!r} is corrupt.")


@dataclasses.dataclass(frozen=True, slots=True)
class Mirror:
    """Opened mirror handed back to the caller.

    ``sync`` is ``None`` when no reconciliation ran: fresh clones, plain local
    repositories and mirrors without an ``origin`` remote.
    """

    repository: pygit2.Repository
    path: Path
    branch: str
    sync: SyncResult | None = None

    @property
    def is_bare(self) -> bool:
        """Return True when the mirror has no working tree."""
        return self.repository.is_bare


def acquire_mirror(
    local_path: Path,
    locator: RemoteLocator,
    branch: str,
    *,
    context: ConnectionContext,
    reporter: Reporter,
) -> Mirror:
    """Return the mirror at ``local_path``, cloning it on first use.

    Existing mirrors are fetched and reconciled with the remote; failures on
    the remote side are reported and the stale mirror is still returned.
    """
    context = context.with_locator(locator)
    if local_path.exists():
        if not local_path.is_dir():
            raise CacheCorruptError(local_path)
        return _update_mirror(
            local_path,
            locator,
            branch,
            context=context,
            reporter=reporter,
        )
    return _clone_mirror(local_path, locator, branch, context=context)


def _open_repository(local_path: Path) -> pygit2.Repository:
    try:
        return pygit2.Repository(str(local_path))
    except pygit2.GitError as error:
        detail = f"Unable to open mirror repository at {str(local_path)!r}: {error}"
        raise AcquisitionError(detail) from error


def _update_mirror(
    local_path: Path,
    locator: RemoteLocator,
    branch: str,
    *,
    context: ConnectionContext,
    reporter: Reporter,
) -> Mirror:
    repository = _open_repository(local_path)
    apply_proxy(repository, locator, context)

    try:
        remote = repository.remotes[ORIGIN]
    except KeyError:
        reporter(
            logging.WARNING,
            f"Repository {locator.normalized_url!r} origin lookup failed.",
        )
        return Mirror(repository=repository, path=local_path, branch=branch)

    _logger.debug("refreshing mirror %s from %s", local_path, remote.url)
    result = refresh_mirror(
        repository,
        remote,
        branch,
        make_callbacks=functools.partial(build_remote_callbacks, locator, context),
        reporter=reporter,
        proxy=proxy_for(locator, context),
    )
    return Mirror(repository=repository, path=local_path, branch=branch, sync=result)


def _clone_mirror(
    local_path: Path,
    locator: RemoteLocator,
    branch: str,
    *,
    context: ConnectionContext,
) -> Mirror:
    local_path.parent.mkdir(parents=True, exist_ok=True)
    _logger.debug("cloning %s into %s", locator.normalized_url, local_path)
    try:
        repository = pygit2.clone_repository(
            locator.normalized_url,
            str(local_path),
            checkout_branch=branch,
            callbacks=build_remote_callbacks(locator, context),
            proxy=proxy_for(locator, context),
        )
    except (pygit2.GitError, BranchMirrorError) as error:
        detail = f"git clone of {locator.normalized_url!r} failed: {error}"
        raise AcquisitionError(detail) from error
    return Mirror(repository=repository, path=local_path, branch=branch)
