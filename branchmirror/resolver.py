"""Turn ``<location>[<branch>]`` strings into usable mirrors."""

from __future__ import annotations

import dataclasses
import logging
import typing as typ
from pathlib import Path

import pygit2

from .acquire import Mirror, acquire_mirror
from .cache import mirror_path
from .config import MirrorSettings
from .errors import BranchMirrorError
from .location import parse_location
from .locator import parse_remote_locator
from .reporting import log_reporter

if typ.TYPE_CHECKING:
    from .location import RepositoryLocation
    from .reporting import Reporter

__all__ = [
    "Mirror",
    "NotARepository",
    "UnusableRepository",
    "open_location",
]


@dataclasses.dataclass(frozen=True, slots=True)
class UnusableRepository:
    """The text named a repository that could not be opened."""

    text: str
    reason: str


@dataclasses.dataclass(frozen=True, slots=True)
class NotARepository:
    """The text does not follow the repository location grammar."""

    text: str


type Resolution = Mirror | UnusableRepository | NotARepository


def open_location(
    text: str,
    *,
    settings: MirrorSettings | None = None,
    reporter: Reporter = log_reporter,
) -> Resolution:
    """Resolve ``text`` into a mirror, a reported failure, or not-applicable.

    Once ``text`` matches the ``<location>[<branch>]`` grammar the result is
    always repository-shaped: either a :class:`Mirror` or an
    :class:`UnusableRepository` whose reason has already been reported.
    """
    location = parse_location(text)
    if location is None:
        return NotARepository(text=text)

    resolved = settings or MirrorSettings()
    try:
        return _open_remote(location, resolved, reporter) or _open_local(location)
    except BranchMirrorError as error:
        reporter(logging.ERROR, str(error))
        return UnusableRepository(text=text, reason=str(error))


def _open_remote(
    location: RepositoryLocation,
    settings: MirrorSettings,
    reporter: Reporter,
) -> Mirror | None:
    locator = parse_remote_locator(location.path)
    if locator is None:
        return None
    local_path = mirror_path(
        locator.normalized_url,
        location.branch,
        settings.cache_directory,
    )
    return acquire_mirror(
        local_path,
        locator,
        location.branch,
        context=settings.connection(),
        reporter=reporter,
    )


def _open_local(location: RepositoryLocation) -> Mirror:
    path = Path(location.path)
    if not path.is_dir():
        detail = f"{location.path!r} is neither a remote nor a local repository."
        raise BranchMirrorError(detail)
    try:
        repository = pygit2.Repository(str(path))
    except pygit2.GitError as error:
        detail = f"Unable to open repository at {location.path!r}: {error}"
        raise BranchMirrorError(detail) from error
    return Mirror(repository=repository, path=path, branch=location.branch)
