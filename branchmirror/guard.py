"""Detect uncommitted changes in a mirror's working tree."""

from __future__ import annotations

import dataclasses
import typing as typ

from pygit2.enums import FileStatus

if typ.TYPE_CHECKING:
    import pygit2

CLEAN_STATUSES = frozenset({FileStatus.CURRENT, FileStatus.IGNORED})


@dataclasses.dataclass(frozen=True, slots=True)
class Continue:
    """Visitor verdict: keep enumerating."""


@dataclasses.dataclass(frozen=True, slots=True)
class Stop:
    """Visitor verdict: stop enumerating and report ``reason``."""

    reason: str


type Verdict = Continue | Stop
type StatusVisitor = typ.Callable[[str, FileStatus], Verdict]

CONTINUE = Continue()


def visit_status(repository: pygit2.Repository, visitor: StatusVisitor) -> Stop | None:
    """Feed every working-tree entry to ``visitor`` until it asks to stop."""
    if repository.is_bare:
        return None
    for path, flags in repository.status().items():
        verdict = visitor(path, FileStatus(flags))
        if isinstance(verdict, Stop):
            return verdict
    return None


def _dirty_entry(path: str, status: FileStatus) -> Verdict:
    if status in CLEAN_STATUSES:
        return CONTINUE
    return Stop(reason=path)


def find_dirty_path(repository: pygit2.Repository) -> str | None:
    """Return the first modified, staged, conflicted or untracked path."""
    if (stop := visit_status(repository, _dirty_entry)) is None:
        return None
    return stop.reason


def is_clean(repository: pygit2.Repository) -> bool:
    """Return True when the working tree matches the checked-out commit."""
    return find_dirty_path(repository) is None
