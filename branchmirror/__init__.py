"""Branch-scoped local mirrors of remote Git repositories."""

from __future__ import annotations

from .errors import BranchMirrorError
from .resolver import Mirror, NotARepository, UnusableRepository, open_location
from .sync import SyncOutcome, SyncResult

__all__ = [
    "BranchMirrorError",
    "Mirror",
    "NotARepository",
    "SyncOutcome",
    "SyncResult",
    "UnusableRepository",
    "open_location",
]
