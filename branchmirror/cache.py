"""Map (remote, branch) pairs onto local mirror directories."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

XDG_CACHE_HOME = "XDG_CACHE_HOME"
CACHE_SEGMENT = ("branchmirror", "mirrors")


def cache_root(env: dict[str, str] | None = None) -> Path:
    """Return the directory used for caching mirrors without creating it."""
    source = env if env is not None else os.environ
    root = source.get(XDG_CACHE_HOME)
    base = Path(root).expanduser() if root else Path.home() / ".cache"
    path = base
    for segment in CACHE_SEGMENT:
        path /= segment
    return path


def mirror_key(remote: str, branch: str) -> str:
    """Return the 40-character hex digest identifying ``(remote, branch)``.

    A zero byte separates the two strings so that ``("repo1", "branch")`` and
    ``("repo", "1branch")`` hash differently.
    """
    digest = hashlib.sha1(usedforsecurity=False)
    digest.update(remote.encode("utf-8"))
    digest.update(b"\0")
    digest.update(branch.encode("utf-8"))
    return digest.hexdigest()


def mirror_path(
    remote: str,
    branch: str,
    base_directory: Path | None = None,
) -> Path:
    """Return the mirror directory for an already normalised ``remote``.

    Nothing is created on disk; cloning creates the directory on first use.
    """
    root = base_directory or cache_root()
    return root / mirror_key(remote, branch)
