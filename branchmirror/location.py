"""Recognise ``<path>[<branch>]`` repository location strings."""

from __future__ import annotations

import dataclasses


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryLocation:
    """Repository location and branch name split from a location string."""

    path: str
    branch: str


def _matching_bracket(text: str, end: int) -> int:
    """Return the index of the last unescaped ``[`` before ``end`` or -1."""
    index = text.rfind("[", 0, end)
    while index > 0 and text[index - 1] == "\\":
        index = text.rfind("[", 0, index - 1)
    return index


def parse_location(text: str) -> RepositoryLocation | None:
    """Split ``text`` into a repository location and branch.

    Returns ``None`` when ``text`` does not follow the ``<path>[<branch>]``
    grammar. Slashes immediately before the ``[`` are ignored.

    Examples
    --------
    >>> parse_location("foo/bar///[baz]")
    RepositoryLocation(path='foo/bar', branch='baz')
    >>> parse_location("nogrammarhere") is None
    True

    """
    if not text.endswith("]"):
        return None

    bracket = _matching_bracket(text, len(text) - 1)
    if bracket <= 0:
        return None

    branch = text[bracket + 1 : -1]
    path = text[:bracket].rstrip("/")
    if not path:
        return None
    return RepositoryLocation(path=path, branch=branch)
