"""Shared exception types for branchmirror."""

from __future__ import annotations


class BranchMirrorError(RuntimeError):
    """Base error for branchmirror operations."""
