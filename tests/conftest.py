"""Shared pytest fixtures for branchmirror tests."""

from __future__ import annotations

import dataclasses
import pathlib

import pygit2
import pytest
from pygit2.enums import CredentialType

from branchmirror.acquire import Mirror, acquire_mirror
from branchmirror.credentials import ConnectionContext
from branchmirror.locator import RemoteLocator, parse_remote_locator

SIGNATURE = pygit2.Signature("Test User", "test@example.com")
ISOLATED_ENV_VARS = (
    "BRANCHMIRROR_CACHE_DIR",
    "BRANCHMIRROR_USERNAME",
    "BRANCHMIRROR_PASSWORD",
    "BRANCHMIRROR_SSH_KEY",
    "BRANCHMIRROR_PROXY",
    "HTTPS_PROXY",
    "https_proxy",
)


def commit_file(
    repository: pygit2.Repository,
    relative_path: str,
    content: str,
    message: str | None = None,
) -> pygit2.Oid:
    """Write, stage and commit a file on the checked-out branch."""
    workdir = pathlib.Path(repository.workdir)
    target = workdir / relative_path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")

    index = repository.index
    index.add(relative_path)
    index.write()
    tree_oid = index.write_tree()
    parents = [] if repository.head_is_unborn else [repository.head.target]
    return repository.create_commit(
        "HEAD",
        SIGNATURE,
        SIGNATURE,
        message or f"update {relative_path}",
        tree_oid,
        parents,
    )


def commit_empty(
    repository: pygit2.Repository,
    ref: str,
    message: str,
) -> pygit2.Oid:
    """Create a commit on ``ref`` reusing its current tree (works on bare repos)."""
    parent = repository.lookup_reference(ref).target
    tree_oid = repository[parent].peel(pygit2.Commit).tree.id
    return repository.create_commit(
        ref,
        SIGNATURE,
        SIGNATURE,
        message,
        tree_oid,
        [parent],
    )


@dataclasses.dataclass(slots=True)
class GitRepo:
    """Expose repository handle and path for tests."""

    repository: pygit2.Repository
    path: pathlib.Path

    def read_text(self, relative_path: str) -> str:
        """Read a file relative to the repository root."""
        return (self.path / relative_path).read_text(encoding="utf-8")


@dataclasses.dataclass(slots=True)
class Upstream:
    """Bare remote repository plus a working clone used to publish commits."""

    bare_path: pathlib.Path
    worker: GitRepo

    @property
    def locator(self) -> RemoteLocator:
        """Return the ``file://`` locator for the bare remote."""
        locator = parse_remote_locator(f"file://{self.bare_path}")
        assert locator is not None
        return locator

    def head(self, branch: str = "main") -> pygit2.Oid:
        """Return the tip of ``branch`` in the bare remote."""
        bare = pygit2.Repository(str(self.bare_path))
        return bare.lookup_reference(f"refs/heads/{branch}").target

    def commit(self, relative_path: str, content: str) -> pygit2.Oid:
        """Commit in the worker clone and publish the result."""
        oid = commit_file(self.worker.repository, relative_path, content)
        self.worker.repository.remotes["origin"].push(["refs/heads/main"])
        return oid


class RecordingReporter:
    """Collect reported messages for later assertions."""

    def __init__(self) -> None:
        """Start with no recorded messages."""
        self.records: list[tuple[int, str]] = []

    def __call__(self, level: int, message: str) -> None:
        """Record ``message`` at ``level``."""
        self.records.append((level, message))

    @property
    def messages(self) -> list[str]:
        """Return the recorded messages in order."""
        return [message for _, message in self.records]


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: pathlib.Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Keep user configuration and proxies out of the tests."""
    for name in ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    for name in ("XDG_CONFIG_HOME", "XDG_CACHE_HOME", "XDG_DATA_HOME"):
        monkeypatch.setenv(name, str(tmp_path / "xdg" / name.lower()))


@pytest.fixture
def git_repo(tmp_path: pathlib.Path) -> GitRepo:
    """Initialise a git repository with an initial commit for testing."""
    repo_path = pathlib.Path(tmp_path, "repo")
    repo_path.mkdir()
    repository = pygit2.init_repository(str(repo_path), initial_head="main")

    config = repository.config
    config["user.name"] = "Test User"
    config["user.email"] = "test@example.com"

    commit_file(repository, "README.md", "seed\n", "initial commit")
    return GitRepo(repository=repository, path=repo_path)


@pytest.fixture
def upstream(git_repo: GitRepo, tmp_path: pathlib.Path) -> Upstream:
    """Publish ``git_repo`` to a bare remote and return both."""
    bare_path = tmp_path / "remote.git"
    pygit2.init_repository(str(bare_path), bare=True, initial_head="main")
    origin = git_repo.repository.remotes.create("origin", str(bare_path))
    origin.push(["refs/heads/main:refs/heads/main"])
    return Upstream(bare_path=bare_path, worker=git_repo)


@pytest.fixture
def reporter() -> RecordingReporter:
    """Provide a reporter that records every message."""
    return RecordingReporter()


@pytest.fixture
def cache_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Return the directory holding mirrors for a test."""
    return tmp_path / "cache"


@pytest.fixture
def mirror(
    upstream: Upstream,
    cache_dir: pathlib.Path,
    reporter: RecordingReporter,
) -> Mirror:
    """Clone ``upstream`` into a fresh mirror checked out on ``main``."""
    return acquire_mirror(
        cache_dir / "mirror",
        upstream.locator,
        "main",
        context=ConnectionContext(),
        reporter=reporter,
    )


class SshCredentialExchange:
    """Stand in for a libgit2 transport asking for a username, then a key."""

    def __init__(self, url: str) -> None:
        """Answer requests as if talking to ``url``."""
        self.url = url
        self.answers: list[object] = []

    def __call__(
        self,
        *_args: object,
        callbacks: pygit2.RemoteCallbacks | None = None,
        **_kwargs: object,
    ) -> None:
        """Request both credential types from ``callbacks``."""
        assert callbacks is not None
        self.answers.append(
            callbacks.credentials(self.url, None, CredentialType.USERNAME)
        )
        self.answers.append(
            callbacks.credentials(self.url, "git", CredentialType.SSH_KEY)
        )
