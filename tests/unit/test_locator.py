"""Unit tests for remote locator parsing."""

from __future__ import annotations

import pytest

from branchmirror.locator import (
    EmbeddedCredential,
    RemoteScheme,
    extract_https_username,
    has_scheme_prefix,
    parse_remote_locator,
)


@pytest.mark.parametrize(
    ("text", "scheme"),
    [
        ("ssh://git@example.com/repo.git", RemoteScheme.SSH),
        ("https://example.com/repo.git", RemoteScheme.HTTPS),
        ("http://example.com/repo.git", RemoteScheme.OTHER),
        ("git://example.com/repo.git", RemoteScheme.OTHER),
        ("svn://example.com/repo", RemoteScheme.OTHER),
    ],
)
def test_parse_classifies_scheme(text: str, scheme: RemoteScheme) -> None:
    """Every ``scheme://`` locator is classified once at parse time."""
    locator = parse_remote_locator(text)

    assert locator is not None
    assert locator.scheme is scheme
    assert locator.normalized_url == text


@pytest.mark.parametrize(
    "text",
    [
        "nogrammarhere",
        "/srv/git/repo",
        "relative/path",
        "://missing-scheme",
        "HTTPS://example.com/repo.git",
        "git@example.com:org/repo.git",
        "https:/example.com/repo.git",
    ],
)
def test_parse_rejects_non_remote(text: str) -> None:
    """Strings without a lowercase ``scheme://`` prefix are not remotes."""
    assert parse_remote_locator(text) is None
    assert not has_scheme_prefix(text)


def test_file_scheme_becomes_local_path() -> None:
    """``file://`` locators are rewritten to the path that follows."""
    locator = parse_remote_locator("file:///srv/git/repo.git")

    assert locator is not None
    assert locator.normalized_url == "/srv/git/repo.git"
    assert locator.scheme is RemoteScheme.OTHER


def test_https_username_is_extracted() -> None:
    """A user before the authority's ``@`` is removed from the locator."""
    locator = parse_remote_locator("https://alice@example.com/repo.git")

    assert locator is not None
    assert locator.normalized_url == "https://example.com/repo.git"
    assert locator.embedded_credential == EmbeddedCredential(username="alice")
    assert locator.scheme is RemoteScheme.HTTPS


def test_https_username_keeps_percent_encoding() -> None:
    """Encoded e-mail usernames are stored exactly as written."""
    normalized, credential = extract_https_username(
        "https://alice%40example.org@example.com/repo.git"
    )

    assert normalized == "https://example.com/repo.git"
    assert credential == EmbeddedCredential(username="alice%40example.org")


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/a@b/repo.git",
        "https://alice@example.com",
        "https://example.com/repo.git",
    ],
)
def test_https_at_outside_authority_is_kept(url: str) -> None:
    """An ``@`` after the first path slash, or with no slash, is not a user."""
    locator = parse_remote_locator(url)

    assert locator is not None
    assert locator.normalized_url == url
    assert locator.embedded_credential is None


def test_ssh_username_is_not_extracted() -> None:
    """Only HTTPS locators have their username stripped."""
    locator = parse_remote_locator("ssh://git@example.com/repo.git")

    assert locator is not None
    assert locator.embedded_credential is None
    assert locator.normalized_url == "ssh://git@example.com/repo.git"
