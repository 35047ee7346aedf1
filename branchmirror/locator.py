"""Parse remote repository locators and extract embedded credentials."""

from __future__ import annotations

import dataclasses
import enum

HTTPS_PREFIX = "https://"
SSH_PREFIX = "ssh://"
FILE_PREFIX = "file://"


class RemoteScheme(enum.StrEnum):
    """Transport family of a remote locator."""

    SSH = "ssh"
    HTTPS = "https"
    OTHER = "other"


@dataclasses.dataclass(frozen=True, slots=True)
class EmbeddedCredential:
    """Credential extracted from the authority part of a locator.

    ``username`` keeps the percent-encoded form found in the URL.
    """

    username: str


@dataclasses.dataclass(frozen=True, slots=True)
class RemoteLocator:
    """Normalised remote locator with its scheme derived once."""

    scheme: RemoteScheme
    normalized_url: str
    embedded_credential: EmbeddedCredential | None = None


def has_scheme_prefix(text: str) -> bool:
    """Return True when ``text`` starts with ``[a-z]+://``."""
    index = 0
    while index < len(text) and "a" <= text[index] <= "z":
        index += 1
    return index > 0 and text[index : index + 3] == "://"


def classify_scheme(url: str) -> RemoteScheme:
    """Return the transport family for ``url``."""
    if url.startswith(SSH_PREFIX):
        return RemoteScheme.SSH
    if url.startswith(HTTPS_PREFIX):
        return RemoteScheme.HTTPS
    return RemoteScheme.OTHER


def extract_https_username(url: str) -> tuple[str, EmbeddedCredential | None]:
    """Strip ``user@`` from an HTTPS authority and return it separately.

    The ``@`` only counts as a credential delimiter when it occurs before the
    first ``/`` that follows ``https://``; otherwise it belongs to the path.
    """
    if not url.startswith(HTTPS_PREFIX):
        return url, None
    at = url.find("@")
    if at < 0:
        return url, None
    slash = url.find("/", len(HTTPS_PREFIX))
    if slash < 0 or slash < at:
        return url, None
    username = url[len(HTTPS_PREFIX) : at]
    normalized = HTTPS_PREFIX + url[at + 1 :]
    return normalized, EmbeddedCredential(username=username)


def parse_remote_locator(text: str) -> RemoteLocator | None:
    """Parse ``text`` as a remote locator.

    Returns ``None`` when ``text`` does not start with ``scheme://``, in which
    case the caller should treat it as a local filesystem path. ``file://``
    locators are rewritten to the bare path that follows the prefix.
    """
    if not has_scheme_prefix(text):
        return None

    url = text.removeprefix(FILE_PREFIX)
    url, credential = extract_https_username(url)
    return RemoteLocator(
        scheme=classify_scheme(url),
        normalized_url=url,
        embedded_credential=credential,
    )
