"""Connection context and pygit2 callbacks for authenticated remotes."""

from __future__ import annotations

import dataclasses
import logging
import typing as typ
from urllib.parse import unquote

import pygit2
from pygit2 import Keypair, KeypairFromAgent, RemoteCallbacks, Username, UserPass
from pygit2.enums import CredentialType

from .errors import BranchMirrorError
from .locator import RemoteLocator, RemoteScheme

if typ.TYPE_CHECKING:
    from pathlib import Path

DEFAULT_SSH_USERNAME = "git"
MAX_CREDENTIAL_ATTEMPTS = 3

_logger = logging.getLogger(__name__)


class CredentialsError(BranchMirrorError):
    """Raised when a remote asks for credentials that cannot be supplied."""


class PushRejectedError(BranchMirrorError):
    """Raised when the remote refuses a reference update during push."""


@dataclasses.dataclass(frozen=True, slots=True)
class ConnectionContext:
    """Credentials and proxy settings threaded into network operations."""

    username: str | None = None
    password: str | None = None
    ssh_key_path: Path | None = None
    proxy: str | None = None

    def with_locator(self, locator: RemoteLocator) -> ConnectionContext:
        """Return a copy using the username embedded in ``locator``, if any."""
        if locator.embedded_credential is None:
            return self
        return dataclasses.replace(
            self,
            username=locator.embedded_credential.username,
        )


class MirrorCallbacks(RemoteCallbacks):
    """Answer credential requests from a :class:`ConnectionContext`."""

    def __init__(self, scheme: RemoteScheme, context: ConnectionContext) -> None:
        """Store the transport family and the context to answer from."""
        super().__init__()
        self._scheme = scheme
        self._context = context
        self._attempts = 0

    def credentials(
        self,
        url: str,
        username_from_url: str | None,
        allowed_types: CredentialType,
    ) -> Keypair | KeypairFromAgent | Username | UserPass:
        """Return credentials for ``url`` or raise once attempts run out."""
        self._attempts += 1
        if self._attempts > MAX_CREDENTIAL_ATTEMPTS:
            detail = f"Credentials for {url} were rejected."
            raise CredentialsError(detail)

        _logger.debug("credential request %d for %s", self._attempts, url)
        if self._scheme is RemoteScheme.HTTPS:
            return self._userpass(url, allowed_types)
        if self._scheme is RemoteScheme.SSH:
            return self._ssh(url, username_from_url, allowed_types)
        detail = (
            f"Remote {url} requires credentials; only ssh:// and https:// "
            "remotes can authenticate."
        )
        raise CredentialsError(detail)

    def push_update_reference(self, refname: str, message: str | None) -> None:
        """Raise when the remote rejected the update of ``refname``."""
        if message:
            detail = f"Remote rejected {refname}: {message}"
            raise PushRejectedError(detail)

    def _userpass(self, url: str, allowed_types: CredentialType) -> UserPass:
        if not allowed_types & CredentialType.USERPASS_PLAINTEXT:
            detail = f"Remote {url} does not accept username/password credentials."
            raise CredentialsError(detail)
        username = unquote(self._context.username or "")
        return UserPass(username, self._context.password or "")

    def _ssh(
        self,
        url: str,
        username_from_url: str | None,
        allowed_types: CredentialType,
    ) -> Keypair | KeypairFromAgent | Username:
        username = username_from_url or self._context.username or DEFAULT_SSH_USERNAME
        if allowed_types & CredentialType.USERNAME:
            return Username(username)
        if not allowed_types & CredentialType.SSH_KEY:
            detail = f"Remote {url} does not accept SSH key credentials."
            raise CredentialsError(detail)
        key_path = self._context.ssh_key_path
        if key_path is not None and key_path.exists():
            return Keypair(username, None, str(key_path), self._context.password or "")
        return KeypairFromAgent(username)


def build_remote_callbacks(
    locator: RemoteLocator,
    context: ConnectionContext,
) -> MirrorCallbacks | None:
    """Return fresh callbacks answering credential requests for ``locator``.

    Remotes other than SSH and HTTPS get no callbacks. Each network operation
    should use its own instance so the attempt limit applies per operation.
    """
    if locator.scheme is RemoteScheme.OTHER:
        return None
    return MirrorCallbacks(locator.scheme, context)


def apply_proxy(
    repository: pygit2.Repository,
    locator: RemoteLocator,
    context: ConnectionContext,
) -> None:
    """Configure ``http.proxy`` on ``repository`` for HTTPS remotes."""
    if (proxy := proxy_for(locator, context)) is None:
        return
    repository.config["http.proxy"] = proxy


def proxy_for(locator: RemoteLocator, context: ConnectionContext) -> str | None:
    """Return the proxy to use for ``locator``, if any."""
    if locator.scheme is not RemoteScheme.HTTPS:
        return None
    return context.proxy or None
