"""Configuration for branchmirror connections and cache placement."""

from __future__ import annotations

import dataclasses
import os
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .credentials import ConnectionContext
from .errors import BranchMirrorError

CONFIG_FILENAME = "config.yaml"
CONFIG_SECTION = "branchmirror"
DEFAULT_KEY_FILENAME = "remote.key"
ENV_CACHE_DIR = "BRANCHMIRROR_CACHE_DIR"
ENV_USERNAME = "BRANCHMIRROR_USERNAME"
ENV_PASSWORD = "BRANCHMIRROR_PASSWORD"  # noqa: S105
ENV_SSH_KEY = "BRANCHMIRROR_SSH_KEY"
ENV_PROXY = "BRANCHMIRROR_PROXY"
SYSTEM_PROXY_VARS = ("HTTPS_PROXY", "https_proxy")

_yaml = YAML(typ="safe")


class ConfigError(BranchMirrorError):
    """Raised when the configuration file cannot be interpreted."""


@dataclasses.dataclass(frozen=True, slots=True)
class MirrorSettings:
    """Settings shared by every mirror operation."""

    cache_directory: Path | None = None
    username: str | None = None
    password: str | None = None
    ssh_key_path: Path | None = None
    proxy: str | None = None

    def connection(self) -> ConnectionContext:
        """Return the connection context handed to network operations."""
        return ConnectionContext(
            username=self.username,
            password=self.password,
            ssh_key_path=self.ssh_key_path or default_ssh_key_path(),
            proxy=self.proxy,
        )


def default_config_path() -> Path:
    """Return the path to the branchmirror configuration file."""
    root = os.environ.get("XDG_CONFIG_HOME")
    base = Path(root).expanduser() if root else Path.home() / ".config"
    return base / "branchmirror" / CONFIG_FILENAME


def default_data_directory() -> Path:
    """Return the per-user data directory holding the SSH key."""
    root = os.environ.get("XDG_DATA_HOME")
    base = Path(root).expanduser() if root else Path.home() / ".local" / "share"
    return base / "branchmirror"


def default_ssh_key_path() -> Path:
    """Return the private key used for SSH remotes."""
    return default_data_directory() / DEFAULT_KEY_FILENAME


def load_settings(
    config_path: Path | None = None,
    *,
    env: typ.Mapping[str, str] | None = None,
) -> MirrorSettings:
    """Load settings from the config file and apply environment overrides."""
    section = _load_section(config_path or default_config_path())
    source = env if env is not None else os.environ

    cache_directory = source.get(ENV_CACHE_DIR) or section.get("cache_directory")
    ssh_key_path = source.get(ENV_SSH_KEY) or section.get("ssh_key_path")
    return MirrorSettings(
        cache_directory=_optional_path(cache_directory),
        username=source.get(ENV_USERNAME) or _optional_str(section.get("username")),
        password=source.get(ENV_PASSWORD) or _optional_str(section.get("password")),
        ssh_key_path=_optional_path(ssh_key_path),
        proxy=_resolve_proxy(section, source),
    )


def _load_section(path: Path) -> dict[str, typ.Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        contents = _yaml.load(handle) or {}
    if not isinstance(contents, dict):
        detail = f"Configuration at {path} must be a mapping."
        raise ConfigError(detail)
    section = contents.get(CONFIG_SECTION) or {}
    if not isinstance(section, dict):
        detail = f"Section {CONFIG_SECTION!r} in {path} must be a mapping."
        raise ConfigError(detail)
    return dict(section)


def _resolve_proxy(
    section: dict[str, typ.Any],
    source: typ.Mapping[str, str],
) -> str | None:
    if proxy := source.get(ENV_PROXY) or _optional_str(section.get("proxy")):
        return proxy
    for name in SYSTEM_PROXY_VARS:
        if proxy := source.get(name):
            return proxy
    return None


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_path(value: object) -> Path | None:
    if (text := _optional_str(value)) is None:
        return None
    return Path(text).expanduser()
