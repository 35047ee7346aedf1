"""Command line entry points for branchmirror."""

from __future__ import annotations

import dataclasses
import sys
from pathlib import Path

from cyclopts import App

from .acquire import Mirror
from .cache import mirror_path
from .config import MirrorSettings, load_settings
from .errors import BranchMirrorError
from .locator import parse_remote_locator
from .reporting import stream_reporter
from .resolver import NotARepository, UnusableRepository, open_location

EXIT_UNUSABLE = 1
EXIT_NOT_A_REPOSITORY = 2
ERROR_NOT_A_LOCATION = (
    "{text!r} is not a repository location; expected <remote-or-path>[<branch>]."
)
ERROR_NOT_A_REMOTE = "{text!r} is not a remote locator such as https://host/repo."

app = App()


def _settings(config: Path | None, cache_directory: Path | None) -> MirrorSettings:
    settings = load_settings(config)
    if cache_directory is not None:
        settings = dataclasses.replace(settings, cache_directory=cache_directory)
    return settings


@app.command()
def sync(
    location: str,
    *,
    config: Path | None = None,
    cache_directory: Path | None = None,
) -> int:
    """Open or clone LOCATION and reconcile it with its upstream."""
    settings = _settings(config, cache_directory)
    result = open_location(
        location,
        settings=settings,
        reporter=stream_reporter(sys.stderr),
    )
    match result:
        case Mirror(path=mirror_dir, sync=outcome):
            print(mirror_dir)
            print(outcome.render() if outcome else "opened")
            return 0
        case UnusableRepository():
            return EXIT_UNUSABLE
        case NotARepository(text=text):
            print(ERROR_NOT_A_LOCATION.format(text=text), file=sys.stderr)
            return EXIT_NOT_A_REPOSITORY
    return EXIT_UNUSABLE


@app.command()
def path(
    remote: str,
    branch: str,
    *,
    config: Path | None = None,
    cache_directory: Path | None = None,
) -> None:
    """Print the mirror directory used for REMOTE and BRANCH."""
    locator = parse_remote_locator(remote)
    if locator is None:
        raise BranchMirrorError(ERROR_NOT_A_REMOTE.format(text=remote))
    settings = _settings(config, cache_directory)
    print(mirror_path(locator.normalized_url, branch, settings.cache_directory))


def main(argv: list[str] | tuple[str, ...] | None = None) -> int:
    """Entry point for the branchmirror CLI."""
    try:
        result = app(argv)
    except BranchMirrorError as error:
        print(f"branchmirror: {error}", file=sys.stderr)
        return 1
    return int(result or 0)


if __name__ == "__main__":
    raise SystemExit(main())
