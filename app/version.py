from __future__ import annotations

"""Application version helpers."""

from functools import lru_cache
import logging
import os
import subprocess
from importlib import resources

from services.update.versioning import UNRESOLVED_LABEL, AppVersion, VersionState, parse_version

_VERSION_ENV = "ECHOWAVE_VERSION"
_LOGGER = logging.getLogger(__name__)


def _read_version_file() -> str | None:
    try:
        text = resources.files(__package__).joinpath("VERSION").read_text(encoding="utf-8")
    except (FileNotFoundError, ModuleNotFoundError):
        return None
    return _embedded(text)


def _version_from_env() -> str | None:
    return _embedded(os.environ.get(_VERSION_ENV))


def _version_from_git() -> str | None:
    try:
        output = subprocess.check_output(
            ["git", "describe", "--tags", "--always"],
            stderr=subprocess.DEVNULL,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired):
        return None
    return _embedded(output)


def _embedded(raw: str | None) -> str | None:
    if raw is None:
        return None
    version = _normalize(raw)
    if not version or version == UNRESOLVED_LABEL:
        return None
    return version


def _normalize(raw_version: str) -> str:
    version = raw_version.strip()
    if version.startswith("v"):
        version = version[1:]
    return version


@lru_cache(maxsize=1)
def get_app_version() -> AppVersion:
    """Return the version of the running build.

    The order of precedence is:
    1. The ``ECHOWAVE_VERSION`` environment variable.
    2. The ``VERSION`` file stamped into the package at build time.
    3. ``git describe`` output when running from a source checkout.

    The placeholder ``dev`` never counts as a version.  When nothing usable is
    found the result is unresolved and update checks are skipped.
    """

    for state, resolver in (
        (VersionState.EMBEDDED, _version_from_env),
        (VersionState.EMBEDDED, _read_version_file),
        (VersionState.VCS, _version_from_git),
    ):
        label = resolver()
        if not label:
            continue
        parsed = parse_version(label)
        if parsed is None:
            _LOGGER.debug("Ignoring unparseable version %r", label)
            continue
        return AppVersion(state, label, parsed)
    return AppVersion.unresolved()


__all__ = ["get_app_version"]
