"""Helpers for parsing and comparing release versions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

from packaging.version import InvalidVersion
from packaging.version import Version as _PackagingVersion


__all__ = [
    "AppVersion",
    "Version",
    "VersionState",
    "compare_versions",
    "is_version_newer",
    "parse_version",
]

UNRESOLVED_LABEL = "dev"
_MIN_COMPONENTS = 3
_LEADING_NUMBERS = re.compile(r"(\d+(?:\.\d+)*)")


@dataclass(frozen=True)
class Version:
    """Numeric release identity such as ``1.4.0``."""

    parts: Tuple[int, ...]

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.parts)


class VersionState(str, Enum):
    """Where the running build's version came from."""

    EMBEDDED = "embedded"
    VCS = "vcs"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class AppVersion:
    """Version of the running build.

    ``version`` is ``None`` only when ``state`` is ``UNRESOLVED``; such builds
    never compare as older or newer than a published release.
    """

    state: VersionState
    label: str
    version: Version | None = None

    @classmethod
    def unresolved(cls) -> "AppVersion":
        return cls(VersionState.UNRESOLVED, UNRESOLVED_LABEL)

    @property
    def is_resolved(self) -> bool:
        return self.version is not None

    @property
    def display(self) -> str:
        """Label for user-facing messages, such as ``v1.2.0`` or ``dev``."""

        if self.version is None:
            return self.label
        return f"v{self.version}"


Comparable = Union[Version, AppVersion, str, None]


def parse_version(raw: str | None) -> Version | None:
    """Parse ``raw`` into a :class:`Version`, returning ``None`` when impossible.

    Release tags usually parse as PEP 440 versions (``v1.3.0``). Strings such
    as ``release-2.1`` or ``git describe`` output (``1.2.0-4-gdeadbee``) are
    handled by taking the first dotted run of digits. Missing components are
    treated as zero.
    """

    if raw is None:
        return None
    text = raw.strip()
    if not text or text == UNRESOLVED_LABEL:
        return None

    try:
        parts = _PackagingVersion(text).release
    except InvalidVersion:
        match = _LEADING_NUMBERS.search(text)
        if match is None:
            return None
        parts = tuple(int(token) for token in match.group(1).split("."))

    padded = tuple(parts) + (0,) * max(0, _MIN_COMPONENTS - len(parts))
    return Version(padded)


def compare_versions(candidate: Comparable, reference: Comparable) -> int | None:
    """Return ``1``, ``0`` or ``-1`` for ``candidate`` against ``reference``.

    ``None`` is returned when either side has no usable version.
    """

    left = _coerce(candidate)
    right = _coerce(reference)
    if left is None or right is None:
        return None

    length = max(len(left.parts), len(right.parts))
    for index in range(length):
        lhs = left.parts[index] if index < len(left.parts) else 0
        rhs = right.parts[index] if index < len(right.parts) else 0
        if lhs > rhs:
            return 1
        if lhs < rhs:
            return -1
    return 0


def is_version_newer(candidate: Comparable, reference: Comparable) -> bool:
    """Return ``True`` if ``candidate`` is strictly newer than ``reference``."""

    return compare_versions(candidate, reference) == 1


def _coerce(value: Comparable) -> Version | None:
    if isinstance(value, Version):
        return value
    if isinstance(value, AppVersion):
        return value.version
    if isinstance(value, str):
        return parse_version(value)
    return None
