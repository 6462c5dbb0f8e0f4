"""Map the host platform onto the matching release asset."""

from __future__ import annotations

import logging
import platform
from typing import Mapping

from services.update.models import AssetDescriptor, PlatformTarget, ReleaseDescriptor


_LOGGER = logging.getLogger(__name__)

__all__ = [
    "PLATFORM_TARGETS",
    "current_platform",
    "normalise_arch",
    "normalise_os",
    "resolve_platform_target",
    "select_asset",
]

ANY_ARCH = "*"

# ``{arch}`` is filled in with the normalised architecture for wildcard rows.
PLATFORM_TARGETS: Mapping[tuple[str, str], PlatformTarget] = {
    ("darwin", "amd64"): PlatformTarget("macos-intel"),
    ("darwin", "arm64"): PlatformTarget("macos-arm64"),
    ("linux", ANY_ARCH): PlatformTarget("linux-{arch}"),
    ("windows", ANY_ARCH): PlatformTarget("windows-{arch}", executable_suffix=".exe"),
}

_OS_ALIASES = {
    "darwin": "darwin",
    "macos": "darwin",
    "mac": "darwin",
    "linux": "linux",
    "windows": "windows",
    "win32": "windows",
}

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv8": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "386": "386",
}


def normalise_os(name: str) -> str:
    lowered = name.strip().lower()
    return _OS_ALIASES.get(lowered, lowered)


def normalise_arch(name: str) -> str:
    lowered = name.strip().lower()
    return _ARCH_ALIASES.get(lowered, lowered)


def current_platform() -> tuple[str, str]:
    """Return the normalised ``(os, arch)`` pair of the running interpreter."""

    return normalise_os(platform.system()), normalise_arch(platform.machine())


def resolve_platform_target(os_name: str, arch: str) -> PlatformTarget | None:
    """Look up the asset naming rule for ``os_name``/``arch``."""

    os_key = normalise_os(os_name)
    arch_key = normalise_arch(arch)
    target = PLATFORM_TARGETS.get((os_key, arch_key))
    if target is None:
        target = PLATFORM_TARGETS.get((os_key, ANY_ARCH))
    if target is None:
        _LOGGER.debug("No release artifacts are mapped for %s/%s", os_key, arch_key)
        return None
    return PlatformTarget(
        fragment=target.fragment.format(arch=arch_key),
        executable_suffix=target.executable_suffix,
    )


def select_asset(release: ReleaseDescriptor, os_name: str, arch: str) -> AssetDescriptor | None:
    """Return the first asset of ``release`` built for ``os_name``/``arch``."""

    target = resolve_platform_target(os_name, arch)
    if target is None:
        return None
    for asset in release.assets:
        if target.fragment in asset.name:
            _LOGGER.debug("Selected release asset %s for fragment %s", asset.name, target.fragment)
            return asset
    _LOGGER.debug(
        "Release %s has no asset matching %s (assets: %s)",
        release.tag_name,
        target.fragment,
        ", ".join(asset.name for asset in release.assets) or "none",
    )
    return None
