from __future__ import annotations

import pytest

from services.update.models import PlatformTarget
from services.update.platforms import (
    current_platform,
    normalise_arch,
    normalise_os,
    resolve_platform_target,
    select_asset,
)
from tests.unit.update_service_test_utils import release_with


_ALL_ASSETS = (
    "echowave-linux-amd64.tar.gz",
    "echowave-linux-arm64.tar.gz",
    "echowave-macos-intel.tar.gz",
    "echowave-macos-arm64.tar.gz",
    "echowave-windows-amd64.zip",
)


@pytest.mark.parametrize(
    ("os_name", "arch", "expected"),
    [
        ("darwin", "amd64", PlatformTarget("macos-intel")),
        ("darwin", "arm64", PlatformTarget("macos-arm64")),
        ("linux", "amd64", PlatformTarget("linux-amd64")),
        ("linux", "arm64", PlatformTarget("linux-arm64")),
        ("linux", "386", PlatformTarget("linux-386")),
        ("windows", "amd64", PlatformTarget("windows-amd64", ".exe")),
        ("windows", "arm64", PlatformTarget("windows-arm64", ".exe")),
    ],
)
def test_resolve_platform_target_maps_supported_platforms(
    os_name: str, arch: str, expected: PlatformTarget
) -> None:
    assert resolve_platform_target(os_name, arch) == expected


def test_resolve_platform_target_normalises_host_names() -> None:
    assert resolve_platform_target("Linux", "x86_64") == PlatformTarget("linux-amd64")
    assert resolve_platform_target("Darwin", "aarch64") == PlatformTarget("macos-arm64")
    assert resolve_platform_target("Windows", "AMD64") == PlatformTarget("windows-amd64", ".exe")


@pytest.mark.parametrize(("os_name", "arch"), [("freebsd", "amd64"), ("darwin", "386")])
def test_resolve_platform_target_returns_none_for_unmapped_platforms(os_name: str, arch: str) -> None:
    assert resolve_platform_target(os_name, arch) is None


@pytest.mark.parametrize(
    ("os_name", "arch", "expected"),
    [
        ("linux", "amd64", "echowave-linux-amd64.tar.gz"),
        ("linux", "arm64", "echowave-linux-arm64.tar.gz"),
        ("darwin", "amd64", "echowave-macos-intel.tar.gz"),
        ("darwin", "arm64", "echowave-macos-arm64.tar.gz"),
        ("windows", "amd64", "echowave-windows-amd64.zip"),
    ],
)
def test_select_asset_picks_matching_asset(os_name: str, arch: str, expected: str) -> None:
    release = release_with("v1.3.0", *_ALL_ASSETS)

    asset = select_asset(release, os_name, arch)

    assert asset is not None
    assert asset.name == expected


def test_select_asset_returns_none_when_platform_asset_missing() -> None:
    release = release_with(
        "v1.3.0",
        "echowave-linux-amd64.tar.gz",
        "echowave-macos-arm64.tar.gz",
    )

    assert select_asset(release, "windows", "amd64") is None


def test_select_asset_returns_none_for_unsupported_platform() -> None:
    release = release_with("v1.3.0", *_ALL_ASSETS)

    assert select_asset(release, "plan9", "amd64") is None


def test_select_asset_returns_first_match_deterministically() -> None:
    release = release_with(
        "v1.3.0",
        "echowave-linux-amd64.tar.gz",
        "echowave-linux-amd64-debug.tar.gz",
    )

    first = select_asset(release, "linux", "amd64")
    second = select_asset(release, "linux", "amd64")

    assert first is not None
    assert first == second
    assert first.name == "echowave-linux-amd64.tar.gz"


def test_select_asset_handles_release_without_assets() -> None:
    assert select_asset(release_with("v1.3.0"), "linux", "amd64") is None


def test_normalise_helpers_map_aliases() -> None:
    assert normalise_os("macOS") == "darwin"
    assert normalise_os("Win32") == "windows"
    assert normalise_arch("x86_64") == "amd64"
    assert normalise_arch("i686") == "386"
    assert normalise_arch("riscv64") == "riscv64"


def test_current_platform_uses_platform_module(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("services.update.platforms.platform.system", lambda: "Darwin")
    monkeypatch.setattr("services.update.platforms.platform.machine", lambda: "arm64")

    assert current_platform() == ("darwin", "arm64")
