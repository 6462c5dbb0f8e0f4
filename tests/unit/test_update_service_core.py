from __future__ import annotations

import logging
from pathlib import Path

import pytest

from services.update import (
    AppVersion,
    AssetDescriptor,
    AssetNotFoundError,
    BinaryInstaller,
    ContainerKind,
    ExtractionError,
    FinalizeResult,
    GitHubReleaseProvider,
    NetworkError,
    ParseError,
    UnsupportedPlatformError,
    UpdateService,
    UpdateStatus,
)
from tests.unit.update_service_test_utils import (
    RecordingFinalizer,
    StaticReleaseProvider,
    app_version,
    build_tar_gz,
    build_zip,
    install_target,
    release_with,
)


_LINUX_ASSETS = (
    "echowave-linux-amd64.tar.gz",
    "echowave-macos-arm64.tar.gz",
    "echowave-macos-intel.tar.gz",
)


class RecordingDownloader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.calls: list[tuple[AssetDescriptor, float]] = []

    def __call__(self, asset: AssetDescriptor, timeout: float) -> bytes:
        self.calls.append((asset, timeout))
        return self.data


def _make_service(
    provider: StaticReleaseProvider,
    *,
    current: AppVersion,
    executable: Path | None = None,
    platform: tuple[str, str] = ("linux", "amd64"),
    downloader: RecordingDownloader | None = None,
    finalizer: RecordingFinalizer | None = None,
) -> UpdateService:
    def resolve() -> Path:
        assert executable is not None, "executable path should not be needed"
        return executable

    return UpdateService(
        provider,
        BinaryInstaller(finalizer or RecordingFinalizer(), platform=platform[0]),
        current_version=current,
        executable_resolver=resolve,
        platform=platform,
        downloader=downloader or RecordingDownloader(b""),
        download_timeout=45.0,
    )


def test_check_for_update_reports_newer_release() -> None:
    provider = StaticReleaseProvider(release_with("v1.3.0", *_LINUX_ASSETS))
    service = _make_service(provider, current=app_version("1.2.0"))

    release = service.check_for_update(timeout=3.0)

    assert release is not None
    assert release.tag_name == "v1.3.0"
    assert provider.timeouts == [3.0]


@pytest.mark.parametrize("current", ["2.0.0", "2.1.0"])
def test_check_for_update_ignores_same_or_older_release(current: str) -> None:
    provider = StaticReleaseProvider(release_with("v2.0.0", *_LINUX_ASSETS))
    service = _make_service(provider, current=app_version(current))

    assert service.check_for_update() is None


def test_check_for_update_skips_network_for_unresolved_build() -> None:
    provider = StaticReleaseProvider(release_with("v9.0.0", *_LINUX_ASSETS))
    service = _make_service(provider, current=AppVersion.unresolved())

    assert service.check_for_update() is None
    assert provider.timeouts == []


@pytest.mark.parametrize(
    "error",
    [NetworkError("connection refused"), ParseError("bad JSON")],
)
def test_check_for_update_swallows_feed_errors(
    error: Exception, caplog: pytest.LogCaptureFixture
) -> None:
    provider = StaticReleaseProvider(error=error)
    service = _make_service(provider, current=app_version("1.2.0"))

    with caplog.at_level(logging.DEBUG, logger="services.update.service"):
        assert service.check_for_update() is None

    assert "Failed to check for updates" in caplog.text


def test_check_for_update_treats_malformed_feed_url_as_no_update() -> None:
    service = UpdateService(
        GitHubReleaseProvider(api_url="not a url"),
        BinaryInstaller(RecordingFinalizer(), platform="linux"),
        current_version=app_version("1.2.0"),
        executable_resolver=lambda: Path("/unused"),
        platform=("linux", "amd64"),
    )

    assert service.check_for_update(timeout=1.0) is None
    with pytest.raises(NetworkError, match="Invalid release feed URL"):
        service.apply_update(timeout=1.0)


def test_apply_update_installs_newer_tar_release(tmp_path: Path) -> None:
    executable = install_target(tmp_path, b"echowave-1.2.0")
    downloader = RecordingDownloader(build_tar_gz({"echowave": b"echowave-1.3.0"}))
    finalizer = RecordingFinalizer()
    provider = StaticReleaseProvider(release_with("v1.3.0", *_LINUX_ASSETS))
    service = _make_service(
        provider,
        current=app_version("1.2.0"),
        executable=executable,
        downloader=downloader,
        finalizer=finalizer,
    )
    progress: list[str] = []

    outcome = service.apply_update(timeout=30.0, on_progress=progress.append)

    assert outcome.status is UpdateStatus.INSTALLED
    assert outcome.current_version == "1.2.0"
    assert outcome.target_version == "v1.3.0"
    assert executable.read_bytes() == b"echowave-1.3.0"
    assert [asset.name for asset, _ in downloader.calls] == ["echowave-linux-amd64.tar.gz"]
    assert downloader.calls[0][1] == 45.0
    assert provider.timeouts == [30.0]
    assert progress == ["Updating from v1.2.0 to v1.3.0", "Downloading...", "Installing..."]


def test_apply_update_schedules_windows_replacement(tmp_path: Path) -> None:
    executable = install_target(tmp_path)
    downloader = RecordingDownloader(build_zip({"README.txt": b"docs", "echowave.exe": b"MZ-new"}))
    provider = StaticReleaseProvider(
        release_with("v1.3.0", "echowave-linux-amd64.tar.gz", "echowave-windows-amd64.zip")
    )
    service = _make_service(
        provider,
        current=app_version("1.2.0"),
        executable=executable,
        platform=("windows", "amd64"),
        downloader=downloader,
        finalizer=RecordingFinalizer(FinalizeResult.SCHEDULED),
    )

    outcome = service.apply_update()

    assert outcome.status is UpdateStatus.SCHEDULED
    assert [asset.name for asset, _ in downloader.calls] == ["echowave-windows-amd64.zip"]


def test_apply_update_reports_up_to_date_without_downloading() -> None:
    downloader = RecordingDownloader(b"unused")
    provider = StaticReleaseProvider(release_with("v2.0.0", *_LINUX_ASSETS))
    service = _make_service(provider, current=app_version("2.0.0"), downloader=downloader)

    outcome = service.apply_update()

    assert outcome.status is UpdateStatus.UP_TO_DATE
    assert outcome.current_version == "2.0.0"
    assert downloader.calls == []


def test_apply_update_skips_unresolved_build() -> None:
    downloader = RecordingDownloader(b"unused")
    provider = StaticReleaseProvider(release_with("v9.0.0", *_LINUX_ASSETS))
    service = _make_service(provider, current=AppVersion.unresolved(), downloader=downloader)

    outcome = service.apply_update()

    assert outcome.status is UpdateStatus.UNRESOLVED_VERSION
    assert outcome.current_version == "dev"
    assert provider.timeouts == []
    assert downloader.calls == []


def test_apply_update_propagates_feed_errors() -> None:
    provider = StaticReleaseProvider(error=NetworkError("HTTP 503"))
    service = _make_service(provider, current=app_version("1.2.0"))

    with pytest.raises(NetworkError, match="503"):
        service.apply_update()


def test_apply_update_fails_when_platform_asset_missing(tmp_path: Path) -> None:
    executable = install_target(tmp_path, b"original")
    downloader = RecordingDownloader(b"unused")
    provider = StaticReleaseProvider(
        release_with("v1.3.0", "echowave-linux-amd64.tar.gz", "echowave-macos-arm64.tar.gz")
    )
    service = _make_service(
        provider,
        current=app_version("1.2.0"),
        executable=executable,
        platform=("windows", "amd64"),
        downloader=downloader,
    )

    with pytest.raises(AssetNotFoundError, match="windows/amd64"):
        service.apply_update()

    assert downloader.calls == []
    assert executable.read_bytes() == b"original"


def test_apply_update_fails_for_unsupported_platform() -> None:
    provider = StaticReleaseProvider(release_with("v1.3.0", *_LINUX_ASSETS))
    service = _make_service(provider, current=app_version("1.2.0"), platform=("freebsd", "amd64"))

    with pytest.raises(UnsupportedPlatformError, match="freebsd/amd64"):
        service.apply_update()


def test_apply_update_rejects_unknown_container(tmp_path: Path) -> None:
    provider = StaticReleaseProvider(release_with("v1.3.0", "echowave-linux-amd64.rpm"))
    downloader = RecordingDownloader(b"unused")
    service = _make_service(
        provider,
        current=app_version("1.2.0"),
        executable=install_target(tmp_path),
        downloader=downloader,
    )

    with pytest.raises(ExtractionError, match="Unsupported archive format"):
        service.apply_update()

    assert downloader.calls == []


def test_apply_update_keeps_original_when_archive_is_empty(tmp_path: Path) -> None:
    executable = install_target(tmp_path, b"original")
    provider = StaticReleaseProvider(release_with("v1.3.0", *_LINUX_ASSETS))
    service = _make_service(
        provider,
        current=app_version("1.2.0"),
        executable=executable,
        downloader=RecordingDownloader(build_tar_gz({}, directories=("echowave",))),
    )

    with pytest.raises(ExtractionError, match="No binary found"):
        service.apply_update()

    assert executable.read_bytes() == b"original"
    assert sorted(path.name for path in executable.parent.iterdir()) == ["echowave"]


def test_plan_update_resolves_asset_and_paths(tmp_path: Path) -> None:
    executable = install_target(tmp_path)
    provider = StaticReleaseProvider()
    service = _make_service(provider, current=app_version("1.2.0"), executable=executable)

    plan = service.plan_update(release_with("v1.3.0", *_LINUX_ASSETS))

    assert plan.current_version == "1.2.0"
    assert plan.target_version == "v1.3.0"
    assert plan.asset.name == "echowave-linux-amd64.tar.gz"
    assert plan.container_kind is ContainerKind.TAR_GZ
    assert plan.install_path == executable
    assert plan.staging_path == executable.with_name("echowave.new")
    assert plan.download_url.endswith("/v1.3.0/echowave-linux-amd64.tar.gz")


def test_apply_update_stages_next_to_install_path(tmp_path: Path) -> None:
    executable = install_target(tmp_path, b"echowave-1.2.0")
    finalizer = RecordingFinalizer()
    service = _make_service(
        StaticReleaseProvider(release_with("v1.3.0", *_LINUX_ASSETS)),
        current=app_version("1.2.0"),
        executable=executable,
        downloader=RecordingDownloader(build_tar_gz({"echowave": b"echowave-1.3.0"})),
        finalizer=finalizer,
    )

    service.apply_update()

    assert finalizer.calls == [(executable.with_name("echowave.new"), executable)]


def test_apply_update_keeps_single_prefix_for_tagged_build(tmp_path: Path) -> None:
    service = _make_service(
        StaticReleaseProvider(release_with("v1.3.0", *_LINUX_ASSETS)),
        current=app_version("v1.2.0"),
        executable=install_target(tmp_path),
        downloader=RecordingDownloader(build_tar_gz({"echowave": b"echowave-1.3.0"})),
    )
    progress: list[str] = []

    service.apply_update(on_progress=progress.append)

    assert progress[0] == "Updating from v1.2.0 to v1.3.0"


def test_apply_update_rejects_windows_archive_without_exe(tmp_path: Path) -> None:
    executable = install_target(tmp_path, b"MZ-original")
    finalizer = RecordingFinalizer()
    service = _make_service(
        StaticReleaseProvider(release_with("v1.3.0", "echowave-windows-amd64.zip")),
        current=app_version("1.2.0"),
        executable=executable,
        platform=("windows", "amd64"),
        downloader=RecordingDownloader(build_zip({"echowave": b"not-a-windows-binary"})),
        finalizer=finalizer,
    )

    with pytest.raises(ExtractionError, match=r"does not contain a \.exe executable"):
        service.apply_update()

    assert finalizer.calls == []
    assert executable.read_bytes() == b"MZ-original"


def test_plan_update_carries_platform_executable_suffix(tmp_path: Path) -> None:
    service = _make_service(
        StaticReleaseProvider(),
        current=app_version("1.2.0"),
        executable=install_target(tmp_path),
        platform=("windows", "amd64"),
    )

    plan = service.plan_update(release_with("v1.3.0", "echowave-windows-amd64.zip"))

    assert plan.executable_suffix == ".exe"
