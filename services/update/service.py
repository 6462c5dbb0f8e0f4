"""Service responsible for discovering and installing updates."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from services.update.archive import extract_executable
from services.update.constants import (
    DOWNLOAD_TIMEOUT,
    STARTUP_CHECK_TIMEOUT,
    UPDATE_COMMAND_TIMEOUT,
)
from services.update.installers import BinaryInstaller, FinalizeResult, staging_path_for
from services.update.models import (
    AssetDescriptor,
    AssetNotFoundError,
    ExtractionError,
    ReleaseDescriptor,
    UnsupportedPlatformError,
    UpdateError,
    UpdateOutcome,
    UpdatePlan,
    UpdateStatus,
)
from services.update.platforms import current_platform, resolve_platform_target, select_asset
from services.update.providers import ReleaseProvider
from services.update.release_assets import container_kind_for, download_asset
from services.update.versioning import AppVersion, is_version_newer


_LOGGER = logging.getLogger(__name__)

Downloader = Callable[[AssetDescriptor, float], bytes]


class UpdateService:
    """Coordinate release discovery, download and installation."""

    def __init__(
        self,
        provider: ReleaseProvider,
        installer: BinaryInstaller,
        *,
        current_version: AppVersion,
        executable_resolver: Callable[[], Path],
        platform: tuple[str, str] | None = None,
        downloader: Downloader = download_asset,
        download_timeout: float = DOWNLOAD_TIMEOUT,
    ) -> None:
        self._provider = provider
        self._installer = installer
        self._current_version = current_version
        self._executable_resolver = executable_resolver
        self._platform = platform or current_platform()
        self._downloader = downloader
        self._download_timeout = download_timeout

    @property
    def current_version(self) -> AppVersion:
        return self._current_version

    def check_for_update(self, timeout: float = STARTUP_CHECK_TIMEOUT) -> ReleaseDescriptor | None:
        """Return the latest release when it is newer than the running build.

        Never raises: any failure is logged and treated as "no update".
        """

        if not self._current_version.is_resolved:
            _LOGGER.debug("Skipping update check for unresolved build version")
            return None

        try:
            release = self._provider.fetch_latest(timeout)
        except UpdateError as exc:
            _LOGGER.debug("Failed to check for updates: %s", exc)
            return None

        if not is_version_newer(release.tag_name, self._current_version):
            _LOGGER.debug(
                "Current version %s is up to date (latest %s)",
                self._current_version.label,
                release.tag_name,
            )
            return None

        _LOGGER.info("Update available: %s -> %s", self._current_version.label, release.tag_name)
        return release

    def apply_update(
        self,
        timeout: float = UPDATE_COMMAND_TIMEOUT,
        *,
        on_progress: Callable[[str], None] | None = None,
    ) -> UpdateOutcome:
        """Download and install the newest release.

        Raises an :class:`UpdateError` subclass describing the failing step.
        """

        current_label = self._current_version.label
        if not self._current_version.is_resolved:
            _LOGGER.info("Development build; self-update is unavailable")
            return UpdateOutcome(UpdateStatus.UNRESOLVED_VERSION, current_label)

        release = self._provider.fetch_latest(timeout)
        if not is_version_newer(release.tag_name, self._current_version):
            _LOGGER.info("Already up to date at %s (latest %s)", current_label, release.tag_name)
            return UpdateOutcome(UpdateStatus.UP_TO_DATE, current_label, release.tag_name)

        _notify(on_progress, f"Updating from {self._current_version.display} to {release.tag_name}")
        plan = self.plan_update(release)

        _notify(on_progress, "Downloading...")
        data = self._downloader(plan.asset, self._download_timeout)
        payload = extract_executable(data, plan.container_kind)
        if plan.executable_suffix and not payload.name.lower().endswith(plan.executable_suffix):
            raise ExtractionError(
                f"{plan.asset.name} does not contain a {plan.executable_suffix} executable"
                f" (found {payload.name})"
            )

        _notify(on_progress, "Installing...")
        result = self._installer.install(payload, plan.install_path, staging_path=plan.staging_path)
        status = UpdateStatus.INSTALLED if result is FinalizeResult.COMPLETED else UpdateStatus.SCHEDULED
        _LOGGER.info("Update to %s finished with status %s", release.tag_name, status.value)
        return UpdateOutcome(status, current_label, release.tag_name)

    def plan_update(self, release: ReleaseDescriptor) -> UpdatePlan:
        """Resolve the asset and paths for installing ``release``."""

        os_name, arch = self._platform
        target = resolve_platform_target(os_name, arch)
        if target is None:
            raise UnsupportedPlatformError(f"No EchoWave builds are published for {os_name}/{arch}")

        asset = select_asset(release, os_name, arch)
        if asset is None:
            raise AssetNotFoundError(f"Release {release.tag_name} has no asset for {os_name}/{arch}")
        container_kind = container_kind_for(asset.name)
        if container_kind is None:
            raise ExtractionError(f"Unsupported archive format for asset {asset.name}")

        install_path = self._executable_resolver()
        plan = UpdatePlan(
            current_version=self._current_version.label,
            target_version=release.tag_name,
            asset=asset,
            container_kind=container_kind,
            staging_path=staging_path_for(install_path),
            install_path=install_path,
            executable_suffix=target.executable_suffix,
        )
        _LOGGER.debug(
            "Update plan: %s -> %s using %s (stage=%s, target=%s)",
            plan.current_version,
            plan.target_version,
            plan.download_url,
            plan.staging_path,
            plan.install_path,
        )
        return plan


def _notify(callback: Callable[[str], None] | None, message: str) -> None:
    if callback is not None:
        callback(message)


__all__ = ["UpdateService"]
