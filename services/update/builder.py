"""Helpers for constructing the update service and running its workflows."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import NoReturn, Protocol

from app.config import UpdateConfig, get_update_config
from app.version import get_app_version
from services.update.constants import (
    API_URL_ENV,
    DISABLE_CHECK_ENV,
    EXECUTABLE_OVERRIDE_ENV,
    LOCAL_RELEASE_ENV,
)
from services.update.installers import BinaryInstaller
from services.update.models import (
    AssetNotFoundError,
    ExtractionError,
    InstallError,
    InstallPermissionError,
    NetworkError,
    ParseError,
    UnsupportedPlatformError,
    UpdateError,
    UpdateStatus,
)
from services.update.providers import GitHubReleaseProvider, LocalFolderReleaseProvider, ReleaseProvider
from services.update.service import UpdateService


_LOGGER = logging.getLogger(__name__)


class UpdateReporter(Protocol):
    """Console surface the update workflows write to."""

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def command(self, message: str) -> None: ...

    def fatal(self, message: str) -> NoReturn: ...


def _build_provider_from_env(config: UpdateConfig) -> ReleaseProvider:
    local_dir = os.environ.get(LOCAL_RELEASE_ENV)
    if local_dir:
        folder = Path(local_dir).expanduser()
        if folder.exists():
            _LOGGER.info("Using local update source at %s", folder)
            return LocalFolderReleaseProvider(folder)
        _LOGGER.warning("Configured local update directory does not exist: %s", folder)
    api_url = os.environ.get(API_URL_ENV) or config.api_url
    return GitHubReleaseProvider(api_url)


def resolve_executable_path() -> Path:
    """Return the on-disk path of the running EchoWave binary."""

    override = os.environ.get(EXECUTABLE_OVERRIDE_ENV)
    if override:
        return Path(override).expanduser().resolve()
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve()
    raise InstallError("Automatic updates require a packaged EchoWave build")


def build_update_service(
    installer: BinaryInstaller | None = None,
    *,
    config: UpdateConfig | None = None,
) -> UpdateService:
    """Construct an :class:`UpdateService` for the current environment."""

    config = config or get_update_config()
    return UpdateService(
        _build_provider_from_env(config),
        installer or BinaryInstaller(),
        current_version=get_app_version(),
        executable_resolver=resolve_executable_path,
        download_timeout=config.download_timeout,
    )


def update_check_enabled(config: UpdateConfig | None = None) -> bool:
    if os.environ.get(DISABLE_CHECK_ENV) == "1":
        return False
    config = config or get_update_config()
    return config.check_on_startup


def run_startup_update_check(
    reporter: UpdateReporter,
    service: UpdateService | None = None,
    *,
    config: UpdateConfig | None = None,
) -> bool:
    """Tell the user about a newer release without interrupting the run.

    Returns ``True`` when a notice was printed.
    """

    config = config or get_update_config()
    if not update_check_enabled(config):
        _LOGGER.debug("Startup update check disabled")
        return False

    try:
        service = service or build_update_service(config=config)
        release = service.check_for_update(config.startup_timeout)
    except Exception:  # pragma: no cover
        _LOGGER.exception("Unexpected error while checking for updates")
        return False
    if release is None:
        return False

    reporter.info(f"Update available: {service.current_version.display} -> {release.tag_name}")
    reporter.command("Run 'echowave update' to update")
    return True


def run_update_command(
    reporter: UpdateReporter,
    service: UpdateService | None = None,
    *,
    config: UpdateConfig | None = None,
) -> UpdateStatus:
    """Run an explicit update, terminating through ``reporter.fatal`` on failure."""

    config = config or get_update_config()
    service = service or build_update_service(config=config)
    reporter.info("Checking for updates...")

    try:
        outcome = service.apply_update(config.command_timeout, on_progress=reporter.info)
    except InstallPermissionError as exc:
        _LOGGER.warning("Update blocked by permissions: %s", exc)
        reporter.warning("Root privileges required for installation")
        reporter.info("Please run the following command:")
        reporter.command(exc.suggested_command)
        reporter.fatal(f"Failed to install update: {exc}")
    except UpdateError as exc:
        _LOGGER.error("Update failed: %s", exc)
        reporter.fatal(f"{_describe_failure(exc)}: {exc}")

    if outcome.status is UpdateStatus.UNRESOLVED_VERSION:
        reporter.warning("Development version - updates not available")
    elif outcome.status is UpdateStatus.UP_TO_DATE:
        reporter.success(f"Already up to date: {service.current_version.display}")
    elif outcome.status is UpdateStatus.SCHEDULED:
        reporter.success(f"Updated to {outcome.target_version}")
        reporter.info("The new version will be in place once EchoWave exits")
    else:
        reporter.success(f"Updated to {outcome.target_version}")
    return outcome.status


_FAILURE_TITLES: tuple[tuple[type[UpdateError], str], ...] = (
    (NetworkError, "Network request failed"),
    (ParseError, "Unexpected response from the release feed"),
    (UnsupportedPlatformError, "Unsupported platform"),
    (AssetNotFoundError, "No binary found for your platform"),
    (ExtractionError, "Could not unpack the update"),
    (InstallError, "Failed to install update"),
)


def _describe_failure(exc: UpdateError) -> str:
    for error_type, title in _FAILURE_TITLES:
        if isinstance(exc, error_type):
            return title
    return "Update failed"


__all__ = [
    "UpdateReporter",
    "build_update_service",
    "resolve_executable_path",
    "run_startup_update_check",
    "run_update_command",
    "update_check_enabled",
]
