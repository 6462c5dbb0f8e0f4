"""Public API for the update service package.

The workflow helpers in :mod:`services.update.builder` depend on the
application layer and are imported from there directly.
"""

from __future__ import annotations

from services.update.archive import extract_executable
from services.update.constants import (
    API_URL,
    EXECUTABLE_OVERRIDE_ENV,
    GITHUB_REPO,
    LOCAL_RELEASE_ENV,
    STAGING_SUFFIX,
    WRITE_PROBE_NAME,
)
from services.update.installers import (
    BinaryInstaller,
    DeferredRenameFinalizer,
    FinalizeResult,
    RenameNowFinalizer,
)
from services.update.models import (
    AssetDescriptor,
    AssetNotFoundError,
    ContainerKind,
    ExecutablePayload,
    ExtractionError,
    InstallError,
    InstallPermissionError,
    NetworkError,
    ParseError,
    ReleaseDescriptor,
    UnsupportedPlatformError,
    UpdateError,
    UpdateOutcome,
    UpdatePlan,
    UpdateStatus,
)
from services.update.platforms import resolve_platform_target, select_asset
from services.update.providers import GitHubReleaseProvider, LocalFolderReleaseProvider, ReleaseProvider
from services.update.release_assets import container_kind_for, download_asset
from services.update.service import UpdateService
from services.update.versioning import (
    AppVersion,
    Version,
    VersionState,
    compare_versions,
    is_version_newer,
    parse_version,
)

__all__ = [
    "API_URL",
    "EXECUTABLE_OVERRIDE_ENV",
    "GITHUB_REPO",
    "LOCAL_RELEASE_ENV",
    "STAGING_SUFFIX",
    "WRITE_PROBE_NAME",
    "AppVersion",
    "AssetDescriptor",
    "AssetNotFoundError",
    "BinaryInstaller",
    "ContainerKind",
    "DeferredRenameFinalizer",
    "ExecutablePayload",
    "ExtractionError",
    "FinalizeResult",
    "GitHubReleaseProvider",
    "InstallError",
    "InstallPermissionError",
    "LocalFolderReleaseProvider",
    "NetworkError",
    "ParseError",
    "ReleaseDescriptor",
    "ReleaseProvider",
    "RenameNowFinalizer",
    "UnsupportedPlatformError",
    "UpdateError",
    "UpdateOutcome",
    "UpdatePlan",
    "UpdateService",
    "UpdateStatus",
    "Version",
    "VersionState",
    "compare_versions",
    "container_kind_for",
    "download_asset",
    "extract_executable",
    "is_version_newer",
    "parse_version",
    "resolve_platform_target",
    "select_asset",
]
