"""Data models used by the update service."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Tuple

from services.update.versioning import Version, parse_version


@dataclass(frozen=True)
class AssetDescriptor:
    """A downloadable file attached to a published release."""

    name: str
    download_url: str


@dataclass(frozen=True)
class ReleaseDescriptor:
    """Metadata for the newest published release."""

    tag_name: str
    assets: Tuple[AssetDescriptor, ...] = ()

    @property
    def version(self) -> Version | None:
        return parse_version(self.tag_name)


@dataclass(frozen=True)
class PlatformTarget:
    """Asset naming rules for one operating system and architecture."""

    fragment: str
    executable_suffix: str = ""


@dataclass(frozen=True)
class ExecutablePayload:
    """Executable bytes pulled out of a release archive."""

    name: str
    data: bytes
    mode: int = 0o755


class ContainerKind(str, Enum):
    """Archive formats release assets are published in."""

    TAR_GZ = "tar.gz"
    ZIP = "zip"


class UpdateStatus(str, Enum):
    """Final state of an explicit update request."""

    UP_TO_DATE = "up_to_date"
    UNRESOLVED_VERSION = "unresolved_version"
    INSTALLED = "installed"
    SCHEDULED = "scheduled"


@dataclass(frozen=True)
class UpdatePlan:
    """Everything needed to carry out a single update attempt."""

    current_version: str
    target_version: str
    asset: AssetDescriptor
    container_kind: ContainerKind
    staging_path: Path
    install_path: Path
    executable_suffix: str = ""

    @property
    def download_url(self) -> str:
        return self.asset.download_url


@dataclass(frozen=True)
class UpdateOutcome:
    """Result reported by :meth:`UpdateService.apply_update`."""

    status: UpdateStatus
    current_version: str
    target_version: str | None = None


class UpdateError(RuntimeError):
    """Raised when an update cannot be fetched, unpacked or installed."""


class NetworkError(UpdateError):
    """The release feed or an asset download could not be retrieved."""


class ParseError(UpdateError):
    """The release feed returned a body that could not be understood."""


class UnsupportedPlatformError(UpdateError):
    """No release artifacts are published for this OS and architecture."""


class AssetNotFoundError(UpdateError):
    """The release carries no asset for the current platform."""


class ExtractionError(UpdateError):
    """The downloaded archive did not yield an executable."""


class InstallError(UpdateError):
    """Staging or swapping in the new executable failed."""


class InstallPermissionError(InstallError):
    """The installation directory is not writable by the current user."""

    def __init__(self, message: str, *, suggested_command: str, payload_path: Path | None = None) -> None:
        super().__init__(message)
        self.suggested_command = suggested_command
        self.payload_path = payload_path


__all__ = [
    "AssetDescriptor",
    "AssetNotFoundError",
    "ContainerKind",
    "ExecutablePayload",
    "ExtractionError",
    "InstallError",
    "InstallPermissionError",
    "NetworkError",
    "ParseError",
    "PlatformTarget",
    "ReleaseDescriptor",
    "UnsupportedPlatformError",
    "UpdateError",
    "UpdateOutcome",
    "UpdatePlan",
    "UpdateStatus",
]
