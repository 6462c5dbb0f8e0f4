"""Utilities for acquiring release assets."""

from __future__ import annotations

import logging
from http.client import HTTPException
from urllib.error import URLError
from urllib.request import Request, urlopen

from services.update.constants import (
    DOWNLOAD_TIMEOUT,
    MAX_DOWNLOAD_BYTES,
    TAR_GZ_EXTENSIONS,
    USER_AGENT,
    ZIP_EXTENSIONS,
)
from services.update.models import AssetDescriptor, ContainerKind, NetworkError


_LOGGER = logging.getLogger(__name__)

__all__ = ["container_kind_for", "download_asset"]


def container_kind_for(asset_name: str) -> ContainerKind | None:
    """Return the archive format declared by ``asset_name``'s extension."""

    lowered = asset_name.lower()
    if lowered.endswith(TAR_GZ_EXTENSIONS):
        return ContainerKind.TAR_GZ
    if lowered.endswith(ZIP_EXTENSIONS):
        return ContainerKind.ZIP
    return None


def download_asset(asset: AssetDescriptor, timeout: float = DOWNLOAD_TIMEOUT) -> bytes:
    """Download ``asset`` into memory."""

    _LOGGER.info("Downloading %s from %s", asset.name, asset.download_url)
    try:
        request = Request(asset.download_url, headers={"User-Agent": USER_AGENT})
        with urlopen(request, timeout=timeout) as response:  # nosec - HTTPS or local file URL
            status = getattr(response, "status", None)
            if status is not None and status != 200:
                raise NetworkError(f"Download failed with status {status}")
            data = response.read(MAX_DOWNLOAD_BYTES + 1)
    except ValueError as exc:
        raise NetworkError(f"Invalid download URL for {asset.name}: {exc}") from exc
    except (OSError, URLError, HTTPException) as exc:
        raise NetworkError(f"Failed to download {asset.name}: {exc}") from exc

    if len(data) > MAX_DOWNLOAD_BYTES:
        raise NetworkError(f"Download of {asset.name} exceeded {MAX_DOWNLOAD_BYTES} bytes")
    _LOGGER.debug("Downloaded %d bytes for %s", len(data), asset.name)
    return data
