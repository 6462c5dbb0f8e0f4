"""Release provider implementations."""

from __future__ import annotations

import json
import logging
from http.client import HTTPException
from pathlib import Path
from typing import Any, Protocol
from urllib.error import URLError
from urllib.request import Request, urlopen

from services.update.constants import API_URL, UPDATE_COMMAND_TIMEOUT, USER_AGENT
from services.update.models import AssetDescriptor, NetworkError, ParseError, ReleaseDescriptor


_LOGGER = logging.getLogger(__name__)


class ReleaseProvider(Protocol):
    """Protocol describing release metadata providers."""

    def fetch_latest(self, timeout: float = UPDATE_COMMAND_TIMEOUT) -> ReleaseDescriptor:
        """Return the newest published release.

        Raises :class:`NetworkError` or :class:`ParseError` on failure.
        """


class GitHubReleaseProvider:
    """Fetch release metadata from the GitHub Releases API."""

    def __init__(self, api_url: str = API_URL, *, user_agent: str = USER_AGENT) -> None:
        self._api_url = api_url
        self._user_agent = user_agent

    @property
    def api_url(self) -> str:
        return self._api_url

    def fetch_latest(self, timeout: float = UPDATE_COMMAND_TIMEOUT) -> ReleaseDescriptor:
        _LOGGER.debug("Querying %s (timeout=%ss)", self._api_url, timeout)
        try:
            request = Request(
                self._api_url,
                headers={
                    "Accept": "application/vnd.github+json",
                    "User-Agent": self._user_agent,
                },
            )
            with urlopen(request, timeout=timeout) as response:  # nosec - GitHub API over HTTPS
                status = getattr(response, "status", None)
                if status is not None and status != 200:
                    raise NetworkError(f"Release feed returned HTTP status {status}")
                body = response.read()
        except ValueError as exc:
            raise NetworkError(f"Invalid release feed URL {self._api_url!r}: {exc}") from exc
        except (OSError, URLError, HTTPException) as exc:
            # HTTPError (non-2xx) and socket timeouts both land here.
            raise NetworkError(f"Failed to query release feed: {exc}") from exc

        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ParseError(f"Release feed returned malformed JSON: {exc}") from exc

        release = parse_release_payload(payload)
        _LOGGER.info(
            "Latest published release is %s with %d asset(s)",
            release.tag_name,
            len(release.assets),
        )
        return release


class LocalFolderReleaseProvider:
    """Serve release metadata from a local directory for testing.

    The folder holds a ``release.json`` shaped like the GitHub payload.  Asset
    locations that are not URLs are resolved against the folder.
    """

    def __init__(self, folder: Path) -> None:
        self._folder = Path(folder)

    def fetch_latest(self, timeout: float = UPDATE_COMMAND_TIMEOUT) -> ReleaseDescriptor:
        metadata_path = self._folder / "release.json"
        try:
            raw = metadata_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise NetworkError(f"Local release metadata unavailable: {exc}") from exc
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Local release metadata is malformed: {exc}") from exc

        if isinstance(payload, dict) and isinstance(payload.get("assets"), list):
            payload = {
                **payload,
                "assets": [self._localise_asset(asset) for asset in payload["assets"]],
            }
        release = parse_release_payload(payload)
        _LOGGER.info("Local release %s served from %s", release.tag_name, self._folder)
        return release

    def _localise_asset(self, asset: Any) -> Any:
        if not isinstance(asset, dict):
            return asset
        location = asset.get("browser_download_url")
        if not isinstance(location, str) or "://" in location:
            return asset
        return {**asset, "browser_download_url": (self._folder / location).resolve().as_uri()}


def parse_release_payload(payload: Any) -> ReleaseDescriptor:
    """Build a :class:`ReleaseDescriptor` from a decoded release document."""

    if not isinstance(payload, dict):
        raise ParseError("Release feed did not return a JSON object")

    tag_name = payload.get("tag_name")
    if not isinstance(tag_name, str) or not tag_name.strip():
        raise ParseError("Release feed response is missing 'tag_name'")

    raw_assets = payload.get("assets")
    if raw_assets is None:
        raw_assets = []
    if not isinstance(raw_assets, list):
        raise ParseError("Release feed 'assets' is not a list")

    assets: list[AssetDescriptor] = []
    for index, entry in enumerate(raw_assets):
        if not isinstance(entry, dict):
            raise ParseError(f"Release asset #{index} is not an object")
        name = entry.get("name")
        url = entry.get("browser_download_url")
        if not isinstance(name, str) or not isinstance(url, str):
            raise ParseError(f"Release asset #{index} is missing a name or download URL")
        assets.append(AssetDescriptor(name=name, download_url=url))

    return ReleaseDescriptor(tag_name=tag_name.strip(), assets=tuple(assets))


__all__ = [
    "GitHubReleaseProvider",
    "LocalFolderReleaseProvider",
    "ReleaseProvider",
    "parse_release_payload",
]
