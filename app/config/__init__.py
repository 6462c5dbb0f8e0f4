"""Application-wide configuration loaded from JSON resources."""

from __future__ import annotations

import json
from dataclasses import dataclass
from importlib import resources
from math import isfinite
from pathlib import Path
from typing import Any, Mapping

from services.update.constants import (
    DOWNLOAD_TIMEOUT,
    GITHUB_REPO,
    STARTUP_CHECK_TIMEOUT,
    UPDATE_COMMAND_TIMEOUT,
)

_CONFIG_RESOURCE = "app.json"
_APP_CONFIG_CACHE: AppConfig | None = None


@dataclass(frozen=True)
class UpdateConfig:
    """Settings for the self-update workflows."""

    repository: str = GITHUB_REPO
    check_on_startup: bool = True
    startup_timeout: float = STARTUP_CHECK_TIMEOUT
    command_timeout: float = UPDATE_COMMAND_TIMEOUT
    download_timeout: float = DOWNLOAD_TIMEOUT
    api_url_override: str | None = None

    @property
    def api_url(self) -> str:
        if self.api_url_override:
            return self.api_url_override
        return f"https://api.github.com/repos/{self.repository}/releases/latest"


@dataclass(frozen=True)
class AppConfig:
    """Structured configuration values for the command-line tool."""

    update: UpdateConfig


def get_app_config() -> AppConfig:
    """Return the cached application configuration."""

    global _APP_CONFIG_CACHE
    if _APP_CONFIG_CACHE is None:
        _APP_CONFIG_CACHE = load_app_config()
    return _APP_CONFIG_CACHE


def reset_app_config_cache() -> None:
    """Reset the cached configuration for subsequent reloads."""

    global _APP_CONFIG_CACHE
    _APP_CONFIG_CACHE = None


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from ``path`` or the bundled JSON resource."""

    data = _read_config_data(path)
    update_section = data.get("update") if isinstance(data, Mapping) else None
    return AppConfig(update=_parse_update_section(update_section))


def get_update_config() -> UpdateConfig:
    """Convenience accessor for the update configuration."""

    return get_app_config().update


def _read_config_data(path: str | Path | None) -> Mapping[str, Any]:
    if path is not None:
        return _load_json_from_path(Path(path).expanduser())
    return _load_default_config_data()


def _load_json_from_path(path: Path) -> Mapping[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    return _parse_json(raw)


def _load_default_config_data() -> Mapping[str, Any]:
    try:
        resource = resources.files(__package__).joinpath(_CONFIG_RESOURCE)
        raw = resource.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return {}
    return _parse_json(raw)


def _parse_json(raw: str) -> Mapping[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    if isinstance(parsed, Mapping):
        return parsed
    return {}


def _parse_update_section(section: Mapping[str, Any] | None) -> UpdateConfig:
    if not isinstance(section, Mapping):
        return UpdateConfig()
    repository = section.get("repository")
    if not isinstance(repository, str) or "/" not in repository.strip():
        repository = GITHUB_REPO
    api_url = section.get("api_url")
    if not isinstance(api_url, str) or not api_url.strip():
        api_url = None
    check_on_startup = section.get("check_on_startup")
    if not isinstance(check_on_startup, bool):
        check_on_startup = True
    return UpdateConfig(
        repository=repository.strip(),
        check_on_startup=check_on_startup,
        startup_timeout=_coerce_positive_float(
            section.get("startup_timeout_seconds"), default=STARTUP_CHECK_TIMEOUT
        ),
        command_timeout=_coerce_positive_float(
            section.get("command_timeout_seconds"), default=UPDATE_COMMAND_TIMEOUT
        ),
        download_timeout=_coerce_positive_float(
            section.get("download_timeout_seconds"), default=DOWNLOAD_TIMEOUT
        ),
        api_url_override=api_url.strip() if api_url else None,
    )


def _coerce_positive_float(value: Any, *, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        candidate = float(value)
    elif isinstance(value, str):
        try:
            candidate = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    if not isfinite(candidate) or candidate <= 0:
        return default
    return candidate
