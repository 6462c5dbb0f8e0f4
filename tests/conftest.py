from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_path() -> None:
    """Guarantee the repository root is discoverable for absolute imports."""

    root = Path(__file__).resolve().parent.parent
    root_str = str(root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)


_ensure_project_root_on_path()


_ISOLATED_ENV = (
    "ECHOWAVE_VERSION",
    "ECHOWAVE_DEBUG",
    "ECHOWAVE_LOG_FILE",
    "ECHOWAVE_NO_UPDATE_CHECK",
    "ECHOWAVE_UPDATE_API_URL",
    "ECHOWAVE_UPDATE_EXECUTABLE",
    "ECHOWAVE_UPDATE_LOCAL_DIR",
)


@pytest.fixture(autouse=True)
def _echowave_env(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Keep developer settings out of tests and route log files to a temporary directory."""

    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ECHOWAVE_LOG_DIR", str(tmp_path_factory.mktemp("logs")))
    yield
