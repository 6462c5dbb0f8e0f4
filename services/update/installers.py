"""Installer implementations for platform-specific behaviour."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from services.update.constants import (
    DEFERRED_RENAME_DELAY_SECONDS,
    STAGING_SUFFIX,
    WRITE_PROBE_NAME,
)
from services.update.models import ExecutablePayload, InstallError, InstallPermissionError

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "BinaryInstaller",
    "DeferredRenameFinalizer",
    "FinalizeResult",
    "Finalizer",
    "RenameNowFinalizer",
    "default_finalizer",
    "staging_path_for",
]


class FinalizeResult(str, Enum):
    COMPLETED = "completed"
    SCHEDULED = "scheduled"


class Finalizer(Protocol):
    """Strategy that moves a staged executable onto its final path."""

    def finalize(self, staged: Path, target: Path) -> FinalizeResult:
        """Put ``staged`` in place of ``target`` or arrange for it to happen."""


class RenameNowFinalizer:
    """Atomically rename the staged file over the running executable."""

    def finalize(self, staged: Path, target: Path) -> FinalizeResult:
        os.replace(staged, target)
        _LOGGER.info("Replaced %s with staged update", target)
        return FinalizeResult.COMPLETED


class DeferredRenameFinalizer:
    """Hand the rename to a detached shell once this process has exited.

    Windows keeps a running executable locked, so the move is delegated to
    ``cmd`` after a short delay.
    """

    def __init__(self, *, delay_seconds: int = DEFERRED_RENAME_DELAY_SECONDS) -> None:
        self._delay_seconds = delay_seconds

    def build_command(self, staged: Path, target: Path) -> list[str]:
        # ping waits roughly one second per echo request after the first.
        return [
            "cmd",
            "/c",
            "ping",
            "-n",
            str(self._delay_seconds + 1),
            "127.0.0.1",
            ">nul",
            "&",
            "move",
            "/Y",
            str(staged),
            str(target),
        ]

    def finalize(self, staged: Path, target: Path) -> FinalizeResult:
        command = self.build_command(staged, target)
        popen_kwargs: dict[str, Any] = {
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.DEVNULL,
            "stderr": subprocess.DEVNULL,
            "close_fds": True,
        }
        if os.name == "nt":  # pragma: no cover - exercised on Windows
            creationflags = getattr(subprocess, "CREATE_NO_WINDOW", 0) | getattr(
                subprocess, "DETACHED_PROCESS", 0
            )
            if creationflags:
                popen_kwargs["creationflags"] = creationflags
        _LOGGER.info("Scheduling replacement of %s in %ss", target, self._delay_seconds)
        subprocess.Popen(command, cwd=str(target.parent), **popen_kwargs)
        return FinalizeResult.SCHEDULED


def default_finalizer(platform: str | None = None) -> Finalizer:
    platform = platform or sys.platform
    if platform.startswith("win"):
        return DeferredRenameFinalizer()
    return RenameNowFinalizer()


def staging_path_for(executable_path: Path) -> Path:
    return executable_path.with_name(executable_path.name + STAGING_SUFFIX)


class BinaryInstaller:
    """Stage a new executable beside the running one and swap it in."""

    def __init__(self, finalizer: Finalizer | None = None, *, platform: str | None = None) -> None:
        self._platform = platform or sys.platform
        self._finalizer = finalizer or default_finalizer(self._platform)

    def install(
        self,
        payload: ExecutablePayload,
        executable_path: Path,
        *,
        staging_path: Path | None = None,
    ) -> FinalizeResult:
        """Replace ``executable_path`` with ``payload``.

        The payload is staged at ``staging_path`` (``<exe>.new`` by default),
        which must sit in the same directory as the executable.  The original
        file is left untouched unless the final rename succeeds.
        Raises :class:`InstallPermissionError` when the directory cannot be
        written and :class:`InstallError` for any other failure.
        """

        target = Path(executable_path)
        directory = target.parent
        if not self._is_writable(directory):
            raise self._permission_error(payload, target)

        staged = Path(staging_path) if staging_path is not None else staging_path_for(target)
        _LOGGER.debug("Staging update at %s", staged)
        try:
            staged.write_bytes(payload.data)
            os.chmod(staged, payload.mode)
            result = self._finalizer.finalize(staged, target)
        except OSError as exc:
            self._discard(staged)
            raise InstallError(f"Failed to install update: {exc}") from exc
        return result

    def _is_writable(self, directory: Path) -> bool:
        probe = directory / WRITE_PROBE_NAME
        try:
            with probe.open("wb"):
                pass
            probe.unlink()
        except OSError as exc:
            _LOGGER.debug("Install directory %s is not writable: %s", directory, exc)
            return False
        return True

    def _permission_error(self, payload: ExecutablePayload, target: Path) -> InstallPermissionError:
        saved: Path | None = None
        try:
            holding_dir = Path(tempfile.mkdtemp(prefix="echowave-update-"))
            saved = holding_dir / (payload.name or target.name)
            saved.write_bytes(payload.data)
            os.chmod(saved, payload.mode)
        except OSError as exc:
            _LOGGER.warning("Unable to keep a copy of the downloaded update: %s", exc)
            saved = None

        source = str(saved) if saved is not None else "<downloaded-binary>"
        if self._platform.startswith("win"):
            command = f'copy /Y "{source}" "{target}"'
        else:
            quoted_target = shlex.quote(str(target))
            command = f"sudo cp {shlex.quote(source)} {quoted_target} && sudo chmod +x {quoted_target}"
        return InstallPermissionError(
            f"No write permission for {target.parent}",
            suggested_command=command,
            payload_path=saved,
        )

    def _discard(self, staged: Path) -> None:
        try:
            staged.unlink()
        except FileNotFoundError:
            return
        except OSError:
            _LOGGER.warning("Unable to remove staged update at %s", staged, exc_info=True)
