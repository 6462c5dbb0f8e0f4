"""Archive handling helpers for the update service."""

from __future__ import annotations

import io
import logging
import tarfile
import zipfile
import zlib
from pathlib import PurePosixPath

from services.update import constants
from services.update.models import ContainerKind, ExecutablePayload, ExtractionError


_LOGGER = logging.getLogger(__name__)

__all__ = ["ContainerKind", "extract_executable"]


def extract_executable(data: bytes, kind: ContainerKind | None) -> ExecutablePayload:
    """Pull the EchoWave executable out of a downloaded archive.

    ``kind`` is decided once by the caller from the asset name; ``None`` means
    the format could not be determined and fails before anything is read.
    """

    if kind is ContainerKind.TAR_GZ:
        payload = _extract_from_tar_gz(data)
    elif kind is ContainerKind.ZIP:
        payload = _extract_from_zip(data)
    else:
        raise ExtractionError(f"Unsupported archive format: {kind!r}")

    _LOGGER.info(
        "Extracted %s (%d bytes) from %s archive",
        payload.name,
        len(payload.data),
        kind.value,
    )
    return payload


def _extract_from_tar_gz(data: bytes) -> ExecutablePayload:
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
            for member in archive:
                if not member.isreg():
                    _LOGGER.debug("Skipping non-regular tar entry %s", member.name)
                    continue
                _check_size(member.name, member.size)
                source = archive.extractfile(member)
                if source is None:  # pragma: no cover - isreg() guarantees a stream
                    continue
                with source:
                    content = source.read()
                return ExecutablePayload(name=PurePosixPath(member.name).name, data=content)
    except (tarfile.TarError, zlib.error, OSError, EOFError) as exc:
        raise ExtractionError(f"Failed to read update archive: {exc}") from exc
    raise ExtractionError("No binary found in archive")


def _extract_from_zip(data: bytes) -> ExecutablePayload:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            member = _select_zip_member(archive.infolist())
            if member is None:
                raise ExtractionError("No binary found in archive")
            _check_size(member.filename, member.file_size)
            if (
                member.compress_size > 0
                and member.file_size > member.compress_size * constants.MAX_COMPRESSION_RATIO
            ):
                _LOGGER.error(
                    "Archive member %s exceeded compression ratio limit (%s > %s)",
                    member.filename,
                    member.file_size,
                    member.compress_size * constants.MAX_COMPRESSION_RATIO,
                )
                raise ExtractionError("Update archive exceeded safe compression ratio")
            content = archive.read(member)
    except ExtractionError:
        raise
    # ZipFile.read raises RuntimeError for encrypted entries and
    # NotImplementedError for unsupported compression methods.
    except (zipfile.BadZipFile, zlib.error, OSError, EOFError, RuntimeError) as exc:
        raise ExtractionError(f"Failed to read update archive: {exc}") from exc
    return ExecutablePayload(name=PurePosixPath(member.filename).name, data=content)


def _select_zip_member(members: list[zipfile.ZipInfo]) -> zipfile.ZipInfo | None:
    candidates = [member for member in members if _looks_executable(member)]
    if not candidates:
        return None

    for candidate in candidates:
        if PurePosixPath(candidate.filename).name.lower() in constants.PREFERRED_EXECUTABLE_NAMES:
            _LOGGER.debug("Selected preferred executable %s", candidate.filename)
            return candidate

    chosen = candidates[0]
    _LOGGER.debug("Selected executable %s from archive", chosen.filename)
    return chosen


def _looks_executable(member: zipfile.ZipInfo) -> bool:
    if member.is_dir():
        return False
    name = PurePosixPath(member.filename).name
    if not name:
        return False
    if name.lower().endswith(constants.WINDOWS_EXECUTABLE_EXTENSIONS):
        return True
    # Unix binaries ship without a suffix.
    return "." not in name


def _check_size(name: str, size: int) -> None:
    if size > constants.MAX_EXECUTABLE_SIZE:
        _LOGGER.error(
            "Archive member %s exceeded file size limit (%s > %s)",
            name,
            size,
            constants.MAX_EXECUTABLE_SIZE,
        )
        raise ExtractionError("Update archive contained an oversized file")
