"""Constants shared across the update service modules."""

from __future__ import annotations

GITHUB_REPO = "boidushya/echowave"
API_URL = f"https://api.github.com/repos/{GITHUB_REPO}/releases/latest"
USER_AGENT = "echowave-updater"

STARTUP_CHECK_TIMEOUT = 3.0  # seconds
UPDATE_COMMAND_TIMEOUT = 30.0
DOWNLOAD_TIMEOUT = 60.0

EXECUTABLE_NAME = "echowave"
PREFERRED_EXECUTABLE_NAMES = {"echowave", "echowave.exe"}
WINDOWS_EXECUTABLE_EXTENSIONS = (".exe",)
TAR_GZ_EXTENSIONS = (".tar.gz", ".tgz")
ZIP_EXTENSIONS = (".zip",)

STAGING_SUFFIX = ".new"
WRITE_PROBE_NAME = ".echowave-write-test"
DEFERRED_RENAME_DELAY_SECONDS = 2

MAX_DOWNLOAD_BYTES = 200 * 1024 * 1024  # 200 MiB
MAX_EXECUTABLE_SIZE = 250 * 1024 * 1024  # uncompressed
MAX_COMPRESSION_RATIO = 100  # Uncompressed vs compressed bytes

LOCAL_RELEASE_ENV = "ECHOWAVE_UPDATE_LOCAL_DIR"
EXECUTABLE_OVERRIDE_ENV = "ECHOWAVE_UPDATE_EXECUTABLE"
API_URL_ENV = "ECHOWAVE_UPDATE_API_URL"
DISABLE_CHECK_ENV = "ECHOWAVE_NO_UPDATE_CHECK"
