"""Command-line entry point for ``echowave``."""

from __future__ import annotations

import argparse
import logging
from typing import Callable, Sequence

from app.version import get_app_version
from services.update.builder import run_startup_update_check, run_update_command
from shared.console import ConsoleReporter
from shared.logging_config import LogVerbosity, ensure_app_logging, set_file_log_verbosity


_LOGGER = logging.getLogger(__name__)

TranscriptionHandler = Callable[[str, argparse.Namespace], int]


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="echowave",
        description="Transform audio into lyrics with AI-powered transcription.",
        epilog="Run 'echowave update' to install the latest release.",
    )
    parser.add_argument(
        "target",
        nargs="?",
        help="'update', 'version', or a YouTube URL / path to an audio file.",
    )
    parser.add_argument(
        "--version",
        dest="show_version",
        action="store_true",
        help="Show the EchoWave version and exit.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Record debug details in the log file.",
    )
    parser.add_argument(
        "--no-update-check",
        dest="update_check",
        action="store_false",
        help="Skip the startup check for a newer release.",
    )
    return parser.parse_args(argv)


def show_version(reporter: ConsoleReporter) -> int:
    version = get_app_version()
    reporter.info(f"EchoWave v{version.label}")
    return 0


def main(
    argv: Sequence[str] | None = None,
    *,
    transcribe: TranscriptionHandler | None = None,
    reporter: ConsoleReporter | None = None,
) -> int:
    args = parse_args(argv)
    reporter = reporter or ConsoleReporter()

    ensure_app_logging()
    if args.verbose:
        set_file_log_verbosity(LogVerbosity.VERBOSE)

    if args.show_version or args.target == "version":
        return show_version(reporter)

    if args.target == "update":
        run_update_command(reporter)
        return 0

    if args.update_check:
        run_startup_update_check(reporter)

    if not args.target:
        reporter.error("Please provide a YouTube URL or audio file path")
        reporter.info("Use --help for usage information")
        return 1

    if transcribe is None:
        _LOGGER.warning("No transcription handler registered; cannot process %s", args.target)
        reporter.error("The transcription engine is not available in this build")
        return 2
    return transcribe(args.target, args)


if __name__ == "__main__":
    raise SystemExit(main())
