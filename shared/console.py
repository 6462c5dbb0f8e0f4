"""Coloured terminal output for user-facing messages."""

from __future__ import annotations

import sys
from typing import NoReturn, TextIO

import colorama
from colorama import Fore, Style


colorama.just_fix_windows_console()

PREFIX = "│ "


class ConsoleReporter:
    """Print prefixed, colour-coded status lines.

    Colours are dropped automatically when ``stream`` is not a terminal so
    captured output stays readable.
    """

    def __init__(self, stream: TextIO | None = None, *, color: bool | None = None) -> None:
        self._stream = stream
        self._color = color

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def info(self, message: str) -> None:
        self._emit("ℹ", message, Fore.CYAN)

    def step(self, message: str) -> None:
        self._emit("→", message, Fore.BLUE)

    def success(self, message: str) -> None:
        self._emit("✔", message, Fore.GREEN)

    def warning(self, message: str) -> None:
        self._emit("⚠", message, Fore.YELLOW)

    def error(self, message: str) -> None:
        self._emit("✖", message, Fore.RED)

    def command(self, message: str) -> None:
        self._emit("$", message, Fore.MAGENTA + Style.BRIGHT)

    def fatal(self, message: str, *, exit_code: int = 1) -> NoReturn:
        self.error(message)
        raise SystemExit(exit_code)

    def _emit(self, symbol: str, message: str, color: str) -> None:
        line = f"{PREFIX}{symbol} {message}"
        if self._use_color():
            line = f"{color}{line}{Style.RESET_ALL}"
        print(line, file=self.stream, flush=True)

    def _use_color(self) -> bool:
        if self._color is not None:
            return self._color
        is_tty = getattr(self.stream, "isatty", None)
        return bool(callable(is_tty) and is_tty())


__all__ = ["ConsoleReporter"]
