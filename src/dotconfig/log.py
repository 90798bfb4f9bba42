"""Severity-coloured console output."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

console = Console(stderr=True, highlight=False)

_verbose = False


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = enabled


def is_verbose() -> bool:
    return _verbose


def _emit(label: str, style: str, message: str) -> None:
    console.print(f"[bold {style}][{label}][/bold {style}] {escape(message)}", soft_wrap=True)


def info(message: str) -> None:
    _emit("INFO", "green", message)


def warn(message: str) -> None:
    _emit("WARN", "yellow", message)


def error(message: str) -> None:
    _emit("ERROR", "red", message)


def debug(message: str) -> None:
    if _verbose:
        _emit("DEBUG", "magenta", message)
