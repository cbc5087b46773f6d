from __future__ import annotations

from collections.abc import Callable

from rich.console import Console
from rich.text import Text

from ..engine.errors import ErrorLevel, ExplorerError
from ..engine.reporter import ErrorReporter

_PREFIX: dict[ErrorLevel, str] = {
    "warn": "Warning",
    "error": "Error",
    "fatal": "Fatal",
}


def _styled(level: ErrorLevel) -> str:
    if level == "warn":
        return "yellow"
    if level == "error":
        return "red"
    return "bold red"


def format_error(error: ExplorerError) -> str:
    text = f"{_PREFIX[error.level]}: {error}"
    if error.level == "fatal":
        text += " Restart to continue."
    return text


class ConsoleReporter(ErrorReporter):
    """Print reported errors on a Rich console (stderr for CLI use)."""

    def __init__(self, console: Console) -> None:
        self._console = console
        self.count = 0

    def report(self, error: ExplorerError) -> None:
        self.count += 1
        self._console.print(Text(format_error(error), style=_styled(error.level)))


class StatusReporter(ErrorReporter):
    """Forward reported errors to a status sink, e.g. a status bar or notification."""

    def __init__(self, sink: Callable[[str, ErrorLevel], None]) -> None:
        self._sink = sink

    def report(self, error: ExplorerError) -> None:
        self._sink(format_error(error), error.level)
