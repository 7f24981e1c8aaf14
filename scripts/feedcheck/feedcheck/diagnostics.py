"""Host diagnostics sinks.

The build host owns where messages go. feedcheck only needs an object with
five severity methods; ConsoleDiagnostics renders them with rich, and
RecordingDiagnostics keeps them in memory for embedding hosts.
"""

from enum import IntEnum
from typing import Protocol

from rich.console import Console
from rich.markup import escape


class DiagnosticsSink(Protocol):
    """Anything that accepts leveled diagnostic messages."""

    def debug(self, message: str) -> None: ...

    def verbose(self, message: str) -> None: ...

    def information(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class Verbosity(IntEnum):
    """Output threshold, from least to most chatty."""

    QUIET = 0
    MINIMAL = 1
    NORMAL = 2
    VERBOSE = 3
    DIAGNOSTIC = 4


class ConsoleDiagnostics:
    """Diagnostics sink writing to a rich Console.

    Errors are always shown. Warnings need MINIMAL, information NORMAL,
    verbose VERBOSE and debug DIAGNOSTIC.
    """

    def __init__(
        self,
        console: Console | None = None,
        verbosity: Verbosity = Verbosity.NORMAL,
    ) -> None:
        self.console = console or Console(stderr=True)
        self.verbosity = verbosity

    def _emit(self, threshold: Verbosity, style: str, message: str) -> None:
        if self.verbosity >= threshold:
            self.console.print(f"[{style}]{escape(message)}[/{style}]")

    def debug(self, message: str) -> None:
        self._emit(Verbosity.DIAGNOSTIC, "dim", message)

    def verbose(self, message: str) -> None:
        self._emit(Verbosity.VERBOSE, "dim", message)

    def information(self, message: str) -> None:
        self._emit(Verbosity.NORMAL, "default", message)

    def warning(self, message: str) -> None:
        self._emit(Verbosity.MINIMAL, "yellow", message)

    def error(self, message: str) -> None:
        self._emit(Verbosity.QUIET, "red", message)


class RecordingDiagnostics:
    """Diagnostics sink that stores (severity, message) pairs."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def debug(self, message: str) -> None:
        self.records.append(("debug", message))

    def verbose(self, message: str) -> None:
        self.records.append(("verbose", message))

    def information(self, message: str) -> None:
        self.records.append(("information", message))

    def warning(self, message: str) -> None:
        self.records.append(("warning", message))

    def error(self, message: str) -> None:
        self.records.append(("error", message))

    def messages(self, severity: str | None = None) -> list[str]:
        """Return recorded messages, optionally filtered by severity."""
        return [m for s, m in self.records if severity is None or s == severity]
