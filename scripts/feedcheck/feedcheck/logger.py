"""Registry-client logger forwarding to the host diagnostics sink.

Every message gets the 'registry-client' tag so its origin is visible in
the build log. Calls may come from several concurrent lookups, so a single
lock serializes access to the sink.
"""

import sys
import threading
from dataclasses import dataclass
from enum import Enum

from feedcheck.diagnostics import DiagnosticsSink

PREFIX = "registry-client"


class LogLevel(Enum):
    """Registry-client log levels."""

    DEBUG = "Debug"
    VERBOSE = "Verbose"
    INFORMATION = "Information"
    MINIMAL = "Minimal"
    WARNING = "Warning"
    ERROR = "Error"
    SUMMARY = "Summary"


# Sink method per level; minimal and summary have no dedicated severity
_SEVERITY = {
    LogLevel.DEBUG: "debug",
    LogLevel.VERBOSE: "verbose",
    LogLevel.INFORMATION: "information",
    LogLevel.MINIMAL: "information",
    LogLevel.WARNING: "warning",
    LogLevel.ERROR: "error",
    LogLevel.SUMMARY: "information",
}


@dataclass(frozen=True)
class LogMessage:
    """A structured log entry.

    Attributes:
        level: Log level
        code: Diagnostic code (e.g., 'NU1301')
        message: Message text
        project_path: Project the message is about, if any
    """

    level: LogLevel
    code: str
    message: str
    project_path: str | None = None


class RegistryLogger:
    """Leveled logger bound to one diagnostics sink."""

    def __init__(self, sink: DiagnosticsSink) -> None:
        self.sink = sink
        self._lock = threading.Lock()

    def log(self, level: LogLevel, data: str) -> None:
        """Forward a message tagged with its level, e.g. 'registry-client (Warning): ...'."""
        self._forward(_SEVERITY[level], f"{PREFIX} ({level.value}): {data}")

    def log_debug(self, data: str) -> None:
        self._write(LogLevel.DEBUG, data)

    def log_verbose(self, data: str) -> None:
        self._write(LogLevel.VERBOSE, data)

    def log_information(self, data: str) -> None:
        self._write(LogLevel.INFORMATION, data)

    def log_minimal(self, data: str) -> None:
        self._write(LogLevel.MINIMAL, data)

    def log_warning(self, data: str) -> None:
        self._write(LogLevel.WARNING, data)

    def log_error(self, data: str) -> None:
        self._write(LogLevel.ERROR, data)

    def log_summary(self, data: str) -> None:
        self._write(LogLevel.SUMMARY, data)

    def _write(self, level: LogLevel, data: str) -> None:
        self._forward(_SEVERITY[level], f"{PREFIX}: {data}")

    def log_message(self, message: LogMessage) -> None:
        """Forward a structured message."""
        self._forward(
            _SEVERITY[message.level],
            f"{PREFIX} ({message.level.value}) - Code: {message.code} - "
            f"Project: {message.project_path or ''} - {message.message}",
        )

    def _forward(self, severity: str, text: str) -> None:
        with self._lock:
            try:
                getattr(self.sink, severity)(text)
            except Exception as e:
                # Logging must never fail the caller
                try:
                    sys.stderr.write(f"{text} (diagnostics sink failed: {e})\n")
                except OSError:
                    pass
