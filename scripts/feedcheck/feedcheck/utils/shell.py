"""Running credential provider executables.

Plugins are external programs: they may colorize their diagnostics, hang
waiting for a prompt, or print nothing at all. run() captures both streams
without a shell, strips terminal escapes, and turns a hang into ShellError.
Exit codes are returned as-is; their meaning belongs to the caller.
"""

import os
import re
import subprocess
from dataclasses import dataclass


class ShellError(Exception):
    """A command could not complete.

    Attributes:
        cmd: The command line, joined for display
        returncode: Exit code, None when the process was killed
        stderr: Standard error captured so far (escapes stripped)
        timed_out: Whether the timeout expired
    """

    def __init__(self, cmd: str, returncode: int | None, stderr: str = "", timed_out: bool = False) -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        self.timed_out = timed_out
        reason = "timed out" if timed_out else f"exited with {returncode}"
        super().__init__(f"{cmd} {reason}")

    def __str__(self) -> str:
        text = super().__str__()
        if self.stderr:
            text += f"\nStderr: {self.stderr}"
        return text


@dataclass(frozen=True)
class CommandResult:
    """Exit code and decoded output of a finished command."""

    returncode: int
    stdout: str
    stderr: str


# CSI sequences (colors, cursor moves), OSC titles, DCS/PM/APC strings
ANSI_PATTERN = re.compile(
    r"\x1b\[[0-9;?]*[a-zA-Z]|\x1b\][^\x07]*\x07|\x1b[PX^_][^\x1b]*\x1b\\"
)

CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def strip_ansi(text: str | bytes | None) -> str:
    """Return text without terminal escape sequences or control characters.

    Examples:
        >>> strip_ansi('\\x1b[32m{"Username": "u"}\\x1b[0m')
        '{"Username": "u"}'
    """
    if not text:
        return ""
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    return CONTROL_CHARS_PATTERN.sub("", ANSI_PATTERN.sub("", text))


def run(
    cmd: list[str],
    timeout: float = 300,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run cmd to completion with stdin closed.

    Args:
        cmd: Executable and arguments
        timeout: Seconds before the process is killed
        env: Variables added to the inherited environment

    Returns:
        CommandResult with cleaned stdout/stderr, whatever the exit code

    Raises:
        ShellError: If the timeout expires
        OSError: If the executable cannot be started
    """
    display = " ".join(cmd)
    try:
        completed = subprocess.run(
            list(cmd),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=timeout,
            env={**os.environ, **env} if env else None,
        )
    except subprocess.TimeoutExpired as e:
        raise ShellError(display, None, stderr=strip_ansi(e.stderr), timed_out=True) from e

    return CommandResult(
        returncode=completed.returncode,
        stdout=strip_ansi(completed.stdout),
        stderr=strip_ansi(completed.stderr),
    )
