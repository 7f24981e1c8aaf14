"""Utility modules for feedcheck."""

from feedcheck.utils.shell import CommandResult, ShellError, run, strip_ansi
from feedcheck.utils.version import (
    VERSION_PATTERN,
    PackageVersion,
    is_valid_version,
    normalize_version,
    parse_version,
)

__all__ = [
    # Shell utilities
    "run",
    "strip_ansi",
    "ShellError",
    "CommandResult",
    # Version utilities
    "PackageVersion",
    "parse_version",
    "is_valid_version",
    "normalize_version",
    "VERSION_PATTERN",
]
