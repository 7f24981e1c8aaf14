"""Package version parsing and normalization.

Versions follow NuGet's flavor of semantic versioning:

    MAJOR.MINOR[.PATCH[.REVISION]][-PRERELEASE][+METADATA]

Comparison rules that matter for existence checks:
- A missing patch or a zero revision normalizes away ('1.0' == '1.0.0' == '1.0.0.0')
- Release labels compare case-insensitively
- Build metadata is ignored for equality
"""

import re
from dataclasses import dataclass, field

from feedcheck.exceptions import VersionParseError

VERSION_PATTERN = re.compile(
    r"^(?P<major>\d+)\.(?P<minor>\d+)"
    r"(?:\.(?P<patch>\d+))?(?:\.(?P<revision>\d+))?"
    r"(?:-(?P<release>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<metadata>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@dataclass(frozen=True)
class PackageVersion:
    """An immutable parsed package version.

    Attributes:
        major: Major component
        minor: Minor component
        patch: Patch component (0 when omitted)
        revision: Fourth legacy component (0 when omitted)
        release_labels: Prerelease labels split on '.'
        metadata: Build metadata, kept for display only
    """

    major: int
    minor: int
    patch: int = 0
    revision: int = 0
    release_labels: tuple[str, ...] = ()
    metadata: str | None = field(default=None, compare=False)

    @property
    def is_prerelease(self) -> bool:
        return bool(self.release_labels)

    @property
    def release(self) -> str:
        return ".".join(self.release_labels)

    def normalized(self) -> str:
        """Return the normalized string used by NuGet feeds.

        The revision is kept only when non-zero and metadata is dropped.

        Examples:
            >>> parse_version('1.0').normalized()
            '1.0.0'
            >>> parse_version('1.2.3.0-Beta+sha.1').normalized()
            '1.2.3-Beta'
        """
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.revision:
            text += f".{self.revision}"
        if self.release_labels:
            text += f"-{self.release}"
        return text

    def _key(self) -> tuple[int, int, int, int, tuple[str, ...]]:
        return (
            self.major,
            self.minor,
            self.patch,
            self.revision,
            tuple(label.lower() for label in self.release_labels),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageVersion):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = self.normalized()
        if self.metadata:
            text += f"+{self.metadata}"
        return text


def parse_version(version_str: str) -> PackageVersion:
    """Parse a package version string.

    Args:
        version_str: Version string to parse (e.g., '1.2.3', '1.2.3-beta.1')

    Returns:
        Parsed PackageVersion

    Raises:
        VersionParseError: If the string is empty or not a valid version

    Examples:
        >>> parse_version('1.2.3')
        PackageVersion(major=1, minor=2, patch=3, revision=0, release_labels=(), metadata=None)
        >>> parse_version('invalid')
        VersionParseError: Invalid version format: 'invalid'
    """
    if not version_str or not version_str.strip():
        raise VersionParseError(
            "Empty version string",
            details="Version string cannot be empty or whitespace",
            fix_hint="Provide a valid version (e.g., '1.2.3' or '1.2.3-beta.1')",
        )

    match = VERSION_PATTERN.match(version_str.strip())
    if not match:
        raise VersionParseError(
            f"Invalid version format: '{version_str}'",
            details="Version must look like MAJOR.MINOR[.PATCH[.REVISION]][-PRERELEASE][+METADATA]",
            fix_hint="Use a format like '1.2.3' or '1.2.3-beta.1'",
        )

    release = match.group("release")
    labels = tuple(release.split(".")) if release else ()
    for label in labels:
        if label.isdigit() and len(label) > 1 and label.startswith("0"):
            raise VersionParseError(
                f"Invalid version format: '{version_str}'",
                details=f"Numeric release label '{label}' has a leading zero",
            )

    return PackageVersion(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        patch=int(match.group("patch") or 0),
        revision=int(match.group("revision") or 0),
        release_labels=labels,
        metadata=match.group("metadata"),
    )


def is_valid_version(version_str: str) -> bool:
    """Check if a version string parses."""
    try:
        parse_version(version_str)
    except VersionParseError:
        return False
    return True


def normalize_version(version_str: str) -> str:
    """Normalize a version string.

    Args:
        version_str: Version string to normalize (e.g., '1.2', ' 1.2.3.0 ')

    Returns:
        Normalized version string (e.g., '1.2.0', '1.2.3')

    Raises:
        VersionParseError: If version string is invalid
    """
    return parse_version(version_str).normalized()


__all__ = [
    "PackageVersion",
    "parse_version",
    "is_valid_version",
    "normalize_version",
    "VERSION_PATTERN",
]
