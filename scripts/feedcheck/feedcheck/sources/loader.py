"""NuGet.Config discovery and parsing.

Search order, from highest to lowest priority:
1. NuGet.Config (any casing NuGet accepts) in the root directory
2. The same in every parent directory up to the filesystem root
3. The user-level file (~/.nuget/NuGet/NuGet.Config, %APPDATA%\\NuGet\\NuGet.Config on Windows)

Lower priority files are applied first, so a closer file overrides a
source value or credential, and a <clear /> in a closer file drops
everything inherited from farther files.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from xml.etree import ElementTree as ET

from feedcheck.exceptions import ConfigurationError
from feedcheck.sources.models import PackageSourceCredential

CONFIG_FILE_NAMES = ("NuGet.Config", "nuget.config", "NuGet.config")

ENV_VAR_PATTERN = re.compile(r"%([^%]+)%")


@dataclass
class SourceEntry:
    """One <add> from <packageSources>, before credentials are attached."""

    name: str
    source: str
    protocol_version: int
    origin: Path


@dataclass
class Settings:
    """Merged view over a stack of NuGet.Config files.

    Attributes:
        config_paths: Files that were read, highest priority first
        sources: Declared sources in declaration order
        disabled: Names of disabled sources
        credentials: Credentials per source name
        warnings: Non-fatal problems found while loading
    """

    config_paths: list[Path] = field(default_factory=list)
    sources: list[SourceEntry] = field(default_factory=list)
    disabled: set[str] = field(default_factory=set)
    credentials: dict[str, PackageSourceCredential] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


def user_config_path() -> Path:
    """Return the user-level NuGet.Config path for this platform."""
    if os.name == "nt" and os.environ.get("APPDATA"):
        return Path(os.environ["APPDATA"]) / "NuGet" / "NuGet.Config"
    return Path.home() / ".nuget" / "NuGet" / "NuGet.Config"


def discover_config_files(root: Path, user_config: Path | None = None) -> list[Path]:
    """Find the config files that apply to root, highest priority first.

    Args:
        root: Directory the search starts from
        user_config: User-level file (defaults to user_config_path())

    Returns:
        Existing config files, closest first, user-level file last
    """
    found: list[Path] = []
    for directory in [root, *root.parents]:
        for file_name in CONFIG_FILE_NAMES:
            candidate = directory / file_name
            # Case-insensitive filesystems report every spelling as existing
            if candidate.is_file() and not any(_same_file(candidate, f) for f in found):
                found.append(candidate)
                break

    user_file = user_config if user_config is not None else user_config_path()
    if user_file.is_file() and not any(_same_file(user_file, f) for f in found):
        found.append(user_file)
    return found


def _same_file(a: Path, b: Path) -> bool:
    try:
        return a.samefile(b)
    except OSError:
        return False


def expand_environment_variables(value: str) -> str:
    """Expand %NAME% references, leaving unknown names untouched."""
    return ENV_VAR_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)


def parse_config_file(path: Path) -> ET.Element:
    """Parse one config file into its <configuration> element.

    Raises:
        ConfigurationError: If the file cannot be read or is not valid XML
    """
    try:
        tree = ET.parse(path)
    except ET.ParseError as e:
        raise ConfigurationError(
            f"Invalid XML in {path}",
            details=str(e),
            fix_hint="Check the NuGet.Config syntax at the indicated line",
        ) from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}", details=str(e)) from e

    root = tree.getroot()
    if root.tag != "configuration":
        raise ConfigurationError(
            f"Invalid NuGet.Config {path}",
            details=f"Root element is <{root.tag}>, expected <configuration>",
        )
    return root


def _apply_sources(settings: Settings, section: ET.Element, origin: Path) -> None:
    for child in section:
        if child.tag == "clear":
            settings.sources.clear()
        elif child.tag == "add":
            key = child.get("key")
            value = child.get("value")
            if not key or value is None:
                settings.warnings.append(
                    f"{origin}: ignoring <packageSources> entry without key or value"
                )
                continue
            try:
                protocol_version = int(child.get("protocolVersion", "2"))
            except ValueError:
                protocol_version = 2
            entry = SourceEntry(key, value, protocol_version, origin)
            for i, existing in enumerate(settings.sources):
                if existing.name.lower() == key.lower():
                    settings.sources[i] = entry
                    break
            else:
                settings.sources.append(entry)
        elif child.tag == "remove":
            key = (child.get("key") or "").lower()
            settings.sources[:] = [s for s in settings.sources if s.name.lower() != key]


def _apply_disabled(settings: Settings, section: ET.Element) -> None:
    for child in section:
        if child.tag == "clear":
            settings.disabled.clear()
        elif child.tag == "add" and child.get("key"):
            key = child.get("key", "")
            if (child.get("value") or "").strip().lower() == "true":
                settings.disabled.add(key.lower())
            else:
                settings.disabled.discard(key.lower())


def _apply_credentials(settings: Settings, section: ET.Element, origin: Path) -> None:
    for source_element in section:
        if source_element.tag == "clear":
            settings.credentials.clear()
            continue
        # Element names are XML-encoded source names (spaces become _x0020_)
        name = source_element.tag.replace("_x0020_", " ")
        values = {
            child.get("key", ""): child.get("value", "")
            for child in source_element
            if child.tag == "add"
        }
        username = values.get("Username")
        clear_text = values.get("ClearTextPassword")
        encrypted = values.get("Password")
        auth_types = tuple(
            t.strip().lower()
            for t in values.get("ValidAuthenticationTypes", "").split(",")
            if t.strip()
        )
        if clear_text is not None:
            password: str | None = expand_environment_variables(clear_text)
            is_clear_text = True
        else:
            password = None
            is_clear_text = False
            if encrypted:
                settings.warnings.append(
                    f"{origin}: encrypted password for source '{name}' cannot be "
                    "decrypted, use ClearTextPassword instead"
                )
        settings.credentials[name.lower()] = PackageSourceCredential(
            source=name,
            username=expand_environment_variables(username) if username else username,
            password=password,
            is_password_clear_text=is_clear_text,
            valid_authentication_types=auth_types,
        )


def load_settings(config_paths: list[Path]) -> Settings:
    """Merge the given config files.

    Args:
        config_paths: Files to merge, highest priority first

    Returns:
        Merged Settings

    Raises:
        ConfigurationError: If a file is not a valid NuGet.Config
    """
    settings = Settings(config_paths=list(config_paths))
    for path in reversed(config_paths):
        root = parse_config_file(path)
        for section in root:
            if section.tag == "packageSources":
                _apply_sources(settings, section, path)
            elif section.tag == "disabledPackageSources":
                _apply_disabled(settings, section)
            elif section.tag == "packageSourceCredentials":
                _apply_credentials(settings, section, path)
    return settings


def load_default_settings(root: Path | None = None, user_config: Path | None = None) -> Settings:
    """Load the settings that apply to a working directory.

    Args:
        root: Directory to start the search from (defaults to cwd)
        user_config: Override for the user-level config file

    Returns:
        Merged Settings (empty when no config file exists)

    Raises:
        ConfigurationError: If a discovered file is not a valid NuGet.Config
    """
    if root is None:
        root = Path.cwd()
    return load_settings(discover_config_files(root.resolve(), user_config))
