"""Locating and reading feedcheck.yml / feedcheck.toml.

Both formats decode to the same mapping and are validated by
FeedCheckConfig. Without a file the defaults apply, so a bare
``feedcheck check -p X`` only needs feeds from the environment.
"""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from feedcheck.config.models import FeedCheckConfig
from feedcheck.exceptions import ConfigurationError

# Import tomli for Python < 3.11, tomllib for 3.11+
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

SEARCH_PATHS = [
    "config/feedcheck.yml",
    "config/feedcheck.yaml",
    "feedcheck.yml",
    "feedcheck.yaml",
    "config/feedcheck.toml",
    "feedcheck.toml",
]


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            fix_hint="Run 'feedcheck init-config' or pass --config with an existing file",
        ) from None
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}", details=str(e)) from e


def _parse_yaml(path: Path, text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in {path}",
            details=str(e),
            fix_hint="Check YAML syntax at the indicated line",
        ) from e


def _parse_toml(path: Path, text: str) -> Any:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            f"Invalid TOML in {path}",
            details=str(e),
            fix_hint="Check TOML syntax at the indicated line",
        ) from e


_PARSERS: dict[str, Callable[[Path, str], Any]] = {
    ".yml": _parse_yaml,
    ".yaml": _parse_yaml,
    ".toml": _parse_toml,
}


def _load_mapping(path: Path, parser: Callable[[Path, str], Any]) -> dict[str, Any]:
    data = parser(path, _read_text(path))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid configuration in {path}",
            details=f"Top level must be a mapping, got {type(data).__name__}",
        )
    return data


def load_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML file into a mapping (empty file -> {}).

    Raises:
        ConfigurationError: If the file is missing, malformed or not a mapping
    """
    return _load_mapping(path, _parse_yaml)


def load_toml(path: Path) -> dict[str, Any]:
    """Read a TOML file into a mapping.

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    return _load_mapping(path, _parse_toml)


def find_config(project_root: Path) -> Path | None:
    """Return the first existing file of SEARCH_PATHS under project_root."""
    return next(
        (project_root / p for p in SEARCH_PATHS if (project_root / p).is_file()),
        None,
    )


def load_config(
    path: Path | None = None,
    project_root: Path | None = None,
    required: bool = False,
) -> FeedCheckConfig:
    """Load and validate the feedcheck configuration.

    Without an explicit path, SEARCH_PATHS are tried in order under
    project_root and the first hit wins.

    Args:
        path: Config file, relative paths resolved against project_root
        project_root: Directory searched for a config (defaults to cwd)
        required: Raise instead of returning defaults when no file is found

    Returns:
        Validated FeedCheckConfig

    Raises:
        ConfigurationError: If the file cannot be read or fails validation,
            or none exists while required
    """
    root = project_root if project_root is not None else Path.cwd()
    if path:
        config_path: Path | None = path if Path(path).is_absolute() else root / path
    else:
        config_path = find_config(root)

    if config_path is None:
        if required:
            raise ConfigurationError(
                "No configuration file found",
                details=f"Searched in: {', '.join(SEARCH_PATHS)}",
                fix_hint="Run 'feedcheck init-config' to create a configuration file",
            )
        return FeedCheckConfig()

    parser = _PARSERS.get(config_path.suffix.lower())
    if parser is None:
        raise ConfigurationError(
            f"Unsupported config format: {config_path.suffix or config_path.name}",
            fix_hint=f"Use one of: {', '.join(sorted(_PARSERS))}",
        )

    data = _load_mapping(config_path, parser)
    try:
        config = FeedCheckConfig(**data)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in {config_path}",
            details=str(e),
            fix_hint="Compare the file with the output of 'feedcheck init-config'",
        ) from e

    # Plugin paths in a config file are relative to that file
    config.credentials.plugin_paths = [
        p if p.is_absolute() else config_path.parent / p
        for p in config.credentials.plugin_paths
    ]
    return config
