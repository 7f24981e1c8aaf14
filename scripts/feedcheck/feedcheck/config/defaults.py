"""Default configuration generation."""

from pathlib import Path
from typing import Any

import yaml

from feedcheck.exceptions import ConfigurationError
from feedcheck.sources.loader import load_default_settings

CONFIG_HEADER = """\
# feedcheck configuration
#
# feeds:     remote NuGet V3 feeds to check ('url', or 'azure' for Azure DevOps Artifacts)
# projects:  packages checked when none are passed with --project
# http:      request timeout and credential retry limits
# credentials.plugin_paths: credential provider executables or directories
#
# Credentials for feeds come from <packageSourceCredentials> in NuGet.Config.
"""


def generate_default_config(project_root: Path, user_config: Path | None = None) -> dict[str, Any]:
    """Build a starter configuration.

    Enabled HTTP sources found in the NuGet.Config files that apply to
    project_root become feeds; otherwise nuget.org is used.

    Args:
        project_root: Directory used for NuGet.Config discovery
        user_config: Override for the user-level NuGet.Config

    Returns:
        Configuration dictionary ready for YAML dumping
    """
    feeds: list[dict[str, Any]] = []
    try:
        settings = load_default_settings(project_root, user_config=user_config)
    except ConfigurationError:
        # A broken NuGet.Config should not prevent writing a starter file
        settings = None
    if settings is not None:
        disabled = settings.disabled
        for entry in settings.sources:
            if entry.name.lower() in disabled:
                continue
            if entry.source.lower().startswith(("http://", "https://")):
                feeds.append({"name": entry.name, "url": entry.source})
    if not feeds:
        feeds.append({"name": "nuget.org", "url": "https://api.nuget.org/v3/index.json"})

    return {
        "feeds": feeds,
        "projects": [],
        "http": {"timeout_seconds": 100, "max_credential_attempts": 3},
        "credentials": {"plugin_paths": [], "non_interactive": True},
        "max_parallel": 1,
    }


def write_default_config(
    output: Path,
    project_root: Path | None = None,
    user_config: Path | None = None,
) -> Path:
    """Write a starter feedcheck.yml.

    Args:
        output: Destination file
        project_root: Directory used for NuGet.Config discovery (defaults to output's parent)
        user_config: Override for the user-level NuGet.Config

    Returns:
        The written path
    """
    if project_root is None:
        project_root = output.parent
    config = generate_default_config(project_root, user_config=user_config)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(
        CONFIG_HEADER + "\n" + yaml.safe_dump(config, sort_keys=False),
        encoding="utf-8",
    )
    return output
