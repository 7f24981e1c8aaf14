"""NuGet.Config package sources and their stored credentials."""

from feedcheck.sources.loader import (
    Settings,
    discover_config_files,
    load_default_settings,
    load_settings,
)
from feedcheck.sources.models import PackageSource, PackageSourceCredential
from feedcheck.sources.provider import PackageSourceProvider

__all__ = [
    "PackageSource",
    "PackageSourceCredential",
    "PackageSourceProvider",
    "Settings",
    "discover_config_files",
    "load_default_settings",
    "load_settings",
]
