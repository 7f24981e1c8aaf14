"""Credential providers for authenticated feed requests."""

from feedcheck.credentials.base import (
    BasicAuthCredential,
    CredentialProvider,
    CredentialProviderRegistry,
    CredentialRequestType,
    CredentialResponse,
    CredentialStatus,
)
from feedcheck.credentials.plugin import (
    PluginCredentialProvider,
    build_plugin_providers,
    discover_plugins,
)
from feedcheck.credentials.service import CredentialService
from feedcheck.credentials.settings_provider import SettingsCredentialProvider, uri_equals

__all__ = [
    "BasicAuthCredential",
    "CredentialProvider",
    "CredentialProviderRegistry",
    "CredentialRequestType",
    "CredentialResponse",
    "CredentialService",
    "CredentialStatus",
    "PluginCredentialProvider",
    "SettingsCredentialProvider",
    "build_plugin_providers",
    "discover_plugins",
    "uri_equals",
]
