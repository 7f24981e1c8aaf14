"""Find the packages of a build that still need publishing to NuGet feeds."""

__version__ = "0.1.0"

from feedcheck.context import (
    RegistryContext,
    ensure_initialized,
    get_default_context,
    reset_default_context,
)
from feedcheck.exceptions import (
    ConfigurationError,
    CredentialProviderError,
    FeedCheckError,
    InvalidArgumentError,
    NetworkError,
    OperationCancelledError,
    VersionParseError,
)
from feedcheck.feed import AzureDevOpsFeed, Feed, FeedStatus, ProjectToPublish

__all__ = [
    "__version__",
    "AzureDevOpsFeed",
    "Feed",
    "FeedStatus",
    "ProjectToPublish",
    "RegistryContext",
    "ensure_initialized",
    "get_default_context",
    "reset_default_context",
    "FeedCheckError",
    "ConfigurationError",
    "CredentialProviderError",
    "InvalidArgumentError",
    "NetworkError",
    "OperationCancelledError",
    "VersionParseError",
]
