"""Configuration management for feedcheck."""

from feedcheck.config.models import (
    AzureFeedConfig,
    CredentialsConfig,
    FeedCheckConfig,
    FeedConfig,
    HttpConfig,
    azure_feed_url,
)

__all__ = [
    "FeedCheckConfig",
    "FeedConfig",
    "AzureFeedConfig",
    "HttpConfig",
    "CredentialsConfig",
    "azure_feed_url",
]
