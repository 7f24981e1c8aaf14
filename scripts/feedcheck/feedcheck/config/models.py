"""Pydantic v2 configuration models for feedcheck.yml.

Supports environment variable overrides with the FEEDCHECK_ prefix,
e.g. FEEDCHECK_HTTP__TIMEOUT_SECONDS=30.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from feedcheck.exceptions import ConfigurationError

AZURE_FEED_URL = "https://pkgs.dev.azure.com/{organization}/{project}_packaging/{feed}/nuget/v3/index.json"


def azure_feed_url(organization: str, feed: str, project: str | None = None) -> str:
    """Build the V3 index URL of an Azure DevOps Artifacts feed.

    Examples:
        >>> azure_feed_url('Signature-OpenSource', 'NetCore3')
        'https://pkgs.dev.azure.com/Signature-OpenSource/_packaging/NetCore3/nuget/v3/index.json'
    """
    return AZURE_FEED_URL.format(
        organization=organization,
        project=f"{project}/" if project else "",
        feed=feed,
    )


class AzureFeedConfig(BaseModel):
    """Azure DevOps Artifacts feed coordinates."""

    organization: str = Field(description="Azure DevOps organization")
    project: str | None = Field(
        default=None,
        description="Project for project-scoped feeds, None for organization feeds",
    )


class FeedConfig(BaseModel):
    """One remote feed to check."""

    name: str = Field(description="Feed name used in reports")
    url: str | None = Field(default=None, description="V3 service index URL")
    azure: AzureFeedConfig | None = Field(
        default=None,
        description="Azure DevOps feed, used to build the URL when 'url' is empty",
    )

    @model_validator(mode="after")
    def check_location(self) -> "FeedConfig":
        if not self.url and self.azure is None:
            raise ValueError(f"feed '{self.name}' needs either 'url' or 'azure'")
        if self.url and self.azure is not None:
            raise ValueError(f"feed '{self.name}' cannot set both 'url' and 'azure'")
        return self

    def resolved_url(self) -> str:
        """Return the service index URL."""
        if self.url:
            return self.url
        if self.azure is None:
            raise ConfigurationError(
                f"Feed '{self.name}' has no location",
                fix_hint="Set either 'url' or 'azure.organization' for this feed",
            )
        return azure_feed_url(self.azure.organization, self.name, self.azure.project)


class HttpConfig(BaseModel):
    """HTTP client configuration."""

    timeout_seconds: float = Field(
        default=100,
        gt=0,
        description="Per-request timeout",
    )
    max_credential_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Times credentials are requested after a 401/403",
    )
    user_agent: str = Field(default="feedcheck/0.1", description="User-Agent header")


class CredentialsConfig(BaseModel):
    """Credential provider configuration."""

    plugin_paths: list[Path] = Field(
        default_factory=list,
        description="Credential provider executables or directories containing them",
    )
    plugin_timeout_seconds: float = Field(
        default=300,
        gt=0,
        description="Timeout for one credential provider run",
    )
    non_interactive: bool = Field(
        default=True,
        description="Never let providers prompt",
    )


class FeedCheckConfig(BaseSettings):
    """Root configuration model for feedcheck.yml."""

    feeds: list[FeedConfig] = Field(default_factory=list)
    projects: list[str] = Field(
        default_factory=list,
        description="Default candidate packages when none are given on the command line",
    )
    http: HttpConfig = Field(default_factory=HttpConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    max_parallel: int = Field(
        default=1,
        ge=1,
        le=32,
        description="Existence checks run concurrently per feed",
    )
    no_cache: bool = Field(default=False, description="Disable the per-run response cache")

    model_config = {
        "env_prefix": "FEEDCHECK_",
        "env_nested_delimiter": "__",
    }

    @field_validator("feeds")
    @classmethod
    def unique_feed_names(cls, v: list[FeedConfig]) -> list[FeedConfig]:
        seen: set[str] = set()
        for feed in v:
            if feed.name.lower() in seen:
                raise ValueError(f"duplicate feed name '{feed.name}'")
            seen.add(feed.name.lower())
        return v

    def get_feed(self, name: str) -> FeedConfig | None:
        for feed in self.feeds:
            if feed.name.lower() == name.lower():
                return feed
        return None
