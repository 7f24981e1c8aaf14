"""Pydantic models for package sources declared in NuGet.Config files."""

from pathlib import Path
from urllib.parse import urlsplit

from pydantic import BaseModel, Field


class PackageSourceCredential(BaseModel):
    """Stored credentials for one package source.

    Only clear-text passwords can be used: encrypted ones are kept as
    ``None`` and make the credential invalid.
    """

    model_config = {"frozen": True}

    source: str = Field(description="Name of the source the credential belongs to")
    username: str | None = Field(default=None, description="User name")
    password: str | None = Field(
        default=None,
        description="Clear-text password, None when it could not be read",
        repr=False,
    )
    is_password_clear_text: bool = Field(
        default=True,
        description="Whether the password was stored in clear text",
    )
    valid_authentication_types: tuple[str, ...] = Field(
        default=(),
        description="Authentication schemes the credential may be sent with",
    )

    def is_valid(self) -> bool:
        """Check that both a user name and a password are available."""
        return bool(self.username) and bool(self.password)


class PackageSource(BaseModel):
    """A configured package source."""

    model_config = {"frozen": True}

    name: str = Field(description="Source key")
    source: str = Field(description="Source URL or local path")
    is_enabled: bool = Field(default=True, description="Whether the source is enabled")
    protocol_version: int = Field(default=2, description="NuGet protocol version")
    credentials: PackageSourceCredential | None = Field(default=None)
    origin: Path | None = Field(
        default=None,
        description="Config file the source was declared in",
    )

    @property
    def is_http(self) -> bool:
        return urlsplit(self.source).scheme.lower() in ("http", "https")

    @property
    def is_absolute_uri(self) -> bool:
        parts = urlsplit(self.source)
        return bool(parts.scheme) and bool(parts.netloc)
