"""Tests for PackageSourceProvider and package source models."""

from collections.abc import Callable
from pathlib import Path

from feedcheck.sources.loader import Settings, load_settings
from feedcheck.sources.models import PackageSource, PackageSourceCredential
from feedcheck.sources.provider import PackageSourceProvider


class TestPackageSourceProvider:
    """Tests for PackageSourceProvider."""

    def test_attaches_credentials_and_enabled_state(
        self,
        project_dir: Path,
        write_nuget_config: Callable[..., Path],
    ) -> None:
        """Test that sources carry their credentials and disabled flag."""
        path = write_nuget_config(
            project_dir,
            sources={
                "public": "https://api.nuget.org/v3/index.json",
                "Corp": "https://corp.example/v3/index.json",
            },
            disabled=["public"],
            credentials={"corp": {"Username": "me", "ClearTextPassword": "pw"}},
        )

        provider = PackageSourceProvider(load_settings([path]))
        public, corp = provider.load_package_sources()

        assert not public.is_enabled
        assert public.credentials is None
        assert corp.is_enabled
        assert corp.credentials is not None
        assert corp.credentials.username == "me"
        assert corp.origin == path
        assert provider.enabled_sources() == [corp]

    def test_sources_built_once(self) -> None:
        """Test that the source tuple is cached."""
        provider = PackageSourceProvider(Settings())

        assert provider.load_package_sources() is provider.load_package_sources()
        assert provider.load_package_sources() == ()


class TestPackageSourceModels:
    """Tests for PackageSource and PackageSourceCredential."""

    def test_is_http(self) -> None:
        """Test URL scheme detection."""
        assert PackageSource(name="a", source="HTTPS://feed.example/v3/index.json").is_http
        assert not PackageSource(name="b", source="/srv/packages").is_http

    def test_is_absolute_uri(self) -> None:
        """Test absolute URI detection."""
        assert PackageSource(name="a", source="https://feed.example/v3/index.json").is_absolute_uri
        assert not PackageSource(name="b", source="packages/local").is_absolute_uri

    def test_credential_validity(self) -> None:
        """Test that both user name and password are required."""
        assert PackageSourceCredential(source="a", username="u", password="p").is_valid()
        assert not PackageSourceCredential(source="a", username="u").is_valid()
        assert not PackageSourceCredential(source="a", password="p").is_valid()

    def test_password_not_in_repr(self) -> None:
        """Test that the password never shows up in repr()."""
        credential = PackageSourceCredential(source="a", username="u", password="hunter2")

        assert "hunter2" not in repr(credential)
