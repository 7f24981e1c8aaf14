"""Tests for NuGet.Config discovery and merging.

Tests cover:
- Discovery from a directory up to the filesystem root
- The user-level file as lowest priority
- <packageSources> add / clear / remove semantics
- <disabledPackageSources>
- <packageSourceCredentials> parsing, including encoded names and
  encrypted passwords
- Environment variable expansion
- Invalid files
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from feedcheck.exceptions import ConfigurationError
from feedcheck.sources.loader import (
    discover_config_files,
    expand_environment_variables,
    load_default_settings,
    load_settings,
)


class TestDiscoverConfigFiles:
    """Tests for discover_config_files()."""

    def test_closest_file_first(
        self,
        temp_dir: Path,
        no_user_config: Path,
        write_nuget_config: Callable[..., Path],
    ) -> None:
        """Test that files are ordered from the start directory upwards."""
        outer = write_nuget_config(temp_dir, sources={})
        inner = write_nuget_config(temp_dir / "repo" / "src", sources={})

        found = discover_config_files(temp_dir / "repo" / "src", user_config=no_user_config)

        assert found[:2] == [inner, outer]

    def test_user_file_last(
        self,
        temp_dir: Path,
        write_nuget_config: Callable[..., Path],
    ) -> None:
        """Test that the user-level file has the lowest priority."""
        user = write_nuget_config(temp_dir / "home", sources={})
        local = write_nuget_config(temp_dir / "repo", sources={})

        found = discover_config_files(temp_dir / "repo", user_config=user)

        assert found[0] == local
        assert found[-1] == user

    def test_lower_case_file_name(
        self,
        project_dir: Path,
        no_user_config: Path,
        write_nuget_config: Callable[..., Path],
    ) -> None:
        """Test that nuget.config is found as well."""
        path = write_nuget_config(project_dir, file_name="nuget.config", sources={})

        found = discover_config_files(project_dir, user_config=no_user_config)

        assert any(p.samefile(path) for p in found)

    def test_nothing_found(self, project_dir: Path, no_user_config: Path) -> None:
        """Test a directory tree without config files."""
        found = discover_config_files(project_dir, user_config=no_user_config)

        assert all(not str(p).startswith(str(project_dir)) for p in found)


class TestLoadSettings:
    """Tests for load_settings() merging."""

    def test_sources_in_declaration_order(
        self,
        project_dir: Path,
        write_nuget_config: Callable[..., Path],
    ) -> None:
        """Test that sources keep their declaration order."""
        path = write_nuget_config(
            project_dir,
            sources={"b-feed": "https://b.example/v3/index.json", "a-feed": "https://a.example/v3/index.json"},
        )

        settings = load_settings([path])

        assert [s.name for s in settings.sources] == ["b-feed", "a-feed"]
        assert settings.sources[0].origin == path

    def test_closer_file_overrides_value(
        self,
        temp_dir: Path,
        write_nuget_config: Callable[..., Path],
    ) -> None:
        """Test that a closer file replaces a source URL but keeps its position."""
        outer = write_nuget_config(
            temp_dir,
            sources={"first": "https://old.example/v3/index.json", "second": "https://s.example/v3/index.json"},
        )
        inner = write_nuget_config(temp_dir / "repo", sources={"FIRST": "https://new.example/v3/index.json"})

        settings = load_settings([inner, outer])

        assert [s.name for s in settings.sources] == ["FIRST", "second"]
        assert settings.sources[0].source == "https://new.example/v3/index.json"

    def test_clear_drops_inherited_sources(
        self,
        temp_dir: Path,
        write_nuget_config: Callable[..., Path],
    ) -> None:
        """Test that <clear /> in a closer file removes farther sources."""
        outer = write_nuget_config(temp_dir, sources={"nuget.org": "https://api.nuget.org/v3/index.json"})
        inner = write_nuget_config(
            temp_dir / "repo",
            sources={"private": "https://private.example/v3/index.json"},
            clear=True,
        )

        settings = load_settings([inner, outer])

        assert [s.name for s in settings.sources] == ["private"]

    def test_remove_entry(self, project_dir: Path) -> None:
        """Test that <remove key=...> drops a source."""
        path = project_dir / "NuGet.Config"
        path.write_text(
            "<configuration><packageSources>"
            '<add key="a" value="https://a.example/v3/index.json" />'
            '<add key="b" value="https://b.example/v3/index.json" />'
            '<remove key="A" />'
            "</packageSources></configuration>",
            encoding="utf-8",
        )

        settings = load_settings([path])

        assert [s.name for s in settings.sources] == ["b"]

    def test_entry_without_value_warns(self, project_dir: Path) -> None:
        """Test that incomplete <add> elements are skipped with a warning."""
        path = project_dir / "NuGet.Config"
        path.write_text(
            '<configuration><packageSources><add key="broken" /></packageSources></configuration>',
            encoding="utf-8",
        )

        settings = load_settings([path])

        assert settings.sources == []
        assert len(settings.warnings) == 1

    def test_protocol_version(self, project_dir: Path) -> None:
        """Test the protocolVersion attribute."""
        path = project_dir / "NuGet.Config"
        path.write_text(
            "<configuration><packageSources>"
            '<add key="v3" value="https://a.example/v3/index.json" protocolVersion="3" />'
            '<add key="v2" value="https://b.example/api/v2" />'
            "</packageSources></configuration>",
            encoding="utf-8",
        )

        settings = load_settings([path])

        assert [s.protocol_version for s in settings.sources] == [3, 2]

    def test_disabled_sources(
        self,
        project_dir: Path,
        write_nuget_config: Callable[..., Path],
    ) -> None:
        """Test that disabled source names are collected case-insensitively."""
        path = write_nuget_config(
            project_dir,
            sources={"Local": "https://local.example/v3/index.json"},
            disabled=["Local"],
        )

        settings = load_settings([path])

        assert settings.disabled == {"local"}

    def test_clear_text_credentials(
        self,
        project_dir: Path,
        write_nuget_config: Callable[..., Path],
    ) -> None:
        """Test parsing of a clear-text credential."""
        path = write_nuget_config(
            project_dir,
            sources={"My Feed": "https://feed.example/v3/index.json"},
            credentials={
                "My Feed": {
                    "Username": "builder",
                    "ClearTextPassword": "s3cret",
                    "ValidAuthenticationTypes": "Basic, Negotiate",
                }
            },
        )

        settings = load_settings([path])
        credential = settings.credentials["my feed"]

        assert credential.source == "My Feed"
        assert credential.username == "builder"
        assert credential.password == "s3cret"
        assert credential.is_password_clear_text
        assert credential.valid_authentication_types == ("basic", "negotiate")
        assert credential.is_valid()

    def test_encrypted_password_warns(
        self,
        project_dir: Path,
        write_nuget_config: Callable[..., Path],
    ) -> None:
        """Test that encrypted passwords are unusable and reported."""
        path = write_nuget_config(
            project_dir,
            sources={"corp": "https://corp.example/v3/index.json"},
            credentials={"corp": {"Username": "builder", "Password": "AQAAANCMnd8BFdERjHoAwE"}},
        )

        settings = load_settings([path])
        credential = settings.credentials["corp"]

        assert credential.password is None
        assert not credential.is_password_clear_text
        assert not credential.is_valid()
        assert any("encrypted password" in w for w in settings.warnings)

    def test_password_environment_variable(
        self,
        project_dir: Path,
        write_nuget_config: Callable[..., Path],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that %VAR% in credentials is expanded."""
        monkeypatch.setenv("FEED_TOKEN", "from-env")
        path = write_nuget_config(
            project_dir,
            sources={"ci": "https://ci.example/v3/index.json"},
            credentials={"ci": {"Username": "ci", "ClearTextPassword": "%FEED_TOKEN%"}},
        )

        settings = load_settings([path])

        assert settings.credentials["ci"].password == "from-env"

    def test_invalid_xml(self, project_dir: Path) -> None:
        """Test that malformed XML raises ConfigurationError."""
        path = project_dir / "NuGet.Config"
        path.write_text("<configuration><packageSources>", encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings([path])

        assert "Invalid XML" in exc_info.value.message

    def test_wrong_root_element(self, project_dir: Path) -> None:
        """Test that a non-NuGet XML file is rejected."""
        path = project_dir / "NuGet.Config"
        path.write_text("<settings />", encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings([path])

        assert "<settings>" in str(exc_info.value.details)


class TestLoadDefaultSettings:
    """Tests for load_default_settings()."""

    def test_merges_user_and_local_files(
        self,
        temp_dir: Path,
        write_nuget_config: Callable[..., Path],
    ) -> None:
        """Test that user-level credentials apply to locally declared sources."""
        user = write_nuget_config(
            temp_dir / "home",
            sources={"nuget.org": "https://api.nuget.org/v3/index.json"},
            credentials={"corp": {"Username": "me", "ClearTextPassword": "pw"}},
        )
        repo = temp_dir / "repo"
        write_nuget_config(repo, sources={"corp": "https://corp.example/v3/index.json"})

        settings = load_default_settings(repo, user_config=user)

        names = [s.name for s in settings.sources]
        assert names[:2] == ["nuget.org", "corp"]
        assert settings.credentials["corp"].username == "me"


class TestExpandEnvironmentVariables:
    """Tests for expand_environment_variables()."""

    def test_unknown_variable_left_alone(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that undefined names are not replaced."""
        monkeypatch.delenv("FEEDCHECK_UNDEFINED_VAR", raising=False)

        assert expand_environment_variables("%FEEDCHECK_UNDEFINED_VAR%") == "%FEEDCHECK_UNDEFINED_VAR%"

    def test_multiple_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test several references in one value."""
        monkeypatch.setenv("FC_A", "1")
        monkeypatch.setenv("FC_B", "2")

        assert expand_environment_variables("%FC_A%-%FC_B%") == "1-2"
