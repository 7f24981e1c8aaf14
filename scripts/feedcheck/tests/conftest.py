"""Pytest fixtures for feedcheck tests.

Provides common fixtures for:
- Temporary project directories
- NuGet.Config files
- Recording diagnostics hosts and registry contexts
- A local fake NuGet V3 feed served over HTTP
"""

import base64
import json
import threading
from collections.abc import Callable, Generator
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any

import pytest

from feedcheck.config.models import FeedCheckConfig
from feedcheck.context import RegistryContext, reset_default_context
from feedcheck.diagnostics import RecordingDiagnostics


@pytest.fixture
def temp_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary directory for tests.

    Yields:
        Path to temporary directory
    """
    yield tmp_path


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """Create a temporary project directory.

    Returns:
        Path to project directory
    """
    project = temp_dir / "test-project"
    project.mkdir()
    return project


@pytest.fixture
def no_user_config(temp_dir: Path) -> Path:
    """Path of a user-level NuGet.Config that does not exist."""
    return temp_dir / "user-home" / "NuGet.Config"


def render_nuget_config(
    sources: dict[str, str] | None = None,
    credentials: dict[str, dict[str, str]] | None = None,
    disabled: list[str] | None = None,
    clear: bool = False,
) -> str:
    """Render a NuGet.Config document."""
    lines = ['<?xml version="1.0" encoding="utf-8"?>', "<configuration>"]
    if sources is not None:
        lines.append("  <packageSources>")
        if clear:
            lines.append("    <clear />")
        for key, value in sources.items():
            lines.append(f'    <add key="{key}" value="{value}" />')
        lines.append("  </packageSources>")
    if disabled:
        lines.append("  <disabledPackageSources>")
        for key in disabled:
            lines.append(f'    <add key="{key}" value="true" />')
        lines.append("  </disabledPackageSources>")
    if credentials:
        lines.append("  <packageSourceCredentials>")
        for name, values in credentials.items():
            tag = name.replace(" ", "_x0020_")
            lines.append(f"    <{tag}>")
            for key, value in values.items():
                lines.append(f'      <add key="{key}" value="{value}" />')
            lines.append(f"    </{tag}>")
        lines.append("  </packageSourceCredentials>")
    lines.append("</configuration>")
    return "\n".join(lines) + "\n"


@pytest.fixture
def write_nuget_config() -> Callable[..., Path]:
    """Return a helper writing NuGet.Config into a directory."""

    def _write(directory: Path, file_name: str = "NuGet.Config", **kwargs: Any) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / file_name
        path.write_text(render_nuget_config(**kwargs), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def host() -> RecordingDiagnostics:
    """Recording diagnostics sink."""
    return RecordingDiagnostics()


@pytest.fixture
def registry_context(
    project_dir: Path,
    host: RecordingDiagnostics,
    no_user_config: Path,
) -> RegistryContext:
    """Registry context rooted at the project directory with no NuGet.Config."""
    return RegistryContext.create(
        host,
        root=project_dir,
        config=FeedCheckConfig(),
        user_config=no_user_config,
    )


@pytest.fixture(autouse=True)
def _reset_default_context() -> Generator[None, None, None]:
    """Keep the process-wide context from leaking between tests."""
    reset_default_context()
    yield
    reset_default_context()


class FakeFeed:
    """In-memory NuGet V3 feed state.

    Attributes:
        packages: Lower-case package id -> published versions
        credentials: (username, password) required on every request, or None
        requests: (path, Authorization header) per request received
        failing_ids: Package ids answered with HTTP 500
        dropped_ids: Package ids whose connection is closed without a reply
    """

    def __init__(self) -> None:
        self.packages: dict[str, list[str]] = {}
        self.credentials: tuple[str, str] | None = None
        self.auth_scheme = "Basic"
        self.requests: list[tuple[str, str | None]] = []
        self.failing_ids: set[str] = set()
        self.dropped_ids: set[str] = set()
        self.base_url = ""
        self.index_path = "/v3/index.json"

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.index_path}"

    def add(self, package_id: str, *versions: str) -> None:
        self.packages.setdefault(package_id.lower(), []).extend(versions)

    def flat_requests(self) -> list[str]:
        return [p for p, _ in self.requests if p.startswith("/v3-flatcontainer/")]


def _make_handler(feed: FakeFeed) -> type[BaseHTTPRequestHandler]:
    class Handler(BaseHTTPRequestHandler):
        def log_message(self, format: str, *args: Any) -> None:
            pass

        def _send_json(self, status: int, data: Any) -> None:
            body = json.dumps(data).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def _authorized(self) -> bool:
            if feed.credentials is None:
                return True
            expected = base64.b64encode(":".join(feed.credentials).encode()).decode()
            return self.headers.get("Authorization") == f"Basic {expected}"

        def do_GET(self) -> None:
            feed.requests.append((self.path, self.headers.get("Authorization")))
            if not self._authorized():
                self.send_response(401)
                self.send_header("WWW-Authenticate", f'{feed.auth_scheme} realm="feed"')
                self.send_header("Content-Length", "0")
                self.end_headers()
                return

            if self.path == feed.index_path:
                self._send_json(
                    200,
                    {
                        "version": "3.0.0",
                        "resources": [
                            {
                                "@id": f"{feed.base_url}/v3-flatcontainer/",
                                "@type": "PackageBaseAddress/3.0.0",
                            },
                            {
                                "@id": f"{feed.base_url}/query",
                                "@type": "SearchQueryService",
                            },
                        ],
                    },
                )
                return

            parts = self.path.strip("/").split("/")
            if len(parts) == 3 and parts[0] == "v3-flatcontainer" and parts[2] == "index.json":
                package_id = parts[1]
                if package_id in feed.dropped_ids:
                    self.close_connection = True
                elif package_id in feed.failing_ids:
                    self._send_json(500, {"error": "boom"})
                elif package_id in feed.packages:
                    self._send_json(200, {"versions": [v.lower() for v in feed.packages[package_id]]})
                else:
                    self._send_json(404, {"error": "not found"})
                return

            self._send_json(404, {"error": "not found"})

    return Handler


@pytest.fixture
def fake_feed() -> Generator[FakeFeed, None, None]:
    """Serve a FakeFeed on localhost for the duration of a test."""
    feed = FakeFeed()
    server = ThreadingHTTPServer(("127.0.0.1", 0), _make_handler(feed))
    feed.base_url = f"http://127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield feed
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)
