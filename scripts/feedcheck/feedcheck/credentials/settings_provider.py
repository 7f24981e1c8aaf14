"""Credential provider backed by <packageSourceCredentials> in NuGet.Config.

Only basic authentication is supported: the returned credential refuses
any other scheme.
"""

import uuid
from urllib.parse import unquote, urlsplit

from feedcheck import cancellation as cancel
from feedcheck.cancellation import CancellationToken
from feedcheck.credentials.base import (
    BasicAuthCredential,
    CredentialProvider,
    CredentialRequestType,
    CredentialResponse,
)
from feedcheck.exceptions import InvalidArgumentError
from feedcheck.sources.provider import PackageSourceProvider

DEFAULT_PORTS = {"http": 80, "https": 443}

ODATA_METADATA = "$metadata"


def _comparable(uri: str) -> tuple[str, str, int | None, str] | None:
    """Reduce a URI to (scheme, host, port, path) for comparison.

    Trailing slashes and an OData '$metadata' suffix are removed. Returns
    None when the URI is not absolute.
    """
    text = uri.strip().rstrip("/")
    if text.lower().endswith(ODATA_METADATA):
        text = text[: -len(ODATA_METADATA)].rstrip("/")

    parts = urlsplit(text)
    if not parts.scheme or not parts.hostname:
        return None
    scheme = parts.scheme.lower()
    try:
        port = parts.port
    except ValueError:
        return None
    if port is None:
        port = DEFAULT_PORTS.get(scheme)
    path = unquote(parts.path) or "/"
    return (scheme, parts.hostname.lower(), port, path.lower())


def uri_equals(uri1: str, uri2: str) -> bool:
    """Check that scheme, server and path of two URIs are identical.

    The comparison ignores case, trailing slashes, percent-escaping, query
    strings and a trailing '$metadata' segment.

    Examples:
        >>> uri_equals('https://example.com/v3/index.json', 'HTTPS://Example.com/v3/index.json/$metadata')
        True
    """
    first = _comparable(uri1)
    return first is not None and first == _comparable(uri2)


class SettingsCredentialProvider(CredentialProvider):
    """Supplies the stored credentials of the configured source matching a URI."""

    def __init__(self, source_provider: PackageSourceProvider) -> None:
        if source_provider is None:
            raise InvalidArgumentError("source_provider is required")
        self._source_provider = source_provider
        self.id = f"{type(self).__name__}_{uuid.uuid4()}"

    def get(
        self,
        uri: str | None,
        request_type: CredentialRequestType,
        message: str | None = None,
        is_retry: bool = False,
        non_interactive: bool = True,
        cancellation: CancellationToken | None = None,
    ) -> CredentialResponse:
        if not uri:
            raise InvalidArgumentError("uri is required")

        cancel.check(cancellation)

        # On a retry the stored credentials were just rejected
        if is_retry or request_type is CredentialRequestType.PROXY:
            return CredentialResponse.not_applicable()

        credentials = self._find_credentials(uri)
        if credentials is None:
            return CredentialResponse.not_applicable()
        return CredentialResponse.success(credentials)

    def _find_credentials(self, uri: str) -> BasicAuthCredential | None:
        for source in self._source_provider.load_package_sources():
            stored = source.credentials
            if (
                stored is not None
                and stored.is_valid()
                and source.is_absolute_uri
                and uri_equals(source.source, uri)
            ):
                return BasicAuthCredential(
                    username=stored.username or "",
                    password=stored.password or "",
                    authentication_types=("basic",),
                )
        return None
