"""Authenticated JSON GETs against one package source.

Requests go out anonymously first. On 401/403 the credential service is
asked for credentials for the *source* URI (not the request URI), and the
request is repeated with a basic Authorization header. Accepted credentials
are reused for later requests to the same source.
"""

import base64
import http.client
import json
import threading
import urllib.error
import urllib.request
from typing import Any

from feedcheck import cancellation as cancel
from feedcheck.cancellation import CancellationToken
from feedcheck.credentials.base import BasicAuthCredential, CredentialRequestType
from feedcheck.credentials.service import CredentialService
from feedcheck.exceptions import NetworkError
from feedcheck.logger import RegistryLogger

DEFAULT_USER_AGENT = "feedcheck/0.1"

# Marker for a cached 404
_NOT_FOUND = object()


class SourceCacheContext:
    """Per-run cache of decoded responses, shared by all feeds.

    Attributes:
        no_cache: Bypass the cache entirely
    """

    def __init__(self, no_cache: bool = False) -> None:
        self.no_cache = no_cache
        self._entries: dict[str, Any] = {}
        self._lock = threading.Lock()

    def lookup(self, url: str) -> tuple[bool, dict[str, Any] | None]:
        """Return (hit, value); a cached 404 is a hit with value None."""
        if self.no_cache:
            return False, None
        with self._lock:
            if url not in self._entries:
                return False, None
            value = self._entries[url]
        return True, None if value is _NOT_FOUND else value

    def store(self, url: str, value: dict[str, Any] | None) -> None:
        if self.no_cache:
            return
        with self._lock:
            self._entries[url] = _NOT_FOUND if value is None else value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _basic_header(credentials: BasicAuthCredential) -> str:
    token = base64.b64encode(f"{credentials.username}:{credentials.password}".encode()).decode("ascii")
    return f"Basic {token}"


def _challenge_schemes(error: urllib.error.HTTPError) -> set[str]:
    """Extract auth schemes from WWW-Authenticate headers (empty when absent)."""
    schemes: set[str] = set()
    headers = error.headers.get_all("WWW-Authenticate") if error.headers else None
    for header in headers or []:
        for part in header.split(","):
            token = part.strip().split(" ", 1)[0]
            if token and "=" not in token:
                schemes.add(token.lower())
    return schemes


class HttpSource:
    """JSON HTTP client bound to one package source."""

    def __init__(
        self,
        source_uri: str,
        credential_service: CredentialService | None = None,
        logger: RegistryLogger | None = None,
        timeout: float = 100,
        max_credential_attempts: int = 3,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.source_uri = source_uri
        self.credential_service = credential_service
        self.logger = logger
        self.timeout = timeout
        self.max_credential_attempts = max_credential_attempts
        self.user_agent = user_agent
        self._credentials: BasicAuthCredential | None = None
        self._lock = threading.Lock()

    def get_json(
        self,
        url: str,
        cache: SourceCacheContext | None = None,
        cancellation: CancellationToken | None = None,
    ) -> dict[str, Any] | None:
        """GET url and decode its JSON body.

        Args:
            url: Absolute URL to fetch
            cache: Per-run response cache
            cancellation: Checked before the request is sent

        Returns:
            Decoded JSON object, or None on 404

        Raises:
            NetworkError: On transport errors, non-2xx/404 statuses,
                rejected credentials or a body that is not a JSON object
            OperationCancelledError: If cancellation was requested
        """
        cancel.check(cancellation)

        if cache is not None:
            hit, value = cache.lookup(url)
            if hit:
                return value

        value = self._fetch(url, cancellation)
        if cache is not None:
            cache.store(url, value)
        return value

    def _fetch(self, url: str, cancellation: CancellationToken | None) -> dict[str, Any] | None:
        with self._lock:
            credentials = self._credentials
        attempts = 0

        while True:
            request = urllib.request.Request(
                url,
                headers={"Accept": "application/json", "User-Agent": self.user_agent},
            )
            if credentials is not None:
                request.add_header("Authorization", _basic_header(credentials))

            if self.logger:
                self.logger.log_verbose(f"  GET {url}")

            try:
                with urllib.request.urlopen(request, timeout=self.timeout) as response:
                    body = response.read()
                    status = response.status
            except urllib.error.HTTPError as e:
                if e.code == 404:
                    if self.logger:
                        self.logger.log_verbose(f"  NotFound {url}")
                    return None
                if e.code not in (401, 403):
                    raise NetworkError(
                        f"Request to {url} failed: HTTP {e.code}",
                        details=str(e.reason),
                    ) from e
                if attempts >= self.max_credential_attempts or self.credential_service is None:
                    raise NetworkError(
                        f"Feed {self.source_uri} rejected the request: HTTP {e.code}",
                        details=f"{attempts} credential attempt(s) made",
                        fix_hint="Add credentials for this source to NuGet.Config "
                        "<packageSourceCredentials> or configure a credential provider",
                    ) from e

                schemes = _challenge_schemes(e)
                request_type = (
                    CredentialRequestType.UNAUTHORIZED if e.code == 401 else CredentialRequestType.FORBIDDEN
                )
                credentials = self.credential_service.get_credentials(
                    self.source_uri,
                    request_type,
                    message=f"Credentials for {self.source_uri}",
                    is_retry=attempts > 0,
                    cancellation=cancellation,
                )
                attempts += 1
                if credentials is None or (schemes and not any(credentials.applies_to(s) for s in schemes)):
                    raise NetworkError(
                        f"No usable credentials for {self.source_uri} (HTTP {e.code})",
                        details=f"Server accepts: {', '.join(sorted(schemes)) or 'unspecified'}",
                        fix_hint="Only basic authentication credentials are supported",
                    ) from e
                continue
            except urllib.error.URLError as e:
                raise NetworkError(f"Cannot reach {url}", details=str(e.reason)) from e
            except TimeoutError as e:
                raise NetworkError(f"Request to {url} timed out after {self.timeout}s") from e
            except (OSError, http.client.HTTPException) as e:
                # Dropped connections and truncated bodies surface outside URLError
                raise NetworkError(f"Request to {url} failed", details=str(e) or type(e).__name__) from e

            if self.logger:
                self.logger.log_verbose(f"  OK {url} ({status})")
            if credentials is not None:
                with self._lock:
                    self._credentials = credentials
            return self._decode(url, body)

    @staticmethod
    def _decode(url: str, body: bytes) -> dict[str, Any]:
        try:
            data = json.loads(body.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise NetworkError(f"Invalid JSON from {url}", details=str(e)) from e
        if not isinstance(data, dict):
            raise NetworkError(
                f"Unexpected response from {url}",
                details=f"Expected a JSON object, got {type(data).__name__}",
            )
        return data
