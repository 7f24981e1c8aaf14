"""Ordered credential provider chain."""

import threading

from feedcheck import cancellation as cancel
from feedcheck.cancellation import CancellationToken
from feedcheck.credentials.base import (
    BasicAuthCredential,
    CredentialProvider,
    CredentialRequestType,
    CredentialStatus,
)
from feedcheck.exceptions import InvalidArgumentError
from feedcheck.logger import RegistryLogger


class CredentialService:
    """Asks providers in order until one supplies credentials.

    Successful answers are cached per (URI, request type) for the process
    run; a retry drops the cached answer because the feed just rejected it.
    """

    def __init__(
        self,
        providers: list[CredentialProvider],
        non_interactive: bool = True,
        logger: RegistryLogger | None = None,
    ) -> None:
        self.providers = list(providers)
        self.non_interactive = non_interactive
        self.logger = logger
        self._cache: dict[tuple[str, CredentialRequestType], BasicAuthCredential] = {}
        self._lock = threading.Lock()

    def get_credentials(
        self,
        uri: str,
        request_type: CredentialRequestType,
        message: str | None = None,
        is_retry: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> BasicAuthCredential | None:
        """Return credentials for uri, or None when no provider applies.

        Raises:
            InvalidArgumentError: If uri is empty
            OperationCancelledError: If cancellation was requested
            CredentialProviderError: If a plugin provider fails
        """
        if not uri:
            raise InvalidArgumentError("uri is required")
        cancel.check(cancellation)

        key = (uri.rstrip("/").lower(), request_type)
        with self._lock:
            if is_retry:
                self._cache.pop(key, None)
            elif key in self._cache:
                return self._cache[key]

        for provider in self.providers:
            response = provider.get(
                uri,
                request_type,
                message=message,
                is_retry=is_retry,
                non_interactive=self.non_interactive,
                cancellation=cancellation,
            )
            if response.status is CredentialStatus.SUCCESS and response.credentials:
                if self.logger:
                    self.logger.log_debug(f"Credentials for {uri} supplied by {provider.id}")
                with self._lock:
                    self._cache[key] = response.credentials
                return response.credentials
            if response.status is CredentialStatus.USER_CANCELED:
                break

        if self.logger:
            self.logger.log_debug(f"No credential provider applies to {uri}")
        return None
