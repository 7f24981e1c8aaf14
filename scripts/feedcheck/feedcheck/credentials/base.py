"""Credential provider contract.

A provider is asked for credentials when a feed answers 401/403 (or a
proxy answers 407). Providers are consulted in order by the
CredentialService; the first SUCCESS wins.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from feedcheck.cancellation import CancellationToken


class CredentialRequestType(Enum):
    """Why credentials are requested."""

    PROXY = "proxy"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"


class CredentialStatus(Enum):
    """Outcome of a provider lookup."""

    SUCCESS = "success"
    PROVIDER_NOT_APPLICABLE = "provider_not_applicable"
    USER_CANCELED = "user_canceled"


@dataclass(frozen=True)
class BasicAuthCredential:
    """User name and password restricted to a set of authentication schemes.

    Attributes:
        username: User name
        password: Password or personal access token
        authentication_types: Lower-case schemes the credential may be sent with
    """

    username: str
    password: str
    authentication_types: tuple[str, ...] = ("basic",)

    def applies_to(self, scheme: str) -> bool:
        """Check whether the credential may answer a challenge for scheme."""
        return scheme.lower() in self.authentication_types

    def __repr__(self) -> str:
        return (
            f"BasicAuthCredential(username={self.username!r}, "
            f"authentication_types={self.authentication_types!r})"
        )


@dataclass(frozen=True)
class CredentialResponse:
    """Result of a provider lookup."""

    status: CredentialStatus
    credentials: BasicAuthCredential | None = None

    @classmethod
    def success(cls, credentials: BasicAuthCredential) -> "CredentialResponse":
        return cls(status=CredentialStatus.SUCCESS, credentials=credentials)

    @classmethod
    def not_applicable(cls) -> "CredentialResponse":
        return cls(status=CredentialStatus.PROVIDER_NOT_APPLICABLE)


class CredentialProvider(ABC):
    """Abstract base class for credential providers."""

    id: str

    @abstractmethod
    def get(
        self,
        uri: str | None,
        request_type: CredentialRequestType,
        message: str | None = None,
        is_retry: bool = False,
        non_interactive: bool = True,
        cancellation: CancellationToken | None = None,
    ) -> CredentialResponse:
        """Look up credentials for uri.

        Args:
            uri: Requested feed or proxy URI
            request_type: Why credentials are needed
            message: Optional text a provider may show to a user
            is_retry: True when credentials for this URI were already rejected
            non_interactive: Never prompt when True
            cancellation: Cooperative cancellation token

        Returns:
            CredentialResponse with SUCCESS and credentials, or a non-success status
        """
        pass


class CredentialProviderRegistry:
    """Registry for in-process credential provider classes.

    Registered classes must be constructible without arguments; the
    bootstrap instantiates them ahead of the plugin and settings providers.
    """

    _providers: ClassVar[dict[str, type[CredentialProvider]]] = {}

    @classmethod
    def register(cls, provider_class: type[CredentialProvider]) -> type[CredentialProvider]:
        """Register a provider class.

        Can be used as a decorator:
            @CredentialProviderRegistry.register
            class VaultCredentialProvider(CredentialProvider):
                ...

        Args:
            provider_class: Provider class to register

        Returns:
            The registered class (for decorator usage)

        Raises:
            TypeError: If provider_class is not a CredentialProvider
            ValueError: If another class is already registered under the same name
        """
        if not (isinstance(provider_class, type) and issubclass(provider_class, CredentialProvider)):
            raise TypeError(
                f"{provider_class!r} must be a CredentialProvider subclass"
            )

        name = provider_class.__name__
        if name in cls._providers:
            existing = cls._providers[name]
            if existing is not provider_class:
                raise ValueError(
                    f"Credential provider name '{name}' already registered by "
                    f"{existing.__module__}.{existing.__name__}"
                )
            return provider_class

        cls._providers[name] = provider_class
        return provider_class

    @classmethod
    def unregister(cls, name: str) -> None:
        cls._providers.pop(name, None)

    @classmethod
    def create_all(cls) -> list[CredentialProvider]:
        """Instantiate every registered provider in registration order."""
        return [provider_class() for provider_class in cls._providers.values()]

    @classmethod
    def list_registered(cls) -> list[str]:
        return list(cls._providers.keys())
