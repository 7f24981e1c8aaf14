"""Registry context: everything feeds share for one build run.

RegistryContext.create() performs the one-time setup:
1. Wrap the host diagnostics sink in a RegistryLogger
2. Load NuGet.Config settings that apply to the working directory
3. Build the credential chain: registered providers, plugin executables,
   then the NuGet.Config credentials as fallback
4. Create the shared response cache

Hosts either pass a context to each Feed explicitly, or call
ensure_initialized() once and let feeds use the process default.
"""

import threading
from pathlib import Path

from feedcheck.config.models import FeedCheckConfig
from feedcheck.credentials.base import CredentialProvider, CredentialProviderRegistry
from feedcheck.credentials.plugin import build_plugin_providers
from feedcheck.credentials.service import CredentialService
from feedcheck.credentials.settings_provider import SettingsCredentialProvider
from feedcheck.diagnostics import DiagnosticsSink
from feedcheck.exceptions import ConfigurationError
from feedcheck.logger import RegistryLogger
from feedcheck.protocol.http import HttpSource, SourceCacheContext
from feedcheck.protocol.resources import SourceRepository
from feedcheck.sources.loader import Settings, load_default_settings
from feedcheck.sources.models import PackageSource
from feedcheck.sources.provider import PackageSourceProvider


class RegistryContext:
    """Shared, read-only state for feed queries.

    Attributes:
        host: Host diagnostics sink
        logger: Registry-client logger bound to host
        config: Tool configuration
        settings: Merged NuGet.Config settings
        source_provider: Configured package sources
        credential_service: Ordered credential provider chain
        cache: Per-run response cache
    """

    def __init__(
        self,
        host: DiagnosticsSink,
        logger: RegistryLogger,
        config: FeedCheckConfig,
        settings: Settings,
        source_provider: PackageSourceProvider,
        credential_service: CredentialService,
        cache: SourceCacheContext,
    ) -> None:
        self.host = host
        self.logger = logger
        self.config = config
        self.settings = settings
        self.source_provider = source_provider
        self.credential_service = credential_service
        self.cache = cache

    @classmethod
    def create(
        cls,
        host: DiagnosticsSink,
        root: Path | None = None,
        config: FeedCheckConfig | None = None,
        user_config: Path | None = None,
    ) -> "RegistryContext":
        """Build a context for host.

        Args:
            host: Diagnostics sink of the build host
            root: Directory for NuGet.Config discovery (defaults to cwd)
            config: Tool configuration (defaults to FeedCheckConfig())
            user_config: Override for the user-level NuGet.Config

        Returns:
            Ready RegistryContext

        Raises:
            ConfigurationError: If a NuGet.Config file is invalid
        """
        if config is None:
            config = FeedCheckConfig()
        logger = RegistryLogger(host)

        settings = load_default_settings(root, user_config=user_config)
        for path in settings.config_paths:
            logger.log_debug(f"Using settings file {path}")
        for warning in settings.warnings:
            logger.log_warning(warning)

        source_provider = PackageSourceProvider(settings)
        providers: list[CredentialProvider] = []
        providers.extend(CredentialProviderRegistry.create_all())
        providers.extend(
            build_plugin_providers(
                config.credentials.plugin_paths,
                timeout=config.credentials.plugin_timeout_seconds,
                logger=logger,
            )
        )
        providers.append(SettingsCredentialProvider(source_provider))

        credential_service = CredentialService(
            providers,
            non_interactive=config.credentials.non_interactive,
            logger=logger,
        )
        return cls(
            host=host,
            logger=logger,
            config=config,
            settings=settings,
            source_provider=source_provider,
            credential_service=credential_service,
            cache=SourceCacheContext(no_cache=config.no_cache),
        )

    def create_http_source(self, source_uri: str) -> HttpSource:
        """Create an authenticated HTTP client for one source."""
        return HttpSource(
            source_uri,
            credential_service=self.credential_service,
            logger=self.logger,
            timeout=self.config.http.timeout_seconds,
            max_credential_attempts=self.config.http.max_credential_attempts,
            user_agent=self.config.http.user_agent,
        )

    def create_repository(self, url: str, name: str | None = None) -> SourceRepository:
        """Create a SourceRepository for a V3 feed URL."""
        package_source = PackageSource(name=name or url, source=url, protocol_version=3)
        return SourceRepository(package_source, self.create_http_source(url))


_default_context: RegistryContext | None = None
_default_lock = threading.RLock()


def ensure_initialized(
    host: DiagnosticsSink,
    root: Path | None = None,
    config: FeedCheckConfig | None = None,
) -> RegistryLogger:
    """Initialize the process-wide context once and return its logger.

    Later calls return the existing logger, whatever their arguments.

    Raises:
        ConfigurationError: If the first initialization fails
    """
    global _default_context
    with _default_lock:
        if _default_context is None:
            _default_context = RegistryContext.create(host, root=root, config=config)
        return _default_context.logger


def get_default_context() -> RegistryContext:
    """Return the process-wide context.

    Raises:
        ConfigurationError: If ensure_initialized() was never called
    """
    with _default_lock:
        if _default_context is None:
            raise ConfigurationError(
                "Registry context is not initialized",
                fix_hint="Call feedcheck.ensure_initialized(host) before creating feeds",
            )
        return _default_context


def reset_default_context() -> None:
    """Forget the process-wide context."""
    global _default_context
    with _default_lock:
        _default_context = None
