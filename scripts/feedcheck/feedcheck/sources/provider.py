"""Read-only view of the package sources in loaded settings."""

from feedcheck.sources.loader import Settings
from feedcheck.sources.models import PackageSource


class PackageSourceProvider:
    """Builds PackageSource objects from Settings.

    Sources are built once on first use and returned in declaration order.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._sources: tuple[PackageSource, ...] | None = None

    def load_package_sources(self) -> tuple[PackageSource, ...]:
        """Return all declared sources, enabled or not, with their credentials."""
        if self._sources is None:
            self._sources = tuple(
                PackageSource(
                    name=entry.name,
                    source=entry.source,
                    is_enabled=entry.name.lower() not in self.settings.disabled,
                    protocol_version=entry.protocol_version,
                    credentials=self.settings.credentials.get(entry.name.lower()),
                    origin=entry.origin,
                )
                for entry in self.settings.sources
            )
        return self._sources

    def enabled_sources(self) -> list[PackageSource]:
        return [s for s in self.load_package_sources() if s.is_enabled]
