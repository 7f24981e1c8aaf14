"""Feed resources: service index discovery and package existence."""

import threading
import urllib.parse

from feedcheck.cancellation import CancellationToken
from feedcheck.exceptions import NetworkError, VersionParseError
from feedcheck.logger import RegistryLogger
from feedcheck.protocol.http import HttpSource, SourceCacheContext
from feedcheck.protocol.models import PackageIdentity, ServiceIndex
from feedcheck.sources.models import PackageSource
from feedcheck.utils.version import PackageVersion, parse_version

PACKAGE_BASE_ADDRESS_TYPES = ("PackageBaseAddress/3.0.0",)


class MetadataResource:
    """Existence and version queries over the flat container resource."""

    def __init__(self, base_address: str, http: HttpSource) -> None:
        self.base_address = base_address.rstrip("/") + "/"
        self.http = http

    def _index_url(self, package_id: str) -> str:
        return f"{self.base_address}{urllib.parse.quote(package_id.lower(), safe='')}/index.json"

    def get_versions(
        self,
        package_id: str,
        cache: SourceCacheContext | None = None,
        logger: RegistryLogger | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[PackageVersion]:
        """List the published versions of a package (empty when unknown)."""
        data = self.http.get_json(self._index_url(package_id), cache=cache, cancellation=cancellation)
        if data is None:
            return []
        versions: list[PackageVersion] = []
        for raw in data.get("versions") or []:
            try:
                versions.append(parse_version(str(raw)))
            except VersionParseError:
                if logger:
                    logger.log_warning(f"Ignoring invalid version '{raw}' of {package_id}")
        return versions

    def exists(
        self,
        identity: PackageIdentity,
        cache: SourceCacheContext | None = None,
        logger: RegistryLogger | None = None,
        cancellation: CancellationToken | None = None,
    ) -> bool:
        """Check whether identity is published on the feed.

        Raises:
            NetworkError: If the feed cannot be queried
        """
        versions = self.get_versions(identity.id, cache=cache, logger=logger, cancellation=cancellation)
        return identity.version in versions


class SourceRepository:
    """A package source plus lazily discovered resources."""

    def __init__(self, package_source: PackageSource, http: HttpSource) -> None:
        self.package_source = package_source
        self.http = http
        self._service_index: ServiceIndex | None = None
        self._lock = threading.Lock()

    def get_service_index(
        self,
        cache: SourceCacheContext | None = None,
        cancellation: CancellationToken | None = None,
    ) -> ServiceIndex:
        """Fetch the V3 service index once.

        Raises:
            NetworkError: If the index cannot be fetched or is not a V3 index
        """
        with self._lock:
            if self._service_index is not None:
                return self._service_index

        url = self.package_source.source
        data = self.http.get_json(url, cache=cache, cancellation=cancellation)
        if data is None:
            raise NetworkError(
                f"Service index not found: {url}",
                fix_hint="Check the feed URL",
            )
        index = ServiceIndex.from_json(url, data)
        with self._lock:
            self._service_index = index
        return index

    def get_metadata_resource(
        self,
        cache: SourceCacheContext | None = None,
        cancellation: CancellationToken | None = None,
    ) -> MetadataResource:
        """Build the MetadataResource for this source.

        Raises:
            NetworkError: If the service index has no package base address
        """
        index = self.get_service_index(cache=cache, cancellation=cancellation)
        base_address = index.get_resource_url(*PACKAGE_BASE_ADDRESS_TYPES)
        if base_address is None:
            raise NetworkError(
                f"Feed {self.package_source.source} has no PackageBaseAddress resource",
                details=f"Expected one of: {', '.join(PACKAGE_BASE_ADDRESS_TYPES)}",
            )
        return MetadataResource(base_address, self.http)
