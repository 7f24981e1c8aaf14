"""Remote feeds and the "what still needs publishing" check.

A Feed is created per target registry. check_existence() asks the feed,
once, whether each candidate package already exists at the target version
and splits the candidates into packages to publish and packages already
published. describe_status() turns that split into a short report.
"""

import threading
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from feedcheck.cancellation import CancellationToken
from feedcheck.config.models import azure_feed_url
from feedcheck.context import RegistryContext, get_default_context
from feedcheck.diagnostics import DiagnosticsSink
from feedcheck.exceptions import ConfigurationError, InvalidArgumentError
from feedcheck.protocol.models import PackageIdentity
from feedcheck.protocol.resources import MetadataResource
from feedcheck.utils.version import PackageVersion, parse_version


@dataclass(frozen=True)
class ProjectToPublish:
    """A solution project producing a package of the same name."""

    name: str


@dataclass(frozen=True)
class FeedStatus:
    """Snapshot of a feed's partition, for reports."""

    name: str
    url: str
    to_publish: tuple[str, ...]
    already_published: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "to_publish": list(self.to_publish),
            "already_published": self.already_published,
        }


def _join_names(projects: Iterable[ProjectToPublish]) -> str:
    return ", ".join(p.name for p in projects)


class Feed:
    """A remote NuGet V3 feed packages may be pushed to."""

    def __init__(self, name: str, url: str, context: RegistryContext | None = None) -> None:
        """Bind a feed name to its V3 service index URL.

        Args:
            name: Feed name used in reports
            url: V3 service index URL
            context: Shared registry context (defaults to the process default)

        Raises:
            InvalidArgumentError: If name is empty
            ConfigurationError: If url is not an absolute http(s) URL, or no
                context is given and none was initialized
        """
        if not name or not name.strip():
            raise InvalidArgumentError("Feed name cannot be empty")
        parts = urlsplit(url or "")
        if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
            raise ConfigurationError(
                f"Invalid URL for feed '{name}': '{url}'",
                details="Feed URLs must be absolute http or https URLs",
                fix_hint="Use the feed's V3 service index, e.g. https://api.nuget.org/v3/index.json",
            )

        self.name = name
        self.url = url
        self.context = context if context is not None else get_default_context()
        self.repository = self.context.create_repository(url, name=name)
        self._packages_to_publish: tuple[ProjectToPublish, ...] | None = None
        self._already_published = 0
        self._lock = threading.Lock()

    @property
    def packages_to_publish(self) -> tuple[ProjectToPublish, ...]:
        """Candidates missing from the feed, in input order (empty before the check)."""
        return self._packages_to_publish or ()

    @property
    def packages_already_published_count(self) -> int:
        return self._already_published

    @property
    def is_initialized(self) -> bool:
        return self._packages_to_publish is not None

    def check_existence(
        self,
        candidates: Iterable[ProjectToPublish],
        target_version: str,
        max_parallel: int | None = None,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Split candidates into packages to publish and already published ones.

        Runs at most once per feed: later calls keep the first result.

        Args:
            candidates: Projects whose packages would be pushed
            target_version: Version every package would be pushed with
            max_parallel: Concurrent existence queries (defaults to config.max_parallel)
            cancellation: Token checked before each credential lookup and request

        Raises:
            VersionParseError: If target_version is malformed
            NetworkError: If a query fails; the feed stays unchecked
        """
        version = parse_version(target_version)
        host = self.context.host

        with self._lock:
            if self._packages_to_publish is None:
                projects = list(candidates)
                found = self._query(projects, version, max_parallel, cancellation)
                to_publish: list[ProjectToPublish] = []
                already_published = 0
                for project, exists in zip(projects, found):
                    if exists:
                        already_published += 1
                    else:
                        host.debug(f"Package {project.name} must be published to remote feed '{self.name}'.")
                        to_publish.append(project)
                self._already_published = already_published
                self._packages_to_publish = tuple(to_publish)
            count = len(self._packages_to_publish)

        host.debug(f" ==> {count} package(s) must be published to remote feed '{self.name}'.")

    def _query(
        self,
        projects: Sequence[ProjectToPublish],
        version: PackageVersion,
        max_parallel: int | None,
        cancellation: CancellationToken | None,
    ) -> list[bool]:
        cache = self.context.cache
        logger = self.context.logger
        meta: MetadataResource = self.repository.get_metadata_resource(cache=cache, cancellation=cancellation)

        def exists(project: ProjectToPublish) -> bool:
            identity = PackageIdentity(project.name, version)
            return meta.exists(identity, cache=cache, logger=logger, cancellation=cancellation)

        workers = max_parallel if max_parallel is not None else self.context.config.max_parallel
        if workers <= 1 or len(projects) <= 1:
            return [exists(p) for p in projects]

        # map() yields results in input order regardless of completion order
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"feed-{self.name}") as executor:
            return list(executor.map(exists, projects))

    def describe_status(
        self,
        sink: DiagnosticsSink,
        candidates: Iterable[ProjectToPublish],
    ) -> list[str]:
        """Report the partition at information level.

        Args:
            sink: Where to write the lines
            candidates: The candidates given to check_existence()

        Returns:
            The lines written
        """
        to_publish = self.packages_to_publish
        already = self.packages_already_published_count
        if not to_publish:
            lines = [f"Feed '{self.name}': No packages must be pushed ({already} packages already available)."]
        elif already == 0:
            lines = [f"Feed '{self.name}': All {len(to_publish)} packages must be pushed."]
        else:
            pending = set(to_publish)
            pushed: list[ProjectToPublish] = []
            for project in candidates:
                if project not in pending and project not in pushed:
                    pushed.append(project)
            lines = [
                f"Feed '{self.name}': {len(to_publish)} packages must be pushed: {_join_names(to_publish)}.",
                f"               => {already} packages already pushed: {_join_names(pushed)}.",
            ]
        for line in lines:
            sink.information(line)
        return lines

    def status(self) -> FeedStatus:
        return FeedStatus(
            name=self.name,
            url=self.url,
            to_publish=tuple(p.name for p in self.packages_to_publish),
            already_published=self.packages_already_published_count,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, url={self.url!r})"


class AzureDevOpsFeed(Feed):
    """A feed hosted on Azure DevOps Artifacts."""

    def __init__(
        self,
        feed_name: str,
        organization: str,
        project: str | None = None,
        context: RegistryContext | None = None,
    ) -> None:
        super().__init__(feed_name, azure_feed_url(organization, feed_name, project), context)
        self.organization = organization
        self.project = project
