"""Package identity and service index models."""

from dataclasses import dataclass, field
from typing import Any

from feedcheck.exceptions import InvalidArgumentError, NetworkError
from feedcheck.utils.version import PackageVersion


@dataclass(frozen=True)
class PackageIdentity:
    """A package id and exact version.

    Ids compare case-insensitively, like on NuGet feeds.
    """

    id: str
    version: PackageVersion

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise InvalidArgumentError("Package id cannot be empty")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageIdentity):
            return NotImplemented
        return self.id.lower() == other.id.lower() and self.version == other.version

    def __hash__(self) -> int:
        return hash((self.id.lower(), self.version))

    def __str__(self) -> str:
        return f"{self.id} {self.version}"


@dataclass(frozen=True)
class ServiceResource:
    """One entry of a V3 service index."""

    id: str
    types: tuple[str, ...]


@dataclass(frozen=True)
class ServiceIndex:
    """Parsed V3 service index (index.json)."""

    version: str
    resources: tuple[ServiceResource, ...] = field(default=())

    @classmethod
    def from_json(cls, url: str, data: dict[str, Any]) -> "ServiceIndex":
        """Build a ServiceIndex from the decoded index.json.

        Raises:
            NetworkError: If the document is not a V3 service index
        """
        version = data.get("version")
        raw_resources = data.get("resources")
        if not isinstance(version, str) or not version.startswith("3.") or not isinstance(raw_resources, list):
            raise NetworkError(
                f"{url} is not a NuGet V3 service index",
                details="Expected a 'version' 3.x string and a 'resources' array",
                fix_hint="Feed URLs must point to .../v3/index.json",
            )

        resources = []
        for item in raw_resources:
            if not isinstance(item, dict) or not isinstance(item.get("@id"), str):
                continue
            raw_type = item.get("@type")
            types = (raw_type,) if isinstance(raw_type, str) else tuple(
                t for t in raw_type or () if isinstance(t, str)
            )
            resources.append(ServiceResource(id=item["@id"], types=types))
        return cls(version=version, resources=tuple(resources))

    def get_resource_url(self, *resource_types: str) -> str | None:
        """Return the first resource URL matching one of the types, in preference order."""
        for resource_type in resource_types:
            for resource in self.resources:
                if resource_type in resource.types:
                    return resource.id
        return None
