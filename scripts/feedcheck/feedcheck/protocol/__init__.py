"""Minimal NuGet V3 client used for existence checks."""

from feedcheck.protocol.http import HttpSource, SourceCacheContext
from feedcheck.protocol.models import PackageIdentity, ServiceIndex, ServiceResource
from feedcheck.protocol.resources import MetadataResource, SourceRepository

__all__ = [
    "HttpSource",
    "MetadataResource",
    "PackageIdentity",
    "ServiceIndex",
    "ServiceResource",
    "SourceCacheContext",
    "SourceRepository",
]
