"""Data models for synsyu.

This module exports the manifest data structures read from the resolver.
"""

from synsyu.models.manifest import (
    ApplicationSource,
    Manifest,
    ManifestEntry,
    ManifestMetadata,
    PackageSource,
    parse_source,
)

__all__ = [
    "ApplicationSource",
    "Manifest",
    "ManifestEntry",
    "ManifestMetadata",
    "PackageSource",
    "parse_source",
]
