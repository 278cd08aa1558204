"""Manifest loading and typed queries.

This module loads the resolver-built manifest.json with one validated
Pydantic pass and exposes read-only queries over it. It can also ask the
external resolver to rebuild the manifest before it is read.
"""

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import NamedTuple

from pydantic import ValidationError

from synsyu.core.errors import (
    ManifestInvalidError,
    ManifestMissingError,
    ManifestRebuildError,
    PrerequisiteError,
)
from synsyu.core.paths import get_manifest_path
from synsyu.models.manifest import Manifest, ManifestEntry, PackageSource
from synsyu.utils.shell import command_exists, run_interactive

logger = logging.getLogger(__name__)


class UpdateCandidate(NamedTuple):
    """A package with a pending update, as streamed to the executor."""

    name: str
    source: PackageSource
    target_version: str | None
    footprint_bytes: int = 0


class PackageRecord(NamedTuple):
    """A package of any update state, as streamed by :func:`all_entries`."""

    name: str
    source: PackageSource
    target_version: str | None
    update_available: bool


def load_manifest(path: Path | None = None) -> Manifest:
    """Load and validate a manifest from a JSON file.

    Args:
        path: Path to the manifest file. If None, uses default manifest path.

    Returns:
        Validated Manifest object.

    Raises:
        ManifestMissingError: If the manifest file doesn't exist.
        ManifestInvalidError: If the file is not JSON or doesn't match the schema.
    """
    manifest_path = path or get_manifest_path()

    if not manifest_path.exists():
        raise ManifestMissingError(f"Manifest not found: {manifest_path}")

    try:
        with open(manifest_path, "rb") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ManifestInvalidError(f"Invalid JSON in {manifest_path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestInvalidError(f"Failed to read manifest: {e}") from e

    if not isinstance(data, dict):
        raise ManifestInvalidError(f"Manifest {manifest_path} is not a JSON object")

    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        raise ManifestInvalidError(f"Invalid manifest content: {e}") from e


def updatable_entries(manifest: Manifest) -> Iterator[UpdateCandidate]:
    """Yield every package with a pending update.

    Each call returns a fresh iterator over the same manifest, so the
    sequence can be re-queried and always yields the same candidates.

    Args:
        manifest: Loaded manifest.

    Yields:
        UpdateCandidate for each entry with ``update_available`` set.
    """
    for name, entry in manifest.packages.items():
        if entry.update_available:
            yield UpdateCandidate(
                name, entry.source, entry.target_version, entry.footprint_bytes
            )


def all_entries(manifest: Manifest) -> Iterator[PackageRecord]:
    """Yield every package in the manifest with its update flag.

    Args:
        manifest: Loaded manifest.

    Yields:
        PackageRecord for each entry.
    """
    for name, entry in manifest.packages.items():
        yield PackageRecord(name, entry.source, entry.target_version, entry.update_available)


def entry_detail(manifest: Manifest, name: str) -> ManifestEntry | None:
    """Get the full entry for one package, or None if it is not listed."""
    return manifest.packages.get(name)


def summarize_manifest(manifest: Manifest) -> dict[str, int]:
    """Count packages per source plus pending package and app updates.

    Args:
        manifest: Loaded manifest.

    Returns:
        Mapping of counter name to value, in display order.
    """
    summary: dict[str, int] = {"packages": len(manifest.packages)}
    for source in PackageSource:
        summary[source.value] = sum(
            1 for entry in manifest.packages.values() if entry.source is source
        )
    summary["updates"] = manifest.update_count
    for name, app in manifest.applications.items():
        if app.enabled:
            summary[f"{name}_updates"] = app.update_count
    return summary


def rebuild_manifest(
    path: Path,
    resolver: str,
    *,
    include_repo: bool = True,
    include_aur: bool = True,
) -> None:
    """Ask the external resolver to regenerate the manifest.

    Args:
        path: Where the resolver should write the manifest.
        resolver: Resolver program name or path.
        include_repo: If False, pass --no-repo.
        include_aur: If False, pass --no-aur.

    Raises:
        PrerequisiteError: If the resolver program is not installed.
        ManifestRebuildError: If the resolver exits non-zero.
    """
    if not command_exists(resolver):
        raise PrerequisiteError(f"Manifest resolver '{resolver}' not found in PATH")

    args = [resolver, "--manifest", str(path)]
    if not include_aur:
        args.append("--no-aur")
    if not include_repo:
        args.append("--no-repo")

    logger.info("Rebuilding manifest via %s", " ".join(args))
    try:
        status = run_interactive(args)
    except OSError as e:
        raise ManifestRebuildError(f"Failed to run {resolver}: {e}") from e

    if status != 0:
        raise ManifestRebuildError(f"{resolver} exited {status} while rebuilding {path}")
