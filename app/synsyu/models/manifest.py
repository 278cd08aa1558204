"""Manifest models for the resolver-built update manifest.

This module defines the Pydantic models for the manifest.json document
written by the external resolver. Only the fields the orchestrator consumes
are modelled; everything else is ignored. Defaults are resolved once here so
no caller has to guess at missing or null fields.
"""

from enum import Enum
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class PackageSource(Enum):
    """Provenance of a package, deciding which executor handles it."""

    REPO = "repo"
    AUR = "aur"
    LOCAL = "local"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        """Upper-case label used in console output and the audit log."""
        return "PACMAN" if self is PackageSource.REPO else self.value.upper()


# Wire names used by the resolver, matched case-insensitively
_SOURCE_ALIASES: dict[str, PackageSource] = {
    "pacman": PackageSource.REPO,
    "repo": PackageSource.REPO,
    "aur": PackageSource.AUR,
    "local": PackageSource.LOCAL,
}


def parse_source(value: object) -> PackageSource:
    """Map a manifest source value onto :class:`PackageSource`.

    Unrecognised or missing values map to ``UNKNOWN`` rather than failing
    validation, so one odd entry never invalidates the whole manifest.

    Args:
        value: Raw value from the manifest.

    Returns:
        The matching PackageSource.
    """
    if isinstance(value, PackageSource):
        return value
    if not isinstance(value, str):
        return PackageSource.UNKNOWN
    return _SOURCE_ALIASES.get(value.strip().lower(), PackageSource.UNKNOWN)


def _size_field(*aliases: str) -> Any:
    return Field(
        ge=0,
        validation_alias=AliasChoices(*aliases),
        description="Size estimate in bytes",
    )


class ManifestEntry(BaseModel):
    """Entry for a single package in the manifest.

    Attributes:
        source: Provenance deciding the execution path.
        installed_version: Version currently installed.
        target_version: Version the update would install.
        update_available: Whether an update is pending.
        download_bytes: Bytes to download.
        build_bytes: Bytes needed while building (AUR packages).
        install_bytes: Bytes the installed package occupies.
        transient_bytes: Scratch space needed during the update.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    source: Annotated[PackageSource, Field(description="Package provenance")] = (
        PackageSource.UNKNOWN
    )
    installed_version: Annotated[str | None, Field(description="Installed version")] = None
    target_version: Annotated[
        str | None,
        Field(
            validation_alias=AliasChoices("target_version", "newer_version"),
            description="Version the update would install",
        ),
    ] = None
    update_available: Annotated[bool, Field(description="Whether an update is pending")] = False
    download_bytes: Annotated[int, _size_field("download_bytes", "download_size_selected")] = 0
    build_bytes: Annotated[int, _size_field("build_bytes", "build_size_estimate")] = 0
    install_bytes: Annotated[
        int,
        _size_field("install_bytes", "install_size_estimate", "installed_size_selected"),
    ] = 0
    transient_bytes: Annotated[int, _size_field("transient_bytes", "transient_size_estimate")] = 0

    @field_validator("source", mode="before")
    @classmethod
    def _coerce_source(cls, v: object) -> PackageSource:
        return parse_source(v)

    @field_validator("update_available", mode="before")
    @classmethod
    def _coerce_flag(cls, v: object) -> object:
        return False if v is None else v

    @field_validator(
        "download_bytes", "build_bytes", "install_bytes", "transient_bytes", mode="before"
    )
    @classmethod
    def _coerce_size(cls, v: object) -> object:
        return 0 if v is None else v

    @field_validator("installed_version", "target_version", mode="before")
    @classmethod
    def _coerce_version(cls, v: object) -> object:
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @property
    def footprint_bytes(self) -> int:
        """Total bytes the update of this package needs on disk."""
        return self.download_bytes + self.build_bytes + self.install_bytes + self.transient_bytes


class ManifestMetadata(BaseModel):
    """Metadata section of the manifest.

    Only a handful of keys are typed; any other key the resolver writes is
    kept as-is so ``check --json`` can echo it back.
    """

    model_config = ConfigDict(extra="allow")

    generated_at: str | None = None
    generated_by: str | None = None
    total_packages: int | None = None
    updates_available: int | None = None
    download_size_total: int = 0
    build_size_total: int = 0
    install_size_total: int = 0
    transient_size_total: int = 0
    min_free_bytes: int = 0
    required_space_total: int = 0
    available_space_bytes: int = 0
    space_checked_path: str | None = None

    @field_validator(
        "download_size_total",
        "build_size_total",
        "install_size_total",
        "transient_size_total",
        "min_free_bytes",
        "required_space_total",
        "available_space_bytes",
        mode="before",
    )
    @classmethod
    def _coerce_total(cls, v: object) -> object:
        return 0 if v is None else v


class ApplicationSource(BaseModel):
    """Application-layer update source recorded in the manifest.

    Attributes:
        enabled: Whether the resolver collected this source.
        available: Whether the source's tool is installed.
        update_count: Number of pending updates.
        installed_count: Number of installed items.
        updates: Free-form update descriptions.
    """

    model_config = ConfigDict(extra="ignore")

    enabled: bool = False
    available: bool = False
    update_count: int = 0
    installed_count: int = 0
    updates: Annotated[list[dict[str, Any]], Field(default_factory=list)]

    @field_validator("update_count", "installed_count", mode="before")
    @classmethod
    def _coerce_count(cls, v: object) -> object:
        return 0 if v is None else v


class Manifest(BaseModel):
    """Complete manifest produced by the external resolver.

    Attributes:
        metadata: Counts, timestamps and size totals.
        packages: Mapping of package name to entry.
        applications: Optional application-layer sources (flatpak, fwupd).
    """

    model_config = ConfigDict(extra="ignore")

    metadata: Annotated[ManifestMetadata, Field(default_factory=ManifestMetadata)]
    packages: Annotated[dict[str, ManifestEntry], Field(default_factory=dict)]
    applications: Annotated[dict[str, ApplicationSource], Field(default_factory=dict)]

    def application(self, name: str) -> ApplicationSource | None:
        """Get an application source block by name."""
        return self.applications.get(name)

    @property
    def update_count(self) -> int:
        """Number of packages with a pending update."""
        return sum(1 for entry in self.packages.values() if entry.update_available)
