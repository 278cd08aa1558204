"""Run configuration.

Settings come from four layers, each overriding the previous one:
built-in defaults, SYNSYU_* environment variables, the TOML config file
(~/.config/synsyu/config.toml) and command-line flags. The result is a
single immutable :class:`RunConfig` passed to every component of a run.

Example config.toml::

    [core]
    batch_size = 15

    [helpers]
    priority = ["paru", "yay"]

    [space]
    min_free_gb = 5
    mode = "enforce"

    [snapshots]
    enabled = true
    pre_command = "snapper create -d pre-update"
    require_success = true

    [clean]
    keep_versions = 3
    remove_orphans = true
"""

import logging
import os
import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from synsyu.core.audit import LogLevel, parse_log_level
from synsyu.core.errors import ConfigInvalidError
from synsyu.core.filters import compile_patterns
from synsyu.core.helpers import HELPER_CANDIDATES
from synsyu.core.paths import (
    ensure_config_dir,
    get_config_path,
    get_log_dir,
    get_manifest_path,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_MIN_FREE_GB = 2.0
DEFAULT_DISK_MARGIN_MB = 200
DEFAULT_RESOLVER = "synsyu_core"
DEFAULT_KEEP_VERSIONS = 2

_MIB = 1024 * 1024
_GIB = 1024 * 1024 * 1024


class SpaceMode(str, Enum):
    """What the aggregate disk check does when space is short."""

    WARN = "warn"
    ENFORCE = "enforce"


def gb_to_bytes(value: float) -> int:
    """Convert gibibytes to bytes, clamping non-positive values to 0."""
    if value <= 0:
        return 0
    return int(round(value * _GIB))


class CoreSection(BaseModel):
    """[core] table."""

    model_config = ConfigDict(extra="forbid")

    manifest_path: Annotated[str | None, Field(description="Manifest JSON path")] = None
    batch_size: Annotated[int, Field(description="Repo packages per pacman call")] = (
        DEFAULT_BATCH_SIZE
    )
    resolver: Annotated[str, Field(description="Manifest resolver program")] = DEFAULT_RESOLVER


class HelpersSection(BaseModel):
    """[helpers] table."""

    model_config = ConfigDict(extra="forbid")

    priority: Annotated[list[str], Field(default_factory=list)]
    default: Annotated[str | None, Field(description="Helper to force")] = None


class SnapshotsSection(BaseModel):
    """[snapshots] table."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    pre_command: str = ""
    post_command: str = ""
    require_success: bool = False


class SafetySection(BaseModel):
    """[safety] table."""

    model_config = ConfigDict(extra="forbid")

    disk_check: bool = True
    disk_extra_margin_mb: Annotated[int, Field(ge=0)] = DEFAULT_DISK_MARGIN_MB


class SpaceSection(BaseModel):
    """[space] table."""

    model_config = ConfigDict(extra="forbid")

    min_free_gb: float = DEFAULT_MIN_FREE_GB
    mode: SpaceMode = SpaceMode.WARN
    path: str = "/"


class LoggingSection(BaseModel):
    """[logging] table."""

    model_config = ConfigDict(extra="forbid")

    directory: str | None = None
    level: str = "info"
    retention_days: Annotated[int, Field(ge=0, description="0 disables age pruning")] = 0
    retention_megabytes: Annotated[int, Field(ge=0, description="0 disables size pruning")] = 0

    @field_validator("level")
    @classmethod
    def _check_level(cls, v: str) -> str:
        parse_log_level(v)
        return v


class CleanSection(BaseModel):
    """[clean] table."""

    model_config = ConfigDict(extra="forbid")

    keep_versions: Annotated[int, Field(ge=0, description="Cached versions paccache keeps")] = (
        DEFAULT_KEEP_VERSIONS
    )
    remove_orphans: bool = False
    check_pacnew: bool = True


class ApplicationsSection(BaseModel):
    """[applications] table."""

    model_config = ConfigDict(extra="forbid")

    flatpak: bool = False
    fwupd: bool = False


class ConfigFile(BaseModel):
    """Complete config.toml document.

    Unknown top-level tables are ignored so a config shared with other
    tooling still loads. Keys inside known tables are strict.
    """

    model_config = ConfigDict(extra="ignore")

    core: Annotated[CoreSection, Field(default_factory=CoreSection)]
    helpers: Annotated[HelpersSection, Field(default_factory=HelpersSection)]
    snapshots: Annotated[SnapshotsSection, Field(default_factory=SnapshotsSection)]
    safety: Annotated[SafetySection, Field(default_factory=SafetySection)]
    space: Annotated[SpaceSection, Field(default_factory=SpaceSection)]
    logging: Annotated[LoggingSection, Field(default_factory=LoggingSection)]
    applications: Annotated[ApplicationsSection, Field(default_factory=ApplicationsSection)]
    clean: Annotated[CleanSection, Field(default_factory=CleanSection)]


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Fully resolved, immutable settings for one invocation."""

    config_path: Path
    manifest_path: Path
    resolver: str = DEFAULT_RESOLVER
    batch_size: int = DEFAULT_BATCH_SIZE
    helper_priority: tuple[str, ...] = HELPER_CANDIDATES
    helper: str | None = None
    include: tuple[re.Pattern[str], ...] = ()
    exclude: tuple[re.Pattern[str], ...] = ()
    dry_run: bool = False
    quiet: bool = False
    verbose: bool = False
    json_output: bool = False
    include_repo: bool = True
    include_aur: bool = True
    noconfirm: bool = True
    offline: bool = False
    rebuild: bool = False
    min_free_bytes: int = gb_to_bytes(DEFAULT_MIN_FREE_GB)
    space_mode: SpaceMode = SpaceMode.WARN
    space_path: Path = Path("/")
    disk_check: bool = True
    disk_margin_bytes: int = DEFAULT_DISK_MARGIN_MB * _MIB
    snapshots_enabled: bool = False
    snapshot_pre: str = ""
    snapshot_post: str = ""
    snapshot_require_success: bool = False
    log_dir: Path | None = None
    log_level: LogLevel | None = LogLevel.INFO
    retention_days: int = 0
    retention_bytes: int = 0
    with_flatpak: bool | None = None
    with_fwupd: bool | None = None
    flatpak_default: bool = False
    fwupd_default: bool = False
    clean_keep_versions: int = DEFAULT_KEEP_VERSIONS
    clean_remove_orphans: bool = False
    check_pacnew: bool = True

    def application_enabled(self, name: str, manifest_flag: bool | None = None) -> bool:
        """Decide whether an application source is updated in this run.

        A command-line flag wins, then the manifest's recorded intent,
        then the config file.

        Args:
            name: "flatpak" or "fwupd".
            manifest_flag: ``applications.<name>.enabled`` from the manifest,
                or None if the manifest has no block for this source.

        Returns:
            True if the source should be updated.
        """
        cli = self.with_flatpak if name == "flatpak" else self.with_fwupd
        if cli is not None:
            return cli
        if manifest_flag is not None:
            return manifest_flag
        return self.flatpak_default if name == "flatpak" else self.fwupd_default


def load_config_file(path: Path | None = None) -> ConfigFile:
    """Load and validate the TOML config file.

    A missing file is not an error; defaults are returned.

    Args:
        path: Config file path. If None, uses the default config path.

    Returns:
        Validated ConfigFile.

    Raises:
        ConfigInvalidError: If the file cannot be read, parsed or validated.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        logger.debug("No config file at %s, using defaults", config_path)
        return ConfigFile()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigInvalidError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigInvalidError(f"Failed to read config {config_path}: {e}") from e

    try:
        return ConfigFile.model_validate(data)
    except ValidationError as e:
        raise ConfigInvalidError(f"Invalid config content in {config_path}: {e}") from e


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(env: Mapping[str, str], key: str) -> int | None:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigInvalidError(f"{key} must be an integer, got '{raw}'") from e


def _env_layer(env: Mapping[str, str]) -> dict[str, Any]:
    """Translate SYNSYU_* environment variables into settings."""
    layer: dict[str, Any] = {}

    flags = {
        "SYNSYU_DRY_RUN": "dry_run",
        "SYNSYU_QUIET": "quiet",
        "SYNSYU_VERBOSE": "verbose",
        "SYNSYU_JSON": "json_output",
        "SYNSYU_REBUILD": "rebuild",
        "SYNSYU_OFFLINE": "offline",
    }
    for key, setting in flags.items():
        if key in env:
            layer[setting] = _env_flag(env[key])

    if "SYNSYU_NO_AUR" in env:
        layer["include_aur"] = not _env_flag(env["SYNSYU_NO_AUR"])
    if "SYNSYU_NO_REPO" in env:
        layer["include_repo"] = not _env_flag(env["SYNSYU_NO_REPO"])
    if "SYNSYU_CONFIRM" in env:
        layer["noconfirm"] = not _env_flag(env["SYNSYU_CONFIRM"])

    if env.get("SYNSYU_MANIFEST_PATH"):
        layer["manifest_path"] = Path(env["SYNSYU_MANIFEST_PATH"]).expanduser()
    if env.get("SYNSYU_HELPER"):
        layer["helper"] = env["SYNSYU_HELPER"]

    batch_size = _env_int(env, "SYNSYU_BATCH_SIZE")
    if batch_size is not None:
        layer["batch_size"] = batch_size
    min_free = _env_int(env, "SYNSYU_MIN_FREE_BYTES")
    if min_free is not None:
        layer["min_free_bytes"] = max(min_free, 0)
    margin = _env_int(env, "SYNSYU_DISK_MARGIN_MB")
    if margin is not None:
        layer["disk_margin_bytes"] = max(margin, 0) * _MIB

    return layer


def _file_layer(cfg: ConfigFile) -> dict[str, Any]:
    """Translate a validated config file into settings.

    Only tables present in the file override earlier layers, so an
    environment variable is not masked by an untouched default.
    """
    layer: dict[str, Any] = {}
    tables = cfg.model_fields_set

    if "core" in tables:
        core_set = cfg.core.model_fields_set
        if cfg.core.manifest_path:
            layer["manifest_path"] = Path(cfg.core.manifest_path).expanduser()
        if "batch_size" in core_set:
            layer["batch_size"] = cfg.core.batch_size
        if "resolver" in core_set:
            layer["resolver"] = cfg.core.resolver

    if "helpers" in tables:
        if cfg.helpers.priority:
            layer["helper_priority"] = tuple(cfg.helpers.priority)
        if cfg.helpers.default:
            layer["helper"] = cfg.helpers.default

    if "snapshots" in tables:
        layer["snapshots_enabled"] = cfg.snapshots.enabled
        layer["snapshot_pre"] = cfg.snapshots.pre_command
        layer["snapshot_post"] = cfg.snapshots.post_command
        layer["snapshot_require_success"] = cfg.snapshots.require_success

    if "safety" in tables:
        safety_set = cfg.safety.model_fields_set
        if "disk_check" in safety_set:
            layer["disk_check"] = cfg.safety.disk_check
        if "disk_extra_margin_mb" in safety_set:
            layer["disk_margin_bytes"] = cfg.safety.disk_extra_margin_mb * _MIB

    if "space" in tables:
        space_set = cfg.space.model_fields_set
        if "min_free_gb" in space_set:
            layer["min_free_bytes"] = gb_to_bytes(cfg.space.min_free_gb)
        if "mode" in space_set:
            layer["space_mode"] = cfg.space.mode
        if "path" in space_set:
            layer["space_path"] = Path(cfg.space.path).expanduser()

    if "logging" in tables:
        if cfg.logging.directory:
            layer["log_dir"] = Path(cfg.logging.directory).expanduser()
        layer["log_level"] = parse_log_level(cfg.logging.level)
        layer["retention_days"] = cfg.logging.retention_days
        layer["retention_bytes"] = cfg.logging.retention_megabytes * _MIB

    if "applications" in tables:
        layer["flatpak_default"] = cfg.applications.flatpak
        layer["fwupd_default"] = cfg.applications.fwupd

    if "clean" in tables:
        layer["clean_keep_versions"] = cfg.clean.keep_versions
        layer["clean_remove_orphans"] = cfg.clean.remove_orphans
        layer["check_pacnew"] = cfg.clean.check_pacnew

    return layer


def resolve_config(
    config_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> RunConfig:
    """Build the immutable run configuration.

    Args:
        config_path: Config file to read. If None, uses the default path.
        overrides: Settings from command-line flags. None values are ignored.
            ``include``/``exclude`` hold raw pattern strings and
            ``min_free_gb`` is converted to bytes.
        env: Environment mapping. If None, uses ``os.environ``.

    Returns:
        Resolved RunConfig.

    Raises:
        ConfigInvalidError: If any layer holds an invalid value.
    """
    path = config_path or get_config_path()
    env = os.environ if env is None else env

    settings: dict[str, Any] = {
        "manifest_path": get_manifest_path(),
        "log_dir": get_log_dir(),
    }
    settings.update(_env_layer(env))
    settings.update(_file_layer(load_config_file(path)))

    cli = {k: v for k, v in (overrides or {}).items() if v is not None}
    include = cli.pop("include", ())
    exclude = cli.pop("exclude", ())
    min_free_gb = cli.pop("min_free_gb", None)
    if min_free_gb is not None:
        cli["min_free_bytes"] = gb_to_bytes(min_free_gb)
    settings.update(cli)

    settings["include"] = compile_patterns(include)
    settings["exclude"] = compile_patterns(exclude)
    if settings.get("batch_size", DEFAULT_BATCH_SIZE) <= 0:
        settings["batch_size"] = 1

    try:
        return RunConfig(config_path=path, **settings)
    except TypeError as e:
        raise ConfigInvalidError(f"Unknown configuration setting: {e}") from e


def save_helper_default(helper: str, path: Path | None = None) -> Path:
    """Persist ``[helpers].default`` in the config file.

    Other keys in the file are preserved. The file is written atomically by
    first writing to a temporary file and then using os.replace().

    Args:
        helper: Helper program name to store.
        path: Config file path. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigInvalidError: If the existing file is invalid or cannot be written.
    """
    from tempfile import NamedTemporaryFile

    if path is None:
        try:
            ensure_config_dir()
        except RuntimeError as e:
            raise ConfigInvalidError(str(e)) from e
    config_path = path or get_config_path()

    data: dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigInvalidError(f"Invalid TOML syntax in {config_path}: {e}") from e
        except OSError as e:
            raise ConfigInvalidError(f"Failed to read config {config_path}: {e}") from e

    helpers = data.setdefault("helpers", {})
    if not isinstance(helpers, dict):
        raise ConfigInvalidError(f"[helpers] in {config_path} is not a table")
    helpers["default"] = helper

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigInvalidError(f"Failed to write config {config_path}: {e}") from e

    return config_path
