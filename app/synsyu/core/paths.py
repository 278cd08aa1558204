"""XDG-compliant path management for synsyu.

This module provides standardized paths following the XDG Base Directory
Specification for configuration, state, and cache storage.

XDG defaults:
- Config: ~/.config/synsyu/
- State: ~/.local/state/synsyu/
- Cache: ~/.cache/synsyu/
"""

import os
import tempfile
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "synsyu"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/synsyu/ (or XDG_CONFIG_HOME/synsyu/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes session logs and their digests.

    Returns:
        Path to ~/.local/state/synsyu/ (or XDG_STATE_HOME/synsyu/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_cache_dir() -> Path:
    """Get the cache directory path.

    The resolver-built manifest lives here by default since it can always
    be regenerated.

    Returns:
        Path to ~/.cache/synsyu/ (or XDG_CACHE_HOME/synsyu/).
    """
    return _get_xdg_dir("XDG_CACHE_HOME", ".cache")


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to ~/.config/synsyu/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_manifest_path() -> Path:
    """Get the default manifest file path.

    Returns:
        Path to ~/.cache/synsyu/manifest.json.
    """
    return get_cache_dir() / "manifest.json"


def get_log_dir() -> Path:
    """Get the default session log directory.

    Returns:
        Path to ~/.local/state/synsyu/logs/.
    """
    return get_state_dir() / "logs"


def get_fallback_log_dir() -> Path:
    """Get the log directory used when the configured one is unwritable.

    Returns:
        Path to <tmp>/synsyu/logs.
    """
    return Path(tempfile.gettempdir()) / APP_NAME / "logs"


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_config_dir() -> Path:
    """Create the configuration directory if it doesn't exist.

    Returns:
        Path to the configuration directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_config_dir(), "config")


def ensure_log_dir(path: Path | None = None) -> Path:
    """Create a log directory if it doesn't exist.

    Args:
        path: Directory to create. Defaults to :func:`get_log_dir`.

    Returns:
        Path to the log directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(path or get_log_dir(), "log")
