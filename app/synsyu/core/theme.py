"""Console styles for synsyu.

Styles come from the bundled ``data/theme.toml``; a ``[styles]`` table in
``<config>/theme.toml`` replaces individual entries. Entries that Rich cannot
parse are dropped with a warning and the bundled value is kept.
"""

import logging
import tomllib
from functools import lru_cache
from importlib import resources
from pathlib import Path

from rich.errors import StyleSyntaxError
from rich.style import Style
from rich.theme import Theme

from synsyu.core.paths import get_config_dir

logger = logging.getLogger(__name__)


def user_theme_path() -> Path:
    return get_config_dir() / "theme.toml"


def _read_styles(text: str, origin: str) -> dict[str, str]:
    """Parse the [styles] table of a theme file, keeping valid entries only."""
    try:
        table = tomllib.loads(text).get("styles", {})
    except tomllib.TOMLDecodeError as e:
        logger.warning("Ignoring theme %s: %s", origin, e)
        return {}
    if not isinstance(table, dict):
        logger.warning("Ignoring theme %s: [styles] is not a table", origin)
        return {}

    styles: dict[str, str] = {}
    for name, value in table.items():
        try:
            Style.parse(str(value))
        except StyleSyntaxError as e:
            logger.warning("Ignoring style %r in %s: %s", name, origin, e)
            continue
        styles[name] = str(value)
    return styles


def bundled_styles() -> dict[str, str]:
    text = resources.files("synsyu.data").joinpath("theme.toml").read_text(encoding="utf-8")
    return _read_styles(text, "bundled theme")


def load_styles(user_path: Path | None = None) -> dict[str, str]:
    """Bundled styles with the user's overrides applied on top."""
    styles = bundled_styles()
    path = user_path or user_theme_path()
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return styles
    except OSError as e:
        logger.warning("Cannot read theme %s: %s", path, e)
        return styles

    overrides = _read_styles(text, str(path))
    logger.debug("Applying %d style override(s) from %s", len(overrides), path)
    styles.update(overrides)
    return styles


@lru_cache(maxsize=1)
def get_theme() -> Theme:
    """Rich theme shared by the stdout and stderr consoles."""
    return Theme(load_styles())
