"""Include/exclude filtering of package names.

Patterns are regular expressions searched anywhere in the name. They are
compiled once when the run configuration is resolved.
"""

import re
from collections.abc import Iterable, Sequence

from synsyu.core.errors import ConfigInvalidError


def compile_patterns(patterns: Iterable[str]) -> tuple[re.Pattern[str], ...]:
    """Compile user-supplied filter patterns.

    Args:
        patterns: Raw regular expressions.

    Returns:
        Tuple of compiled patterns, in input order. Empty strings are dropped.

    Raises:
        ConfigInvalidError: If any pattern is not a valid regular expression.
    """
    compiled: list[re.Pattern[str]] = []
    for pattern in patterns:
        if not pattern:
            continue
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ConfigInvalidError(f"Invalid filter pattern '{pattern}': {e}") from e
    return tuple(compiled)


def matches(
    name: str,
    include: Sequence[re.Pattern[str]],
    exclude: Sequence[re.Pattern[str]],
) -> bool:
    """Decide whether a package passes the include/exclude rules.

    A non-empty include list requires at least one hit. Any exclude hit
    rejects the name, even when an include pattern also matched.

    Args:
        name: Package name.
        include: Compiled include patterns.
        exclude: Compiled exclude patterns.

    Returns:
        True if the package should be processed.
    """
    if include and not any(p.search(name) for p in include):
        return False
    return not any(p.search(name) for p in exclude)
