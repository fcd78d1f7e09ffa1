"""Lookup-key normalization for filesystem paths."""

import re

_TRAILING_SEPARATORS_RE = re.compile(r"[\\/]+$")


def strip_trailing_separators(path: str | None) -> str | None:
    """Strip trailing path separators so "/repo/" and "/repo" share a key.

    Args:
        path: Filesystem path as reported by the terminal

    Returns:
        Path without trailing separators, or None when nothing remains
    """
    if not path:
        return None
    stripped = _TRAILING_SEPARATORS_RE.sub("", path)
    return stripped or None
