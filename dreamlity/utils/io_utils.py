"""I/O utility functions for file names."""

# This module is part of dreamlity.utils package

import re

_UNSAFE_CHARS = re.compile(r"[^\w.-]")


def safe_file_name(name: str) -> str:
    """
    Reduce a name to a single safe path component.

    Args:
        name: Proposed file or folder name.

    Returns:
        Name without directory separators or leading dots.

    Raises:
        ValueError: If nothing usable remains.
    """
    cleaned = _UNSAFE_CHARS.sub("_", name.replace("\\", "/").split("/")[-1]).lstrip(".")
    if not cleaned:
        raise ValueError(f"Unusable file name: {name!r}")
    return cleaned
