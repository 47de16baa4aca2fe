"""
Collision-free file naming.

Names are suffixed as ``base (n)ext`` with the smallest free ``n``.
"""

from typing import AbstractSet

from ..errors import InvalidFileNameError


def split_name(name: str) -> tuple[str, str]:
    """Split a filename into ``(base, ext)`` at the last dot."""
    dot_index = name.rfind(".")
    if dot_index == -1:
        return name, ""
    return name[:dot_index], name[dot_index:]


def resolve_name(candidate: str, taken: AbstractSet[str]) -> str:
    """Return ``candidate`` or the first ``base (n)ext`` not in ``taken``."""
    if candidate not in taken:
        return candidate

    base, ext = split_name(candidate)
    n = 1
    while f"{base} ({n}){ext}" in taken:
        n += 1
    return f"{base} ({n}){ext}"


def validate_name(name: str) -> str:
    """Validate a user-supplied file name and return it stripped."""
    stripped = name.strip()
    if not stripped:
        raise InvalidFileNameError("File name cannot be empty")
    if "/" in stripped or "\\" in stripped:
        raise InvalidFileNameError("File name cannot contain path separators")
    if stripped in (".", ".."):
        raise InvalidFileNameError(f"Invalid file name '{stripped}'")
    return stripped
