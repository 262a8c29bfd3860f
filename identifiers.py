"""
Identifier normalization.

Option values, media assets and variants reference each other through ids
that arrive in several physical shapes: plain strings, ``{"id": ...}`` /
``{"value": ...}`` objects, or database object ids that only make sense
once stringified. Every cross-schema comparison goes through
``normalize_id`` so both sides are plain strings.
"""

from collections.abc import Mapping
from typing import Any

# Mapping keys checked in order; "value" wins over "id"
_MAPPING_KEYS = ("value", "id", "_id")
_ATTR_KEYS = ("value", "id")


def _is_empty(val: Any) -> bool:
    return val is None or val == ""


def normalize_id(value: Any) -> str | None:
    """Canonical string form of an identifier, or None for a missing one."""
    if value is None:
        return None
    if isinstance(value, str):
        return value

    if isinstance(value, Mapping):
        for key in _MAPPING_KEYS:
            inner = value.get(key)
            if not _is_empty(inner) and inner is not value:
                return normalize_id(inner)
        return str(value)

    for attr in _ATTR_KEYS:
        inner = getattr(value, attr, None)
        if _is_empty(inner) or callable(inner) or inner is value:
            continue
        return normalize_id(inner)

    return str(value)


def ids_equal(a: Any, b: Any) -> bool:
    """True when both identifiers are present and share a canonical form."""
    left = normalize_id(a)
    return left is not None and left == normalize_id(b)
