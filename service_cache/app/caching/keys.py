"""
Cache key construction helpers.

Keys are colon-delimited: ``<domain>:<subdomain>[:<extra>]*:<identifier>``.
Segments are never escaped, so identifiers must not contain ``:``.
"""

from dataclasses import dataclass, field
from typing import Any, List

KEY_SEPARATOR = ":"


@dataclass(frozen=True)
class ParsedKey:
    """A cache key split into its leading prefix segment and the rest."""

    prefix: str
    parts: List[str] = field(default_factory=list)


def build_key(prefix: str, *parts: Any) -> str:
    """Join the prefix and every non-empty part with ``:``."""
    segments = [str(segment) for segment in (prefix, *parts) if segment]
    return KEY_SEPARATOR.join(segments)


def parse_key(key: str) -> ParsedKey:
    """Split a key on ``:``; short keys simply yield fewer parts."""
    prefix, *parts = key.split(KEY_SEPARATOR)
    return ParsedKey(prefix=prefix, parts=parts)


def simplify_prefix(prefix: str) -> str:
    """Return the first two segments of a key or prefix (``cache:market``)."""
    return KEY_SEPARATOR.join(prefix.split(KEY_SEPARATOR)[:2])
