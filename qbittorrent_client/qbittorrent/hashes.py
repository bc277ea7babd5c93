"""Torrent info hash helpers."""

import re

from .errors import InvalidIdentityError

_HASH_RE = re.compile(r"[0-9a-f]{40}")


def is_valid(value: object) -> bool:
    """Return True if value is a 40 character hexadecimal hash (any case)."""
    if not isinstance(value, str):
        return False
    return _HASH_RE.fullmatch(value.lower()) is not None


def normalize(value: object) -> str:
    """
    Validate and lowercase a torrent hash.

    Args:
        value: Hash as given by the caller or the daemon

    Returns:
        40-character lowercase hex hash

    Raises:
        InvalidIdentityError: If value is not a valid hash
    """
    if not is_valid(value):
        raise InvalidIdentityError(value)
    return value.lower()
