"""Symlink-name policy and USB id normalization."""

from __future__ import annotations

import re

MAX_SYMLINK_LENGTH = 64

_SYMLINK_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")
# Characters that would terminate or corrupt a quoted udev match value.
_UNSAFE_RULE_CHARS = ('"', "\\", "\n", "\r")


def is_valid_symlink_name(name: str) -> bool:
    if not name or len(name) > MAX_SYMLINK_LENGTH:
        return False
    return _SYMLINK_RE.fullmatch(name) is not None


def format_hex_id(value: str) -> str:
    """Normalize a USB id such as ``0x403`` or ``6001`` to four lowercase hex digits."""
    normalized = value.strip()
    if len(normalized) > 2 and normalized[:2].lower() == "0x":
        normalized = normalized[2:]
    if not normalized:
        return ""
    return normalized.rjust(4, "0").lower()


def is_safe_rule_value(value: str) -> bool:
    return not any(char in value for char in _UNSAFE_RULE_CHARS)


def flatten_comment(value: str) -> str:
    return value.replace("\r", " ").replace("\n", " ").strip()
