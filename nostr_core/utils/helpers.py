"""
Nostr Core Helper Functions

Utility functions shared by the codec, event and CLI modules.
"""

import re
import time
from typing import Optional

_HEX64_RE = re.compile(r"^[0-9a-f]{64}$")
_HEX128_RE = re.compile(r"^[0-9a-f]{128}$")


def is_hex64(value: object) -> bool:
    """True for exactly 64 lowercase hex characters (32 bytes)."""
    return isinstance(value, str) and _HEX64_RE.match(value) is not None


def is_hex128(value: object) -> bool:
    """True for exactly 128 lowercase hex characters (64 bytes)."""
    return isinstance(value, str) and _HEX128_RE.match(value) is not None


def now_timestamp() -> int:
    """
    Current Unix time in whole seconds.

    Returns:
        int: Seconds since the epoch, as used by ``created_at``
    """
    return int(time.time())


def truncate_hash(hash_str: str, length: int = 16) -> str:
    """
    Truncate a hex id or bech32 string for display purposes.

    Args:
        hash_str: Full string
        length: Number of characters to show

    Returns:
        str: Truncated string with ellipsis
    """
    if len(hash_str) <= length:
        return hash_str
    return f"{hash_str[:length]}..."


def mask_sensitive_data(data: str, visible_chars: int = 4) -> str:
    """
    Mask sensitive data for display.

    Args:
        data: Data to mask
        visible_chars: Number of characters to show at start and end

    Returns:
        str: Masked string
    """
    if len(data) <= visible_chars * 2:
        return '*' * len(data)
    return f"{data[:visible_chars]}{'*' * (len(data) - visible_chars * 2)}{data[-visible_chars:]}"


def format_kind(kind: int, name: Optional[str] = None) -> str:
    """Render a kind number with its well-known name when there is one."""
    return f"{kind} ({name})" if name else str(kind)
