"""
Nostr Core Utilities Module

Helper functions and logging setup.
"""

from nostr_core.utils.helpers import (
    is_hex64,
    is_hex128,
    now_timestamp,
    truncate_hash,
    mask_sensitive_data,
    format_kind,
)
from nostr_core.utils.log import configure_logging

__all__ = [
    "is_hex64",
    "is_hex128",
    "now_timestamp",
    "truncate_hash",
    "mask_sensitive_data",
    "format_kind",
    "configure_logging",
]
