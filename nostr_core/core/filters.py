"""
Nostr Core Subscription Filters

A Filter is a declarative record of subscription criteria (ids, authors,
kinds, time range, search text, hashtags). This module only builds,
validates and serializes filters; matching events against them is the
relay's job.

Invalid criteria raise instead of being dropped, so a filter never
silently becomes broader than the caller asked for.

Usage:
    >>> from nostr_core.core.filters import Filter
    >>>
    >>> f = Filter(authors=[pubkey_hex], kinds=[1], limit=20)
    >>> f.to_json()
    '{"authors":["..."],"kinds":[1],"limit":20}'
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from nostr_core.core.errors import MalformedPayload
from nostr_core.core.events import MAX_KIND, load_json, validate_wire_object
from nostr_core.core.keys import PublicKey, parse_event_id, parse_public

HASHTAG_KEY = "#t"


def _optional_int(name: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise MalformedPayload(f"{name} must be a non-negative integer")
    return value


@dataclass
class Filter:
    """
    Subscription filter.

    Attributes:
        ids: Event ids (hex or note bech32, stored as hex)
        authors: Author public keys (hex or npub, stored as hex)
        kinds: Event kinds
        since: Lower bound on created_at (inclusive)
        until: Upper bound on created_at (inclusive)
        limit: Maximum number of events for the initial query
        search: Full-text search string
        hashtags: Values of ``t`` tags
    """

    ids: Optional[List[str]] = None
    authors: Optional[List[Union[str, PublicKey]]] = None
    kinds: Optional[List[int]] = None
    since: Optional[int] = None
    until: Optional[int] = None
    limit: Optional[int] = None
    search: Optional[str] = None
    hashtags: Optional[List[str]] = None

    def __post_init__(self):
        if self.ids is not None:
            self.ids = [parse_event_id(i) for i in self.ids]
        if self.authors is not None:
            self.authors = [
                a.to_hex() if isinstance(a, PublicKey) else parse_public(a).to_hex()
                for a in self.authors
            ]
        if self.kinds is not None:
            for kind in self.kinds:
                if isinstance(kind, bool) or not isinstance(kind, int) or not 0 <= kind <= MAX_KIND:
                    raise MalformedPayload(f"kind must be an integer in [0, {MAX_KIND}]")
            self.kinds = [int(k) for k in self.kinds]
        self.since = _optional_int("since", self.since)
        self.until = _optional_int("until", self.until)
        self.limit = _optional_int("limit", self.limit)
        if self.since is not None and self.until is not None and self.since > self.until:
            raise MalformedPayload("since must not be after until")
        if self.search is not None and not isinstance(self.search, str):
            raise MalformedPayload("search must be a string")
        if self.hashtags is not None:
            if not all(isinstance(t, str) for t in self.hashtags):
                raise MalformedPayload("hashtags must be strings")
            self.hashtags = list(self.hashtags)

    def to_dict(self) -> Dict[str, Any]:
        """Relay wire object; unset criteria are omitted."""
        data: Dict[str, Any] = {}
        for name in ("ids", "authors", "kinds", "since", "until", "limit", "search"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.hashtags is not None:
            data[HASHTAG_KEY] = self.hashtags
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Filter":
        """
        Parse a relay wire object.

        Raises:
            MalformedPayload: If the object does not match the filter schema
        """
        validate_wire_object(data, "filter")
        fields = {k: v for k, v in data.items() if k != HASHTAG_KEY}
        return cls(hashtags=data.get(HASHTAG_KEY), **fields)

    @classmethod
    def from_json(cls, text: str) -> "Filter":
        return cls.from_dict(load_json(text))

    def is_empty(self) -> bool:
        """True when no criterion is set (matches everything)."""
        return not self.to_dict()
