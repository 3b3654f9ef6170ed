"""
Nostr Core Event Definitions

This module defines the event record and the operations that give it an
identity:

    - compute_id: SHA-256 over the canonical serialization
          [0, <pubkey hex>, <created_at>, <kind>, <tags>, <content>]
    - sign: BIP-340 Schnorr signature over the 32-byte id
    - verify: recompute the id, then check the signature

Lifecycle:
    UnsignedEvent (id computed, no sig) --sign--> Event (sig present)

Both records are frozen; tags are stored as tuples of strings so nothing
reachable from a signed event can be mutated in place.

The canonical serialization escapes only the seven characters the protocol
names (double quote, backslash, newline, carriage return, tab, backspace,
form feed). Every other character, including other control characters and
all non-ASCII text, is written verbatim as UTF-8. A generic JSON encoder
escapes more than that and would produce different ids.
"""

import hashlib
import json
import logging
import re
from dataclasses import dataclass, field
from enum import IntEnum
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple, Union

import jsonschema

from nostr_core.core.errors import (
    IdMismatch,
    InvalidEncoding,
    InvalidTag,
    KeyMismatch,
    MalformedPayload,
    SignatureInvalid,
)
from nostr_core.core.keys import PublicKey, SecretKey, parse_public, parse_secret
from nostr_core.core.signer import SchnorrSigner
from nostr_core.utils.helpers import is_hex128, is_hex64, now_timestamp

logger = logging.getLogger(__name__)

MAX_KIND = 0xFFFF
MAX_CREATED_AT = 2 ** 64 - 1

SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schemas"

Tags = Tuple[Tuple[str, ...], ...]


class Kind(IntEnum):
    """
    Well-known event kinds.

    Kinds are opaque 16-bit codes to this module; the names exist for
    readability only and any value in [0, 65535] is accepted.
    """

    METADATA = 0
    TEXT_NOTE = 1
    RECOMMEND_RELAY = 2
    CONTACTS = 3
    ENCRYPTED_DIRECT_MESSAGE = 4
    EVENT_DELETION = 5
    REPOST = 6
    REACTION = 7
    SEAL = 13
    PRIVATE_DIRECT_MESSAGE = 14
    GIFT_WRAP = 1059
    ZAP_REQUEST = 9734
    ZAP_RECEIPT = 9735
    RELAY_LIST = 10002


def kind_name(kind: int) -> Optional[str]:
    """Name of a well-known kind, or None."""
    try:
        return Kind(kind).name
    except ValueError:
        return None


# =============================================================================
# Canonical serialization
# =============================================================================

_ESCAPES = {
    '"': '\\"',
    '\\': '\\\\',
    '\n': '\\n',
    '\r': '\\r',
    '\t': '\\t',
    '\b': '\\b',
    '\f': '\\f',
}
_ESCAPE_RE = re.compile('[' + re.escape(''.join(_ESCAPES)) + ']')


def _quote(value: str) -> str:
    return '"' + _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(0)], value) + '"'


def validate_tags(tags: Optional[Iterable[Sequence[str]]]) -> Tags:
    """
    Check tags and freeze them into tuples.

    A tag is a non-empty list or tuple of strings whose first element is
    the tag name. Invalid tags raise; they are never rewritten.

    Raises:
        InvalidTag: If any tag is malformed
    """
    if tags is None:
        return ()
    if isinstance(tags, (str, bytes)) or not isinstance(tags, (list, tuple)):
        raise InvalidTag("tags must be a list of tag arrays")
    frozen = []
    for index, tag in enumerate(tags):
        if not isinstance(tag, (list, tuple)):
            raise InvalidTag(f"tag {index} is not an array")
        if not tag:
            raise InvalidTag(f"tag {index} is empty")
        for position, value in enumerate(tag):
            if not isinstance(value, str):
                raise InvalidTag(
                    f"tag {index} element {position} is {type(value).__name__}, not str"
                )
            try:
                value.encode("utf-8")
            except UnicodeEncodeError as e:
                raise InvalidTag(
                    f"tag {index} element {position} is not encodable as UTF-8"
                ) from e
        frozen.append(tuple(tag))
    return tuple(frozen)


def _check_int(name: str, value: Any, maximum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedPayload(f"{name} must be an integer")
    if not 0 <= value <= maximum:
        raise MalformedPayload(f"{name} must be in [0, {maximum}]")
    return int(value)


def _check_content(content: Any) -> str:
    if not isinstance(content, str):
        raise MalformedPayload("content must be a string")
    try:
        content.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidEncoding("content is not encodable as UTF-8") from e
    return content


def _pubkey_hex(pubkey: Union[PublicKey, str]) -> str:
    if isinstance(pubkey, PublicKey):
        return pubkey.to_hex()
    if not is_hex64(pubkey):
        raise InvalidEncoding("pubkey must be 64 lowercase hex characters")
    return pubkey


def serialize(
    pubkey: Union[PublicKey, str],
    created_at: int,
    kind: int,
    tags: Iterable[Sequence[str]],
    content: str
) -> bytes:
    """
    Canonical UTF-8 serialization used as the id pre-image.

    Returns:
        bytes: ``[0,"<pubkey>",<created_at>,<kind>,<tags>,"<content>"]``
    """
    pubkey = _pubkey_hex(pubkey)
    created_at = _check_int("created_at", created_at, MAX_CREATED_AT)
    kind = _check_int("kind", kind, MAX_KIND)
    tags = validate_tags(tags)
    content = _check_content(content)

    tags_json = "[" + ",".join(
        "[" + ",".join(_quote(value) for value in tag) + "]" for tag in tags
    ) + "]"
    serialized = f"[0,{_quote(pubkey)},{created_at},{kind},{tags_json},{_quote(content)}]"
    return serialized.encode("utf-8")


def compute_id(
    pubkey: Union[PublicKey, str],
    created_at: int,
    kind: int,
    tags: Iterable[Sequence[str]],
    content: str
) -> str:
    """
    Compute the event id.

    Args:
        pubkey: x-only public key (PublicKey or 64-char hex)
        created_at: Unix timestamp in seconds
        kind: Event kind in [0, 65535]
        tags: Ordered tag arrays, kept in the given order
        content: Arbitrary string

    Returns:
        str: Lowercase hex SHA-256 of the canonical serialization
    """
    return hashlib.sha256(serialize(pubkey, created_at, kind, tags, content)).hexdigest()


# =============================================================================
# Event records
# =============================================================================

@dataclass(frozen=True)
class UnsignedEvent:
    """
    Event with its id computed but no signature.

    Attributes:
        pubkey: Author's x-only public key (hex)
        created_at: Unix timestamp in seconds
        kind: Event kind
        tags: Ordered tags
        content: Event content
        id: Computed from the fields above, never supplied
    """

    pubkey: str
    created_at: int
    kind: int
    tags: Tags = ()
    content: str = ""
    id: str = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "pubkey", _pubkey_hex(self.pubkey))
        object.__setattr__(self, "created_at", _check_int("created_at", self.created_at, MAX_CREATED_AT))
        object.__setattr__(self, "kind", _check_int("kind", self.kind, MAX_KIND))
        object.__setattr__(self, "tags", validate_tags(self.tags))
        object.__setattr__(self, "content", _check_content(self.content))
        object.__setattr__(
            self, "id",
            compute_id(self.pubkey, self.created_at, self.kind, self.tags, self.content)
        )

    def sign(
        self,
        secret_key: Union[SecretKey, str],
        aux_rand: Optional[bytes] = None
    ) -> "Event":
        """
        Sign the event id and return a new signed Event.

        Args:
            secret_key: SecretKey, or hex/nsec text
            aux_rand: 32 bytes of BIP-340 auxiliary randomness; fresh OS
                      randomness when omitted

        Raises:
            KeyMismatch: If the secret key is not the author's key
        """
        if isinstance(secret_key, str):
            secret_key = parse_secret(secret_key)
        signer = SchnorrSigner(secret_key.raw)
        if signer.public_key_hex != self.pubkey:
            raise KeyMismatch("secret key does not match the event pubkey")

        result = signer.sign(bytes.fromhex(self.id), aux_rand)
        logger.debug("signed event %s kind=%d", self.id, self.kind)
        return Event(
            id=self.id,
            pubkey=self.pubkey,
            created_at=self.created_at,
            kind=self.kind,
            tags=self.tags,
            content=self.content,
            sig=result.signature_hex
        )

    def to_dict(self) -> Dict[str, Any]:
        """Wire-shaped dict with an empty ``sig``."""
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
            "sig": "",
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UnsignedEvent":
        """
        Build an unsigned event from a dict; ``id`` and ``sig`` are ignored
        and the id is recomputed.
        """
        if not isinstance(data, dict):
            raise MalformedPayload("unsigned event must be a JSON object")
        missing = [k for k in ("pubkey", "created_at", "kind", "content") if k not in data]
        if missing:
            raise MalformedPayload(f"missing fields: {', '.join(missing)}")
        tags = data.get("tags", ())
        if tags is None:
            raise InvalidTag("tags must be a list of tag arrays")
        return cls(
            pubkey=data["pubkey"],
            created_at=data["created_at"],
            kind=data["kind"],
            tags=tags,
            content=data["content"]
        )


@dataclass(frozen=True)
class Event:
    """
    Signed event, as transmitted between clients and relays.

    Construction only checks the shape of the fields. Whether the id and
    signature are genuine is decided by verify() / check_event().
    """

    id: str
    pubkey: str
    created_at: int
    kind: int
    tags: Tags
    content: str
    sig: str

    def __post_init__(self):
        if not is_hex64(self.id):
            raise InvalidEncoding("id must be 64 lowercase hex characters")
        if not is_hex64(self.pubkey):
            raise InvalidEncoding("pubkey must be 64 lowercase hex characters")
        if not is_hex128(self.sig):
            raise InvalidEncoding("sig must be 128 lowercase hex characters")
        object.__setattr__(self, "created_at", _check_int("created_at", self.created_at, MAX_CREATED_AT))
        object.__setattr__(self, "kind", _check_int("kind", self.kind, MAX_KIND))
        object.__setattr__(self, "tags", validate_tags(self.tags))
        object.__setattr__(self, "content", _check_content(self.content))

    def compute_id(self) -> str:
        """Recompute the id from this event's fields."""
        return compute_id(self.pubkey, self.created_at, self.kind, self.tags, self.content)

    def check(self) -> None:
        """Raise IdMismatch or SignatureInvalid if the event is not genuine."""
        check_event(self)

    def verify(self) -> bool:
        """True only if both the id and the signature check out."""
        return verify_event(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to its wire dictionary."""
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
            "sig": self.sig,
        }

    def to_json(self) -> str:
        """Compact UTF-8 JSON wire form."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        """
        Create an event from its wire dictionary.

        Raises:
            MalformedPayload: If the object does not match the event schema
        """
        validate_wire_object(data, "event")
        return cls(
            id=data["id"],
            pubkey=data["pubkey"],
            created_at=data["created_at"],
            kind=data["kind"],
            tags=data["tags"],
            content=data["content"],
            sig=data["sig"]
        )

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "Event":
        """Parse the JSON wire form."""
        return cls.from_dict(load_json(text))


# =============================================================================
# Wire validation
# =============================================================================

@lru_cache(maxsize=None)
def load_schema(name: str) -> dict:
    """Load a JSON schema shipped in nostr_core/schemas."""
    with open(SCHEMA_DIR / f"{name}.json", encoding="utf-8") as f:
        return json.load(f)


@lru_cache(maxsize=None)
def _validator(name: str) -> jsonschema.Draft202012Validator:
    return jsonschema.Draft202012Validator(load_schema(name))


def validate_wire_object(data: Any, schema_name: str) -> None:
    """
    Validate a decoded JSON object against one of the bundled schemas.

    Raises:
        MalformedPayload: With the first validation error
    """
    try:
        _validator(schema_name).validate(data)
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise MalformedPayload(f"invalid {schema_name} at {location}: {e.message}") from e


def load_json(text: Union[str, bytes]) -> Any:
    """json.loads that raises MalformedPayload."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise MalformedPayload(f"invalid JSON: {e}") from e


# =============================================================================
# Operations
# =============================================================================

def build_event(
    pubkey: Union[PublicKey, str],
    content: str,
    kind: int = Kind.TEXT_NOTE,
    tags: Optional[Iterable[Sequence[str]]] = None,
    created_at: Optional[int] = None
) -> UnsignedEvent:
    """
    Assemble an unsigned event.

    The public key is parsed (hex or npub) and must be a curve point; tags
    are validated here, at construction time.

    Args:
        pubkey: Author public key
        content: Event content
        kind: Event kind, defaults to a text note
        tags: Optional tag arrays
        created_at: Unix timestamp, defaults to now

    Returns:
        UnsignedEvent: With its id computed
    """
    if not isinstance(pubkey, PublicKey):
        pubkey = parse_public(pubkey)
    event = UnsignedEvent(
        pubkey=pubkey.to_hex(),
        created_at=now_timestamp() if created_at is None else created_at,
        kind=kind,
        tags=validate_tags(tags),
        content=content
    )
    logger.debug("built event %s kind=%d tags=%d", event.id, event.kind, len(event.tags))
    return event


def sign_event(
    event: UnsignedEvent,
    secret_key: Union[SecretKey, str],
    aux_rand: Optional[bytes] = None
) -> Event:
    """Function form of UnsignedEvent.sign()."""
    return event.sign(secret_key, aux_rand)


def check_event(event: Event) -> None:
    """
    Verify an event, raising on failure.

    The id is checked first; the signature is only examined when the id
    matches.

    Raises:
        IdMismatch: The stored id is not the digest of the fields
        SignatureInvalid: The signature does not verify for (id, pubkey)
    """
    expected = event.compute_id()
    if expected != event.id:
        raise IdMismatch(f"event id {event.id} does not match computed id {expected}")
    result = SchnorrSigner.verify_with_public_key(
        bytes.fromhex(event.id),
        bytes.fromhex(event.sig),
        bytes.fromhex(event.pubkey)
    )
    if not result.is_valid:
        raise SignatureInvalid(f"event {event.id}: {result.error_message}")


def verify_event(event: Event) -> bool:
    """
    Verify an event's id and signature.

    Returns:
        bool: True if both pass; False otherwise, never raises for a
              non-genuine event
    """
    try:
        check_event(event)
    except (IdMismatch, SignatureInvalid) as e:
        logger.debug("event rejected: %s", e)
        return False
    return True
