"""
nostr-core: event identity, signatures and encryption for Nostr

This library provides:
- Key parsing and formatting (hex and NIP-19 bech32)
- Canonical event ids and BIP-340 Schnorr signatures
- Event verification with id/signature failure reasons
- NIP-44 version 2 authenticated encryption
- Subscription filter records and a text tokenizer

Example:
    >>> from nostr_core import Keys, build_event, verify_event
    >>>
    >>> keys = Keys.generate()
    >>> unsigned = build_event(keys.public_key, "hello nostr")
    >>> event = unsigned.sign(keys.secret_key)
    >>> verify_event(event)
    True
    >>>
    >>> # Encrypt to someone else
    >>> from nostr_core import encrypt, decrypt
    >>> bob = Keys.generate()
    >>> payload = encrypt(keys.secret_key, bob.public_key, "secret")
    >>> decrypt(bob.secret_key, keys.public_key, payload)
    'secret'

License:
    MIT
"""

__version__ = "0.1.0"
__author__ = "nostr-core contributors"
__license__ = "MIT"

from nostr_core.core.errors import (
    NostrError,
    InvalidEncoding,
    InvalidTag,
    InvalidPoint,
    KeyMismatch,
    IdMismatch,
    SignatureInvalid,
    UnsupportedVersion,
    AuthenticationFailed,
    MalformedPayload,
)
from nostr_core.core.keys import (
    Nip19Kind,
    PublicKey,
    SecretKey,
    Keys,
    encode_bech32,
    decode_bech32,
    parse_secret,
    parse_public,
    parse_event_id,
)
from nostr_core.core.events import (
    Kind,
    UnsignedEvent,
    Event,
    compute_id,
    build_event,
    sign_event,
    check_event,
    verify_event,
)
from nostr_core.core.verifier import EventVerifier
from nostr_core.core.cipher import encrypt, decrypt, get_conversation_key
from nostr_core.core.filters import Filter
from nostr_core.core.parser import parse_text

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Errors
    "NostrError",
    "InvalidEncoding",
    "InvalidTag",
    "InvalidPoint",
    "KeyMismatch",
    "IdMismatch",
    "SignatureInvalid",
    "UnsupportedVersion",
    "AuthenticationFailed",
    "MalformedPayload",
    # Keys
    "Nip19Kind",
    "PublicKey",
    "SecretKey",
    "Keys",
    "encode_bech32",
    "decode_bech32",
    "parse_secret",
    "parse_public",
    "parse_event_id",
    # Events
    "Kind",
    "UnsignedEvent",
    "Event",
    "compute_id",
    "build_event",
    "sign_event",
    "check_event",
    "verify_event",
    "EventVerifier",
    # Encryption
    "encrypt",
    "decrypt",
    "get_conversation_key",
    # Filters and parsing
    "Filter",
    "parse_text",
]
