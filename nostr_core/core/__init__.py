"""
Nostr Core Module

This module contains the cryptographic core of the protocol.

Submodules:
    - errors: Error hierarchy
    - signer: secp256k1 capability interface and Schnorr signer
    - keys: Key and event id codec (hex, bech32)
    - events: Event ids, signing and verification
    - verifier: Batch verification with failure reasons
    - cipher: Versioned authenticated encryption (NIP-44 v2)
    - filters: Subscription filter record
    - parser: Text tokenizer
"""

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

from nostr_core.core.signer import (
    CurveBackend,
    CoincurveBackend,
    SchnorrSigner,
    SignatureResult,
    VerificationResult,
    generate_key_pair,
    generate_key_pair_hex,
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
    nip19_encode,
    nip19_decode,
)

from nostr_core.core.events import (
    Kind,
    UnsignedEvent,
    Event,
    serialize,
    compute_id,
    validate_tags,
    build_event,
    sign_event,
    check_event,
    verify_event,
)

from nostr_core.core.verifier import (
    EventVerifier,
    EventVerificationResult,
    BatchVerificationResult,
)

from nostr_core.core import cipher

from nostr_core.core.filters import Filter

from nostr_core.core.parser import Token, TokenType, parse_text

__all__ = [
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
    # Signer
    "CurveBackend",
    "CoincurveBackend",
    "SchnorrSigner",
    "SignatureResult",
    "VerificationResult",
    "generate_key_pair",
    "generate_key_pair_hex",
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
    "nip19_encode",
    "nip19_decode",
    # Events
    "Kind",
    "UnsignedEvent",
    "Event",
    "serialize",
    "compute_id",
    "validate_tags",
    "build_event",
    "sign_event",
    "check_event",
    "verify_event",
    # Verifier
    "EventVerifier",
    "EventVerificationResult",
    "BatchVerificationResult",
    # Encryption
    "cipher",
    # Filters and parsing
    "Filter",
    "Token",
    "TokenType",
    "parse_text",
]
