"""
Nostr Core Key Codec

Parsing and formatting of secret keys, public keys and event ids in their
two textual forms:

    - 64 lowercase hex characters
    - bech32 (NIP-19) with a type-specific human-readable prefix:
        npub  public key
        nsec  secret key
        note  event id

Decoding dispatches only on the prefix actually present in the string, and
bech32 input must be lowercase (mixed or upper case is rejected).

Usage:
    >>> from nostr_core.core.keys import Keys, parse_public
    >>>
    >>> keys = Keys.generate()
    >>> npub = keys.public_key.to_bech32()
    >>> parse_public(npub) == keys.public_key
    True
"""

import hmac
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union

import bech32

from nostr_core.core.errors import InvalidEncoding, InvalidPoint
from nostr_core.core.signer import (
    DEFAULT_BACKEND,
    KEY_SIZE,
    SchnorrSigner,
    SignatureResult,
    generate_secret,
    is_valid_secret,
)
from nostr_core.utils.helpers import is_hex64


class Nip19Kind(Enum):
    """Human-readable prefixes for bech32 entities."""

    NPUB = "npub"   # x-only public key
    NSEC = "nsec"   # secret key
    NOTE = "note"   # event id


def encode_bech32(kind: Union[Nip19Kind, str], raw_bytes: bytes) -> str:
    """
    Encode 32 raw bytes as a lowercase bech32 string.

    Args:
        kind: Nip19Kind (or its prefix string) selecting the HRP
        raw_bytes: 32-byte key or id

    Returns:
        str: bech32 string such as ``npub1...``

    Raises:
        InvalidEncoding: Unknown kind or wrong payload size
    """
    try:
        kind = Nip19Kind(kind)
    except ValueError as e:
        raise InvalidEncoding(f"unknown bech32 kind: {kind!r}") from e
    if len(raw_bytes) != KEY_SIZE:
        raise InvalidEncoding(f"{kind.value} payload must be {KEY_SIZE} bytes")
    data = bech32.convertbits(raw_bytes, 8, 5)
    return bech32.bech32_encode(kind.value, data)


def decode_bech32(text: str) -> Tuple[Nip19Kind, bytes]:
    """
    Decode a bech32 string into its kind and 32-byte payload.

    Raises:
        InvalidEncoding: Bad checksum, non-lowercase input, unknown prefix
                         or a payload that is not 32 bytes
    """
    if not isinstance(text, str) or text != text.lower():
        raise InvalidEncoding("bech32 input must be a lowercase string")
    hrp, data = bech32.bech32_decode(text)
    if hrp is None or data is None:
        raise InvalidEncoding("invalid bech32 string or checksum")
    try:
        kind = Nip19Kind(hrp)
    except ValueError as e:
        raise InvalidEncoding(f"unknown bech32 prefix: {hrp}") from e
    decoded = bech32.convertbits(data, 5, 8, False)
    if decoded is None or len(decoded) != KEY_SIZE:
        raise InvalidEncoding(f"{hrp} payload must be {KEY_SIZE} bytes")
    return kind, bytes(decoded)


def _decode_text(text: str, expected: Nip19Kind) -> bytes:
    if not isinstance(text, str):
        raise InvalidEncoding(f"expected a string, got {type(text).__name__}")
    if is_hex64(text):
        return bytes.fromhex(text)
    if "1" in text:
        kind, raw = decode_bech32(text)
        if kind is not expected:
            raise InvalidEncoding(f"expected {expected.value}, got {kind.value}")
        return raw
    raise InvalidEncoding(f"expected 64 lowercase hex characters or {expected.value} bech32")


@dataclass(frozen=True)
class PublicKey:
    """
    x-only secp256k1 public key.

    Construction checks that the bytes are the x coordinate of a curve
    point, so a PublicKey instance is always usable for verification.
    """

    raw: bytes

    def __post_init__(self):
        if not isinstance(self.raw, (bytes, bytearray)) or len(self.raw) != KEY_SIZE:
            raise InvalidEncoding(f"public key must be {KEY_SIZE} bytes")
        object.__setattr__(self, "raw", bytes(self.raw))
        if not DEFAULT_BACKEND.is_valid_public_key(self.raw):
            raise InvalidPoint("public key is not a point on secp256k1")

    def __str__(self) -> str:
        return self.to_hex()

    def to_hex(self) -> str:
        return self.raw.hex()

    def to_bech32(self) -> str:
        return encode_bech32(Nip19Kind.NPUB, self.raw)

    @classmethod
    def from_hex(cls, text: str) -> "PublicKey":
        if not is_hex64(text):
            raise InvalidEncoding("public key must be 64 lowercase hex characters")
        return cls(bytes.fromhex(text))

    @classmethod
    def from_bech32(cls, text: str) -> "PublicKey":
        kind, raw = decode_bech32(text)
        if kind is not Nip19Kind.NPUB:
            raise InvalidEncoding(f"expected npub, got {kind.value}")
        return cls(raw)

    def verify(self, message: bytes, signature: bytes) -> bool:
        return SchnorrSigner.verify_with_public_key(message, signature, self.raw).is_valid


@dataclass(frozen=True, eq=False, repr=False)
class SecretKey:
    """
    secp256k1 secret scalar in [1, n-1].

    The bytes never appear in repr() and equality is constant time.
    """

    raw: bytes

    def __post_init__(self):
        if not isinstance(self.raw, (bytes, bytearray)) or len(self.raw) != KEY_SIZE:
            raise InvalidEncoding(f"secret key must be {KEY_SIZE} bytes")
        object.__setattr__(self, "raw", bytes(self.raw))
        if not is_valid_secret(self.raw):
            raise InvalidEncoding("secret key scalar out of range")

    def __repr__(self) -> str:
        return "SecretKey(<redacted>)"

    def __eq__(self, other) -> bool:
        if not isinstance(other, SecretKey):
            return NotImplemented
        return hmac.compare_digest(self.raw, other.raw)

    __hash__ = None

    def public_key(self) -> PublicKey:
        """Recompute the public key for this scalar."""
        return PublicKey(DEFAULT_BACKEND.public_key(self.raw))

    def to_hex(self) -> str:
        return self.raw.hex()

    def to_bech32(self) -> str:
        return encode_bech32(Nip19Kind.NSEC, self.raw)

    @classmethod
    def generate(cls) -> "SecretKey":
        return cls(generate_secret())

    @classmethod
    def from_hex(cls, text: str) -> "SecretKey":
        if not is_hex64(text):
            raise InvalidEncoding("secret key must be 64 lowercase hex characters")
        return cls(bytes.fromhex(text))

    @classmethod
    def from_bech32(cls, text: str) -> "SecretKey":
        kind, raw = decode_bech32(text)
        if kind is not Nip19Kind.NSEC:
            raise InvalidEncoding(f"expected nsec, got {kind.value}")
        return cls(raw)


def parse_secret(text: str) -> SecretKey:
    """
    Parse a secret key from hex or ``nsec`` bech32.

    Raises:
        InvalidEncoding: Malformed input, bad checksum, wrong prefix or a
                         scalar outside [1, n-1]
    """
    return SecretKey(_decode_text(text, Nip19Kind.NSEC))


def parse_public(text: str) -> PublicKey:
    """
    Parse an x-only public key from hex or ``npub`` bech32.

    Raises:
        InvalidEncoding: Malformed input, bad checksum or wrong prefix
        InvalidPoint: The x coordinate is not on the curve
    """
    return PublicKey(_decode_text(text, Nip19Kind.NPUB))


def parse_event_id(text: str) -> str:
    """Parse an event id from hex or ``note`` bech32 into lowercase hex."""
    return _decode_text(text, Nip19Kind.NOTE).hex()


class Keys:
    """
    A secret key together with its public key.

    The public key is always recomputed from the secret, never taken from
    input.

    Attributes:
        secret_key: The SecretKey
        public_key: The derived PublicKey
    """

    def __init__(self, secret_key: Union[SecretKey, str]):
        if isinstance(secret_key, str):
            secret_key = parse_secret(secret_key)
        self.secret_key = secret_key
        self.public_key = secret_key.public_key()

    def __repr__(self) -> str:
        return f"Keys(public_key={self.public_key.to_bech32()})"

    @classmethod
    def generate(cls) -> "Keys":
        """Create a key pair from fresh OS randomness."""
        return cls(SecretKey.generate())

    @classmethod
    def parse(cls, text: str) -> "Keys":
        """Create a key pair from a hex or nsec secret key."""
        return cls(parse_secret(text))

    def sign(self, message: bytes, aux_rand: Optional[bytes] = None) -> SignatureResult:
        """Schnorr-sign a 32-byte digest."""
        return SchnorrSigner(self.secret_key.raw).sign(message, aux_rand)

    def to_dict(self) -> Dict[str, str]:
        """Export both keys as hex. Contains the secret key."""
        return {
            "public_key": self.public_key.to_hex(),
            "secret_key": self.secret_key.to_hex(),
        }


def nip19_encode(data_type: str, data: str) -> str:
    """
    Encode hex data as bech32 after validating it as ``data_type``.

    Args:
        data_type: "npub", "nsec" or "note"
        data: 64 lowercase hex characters

    Returns:
        str: The bech32 encoding
    """
    try:
        kind = Nip19Kind(data_type)
    except ValueError as e:
        raise InvalidEncoding(f"unknown bech32 kind: {data_type!r}") from e

    if kind is Nip19Kind.NPUB:
        return PublicKey.from_hex(data).to_bech32()
    if kind is Nip19Kind.NSEC:
        return SecretKey.from_hex(data).to_bech32()
    if not is_hex64(data):
        raise InvalidEncoding("event id must be 64 lowercase hex characters")
    return encode_bech32(kind, bytes.fromhex(data))


def nip19_decode(text: str) -> Dict[str, str]:
    """
    Decode a bech32 entity.

    Returns:
        dict: ``{"data_type": <prefix>, "data": <hex>}``
    """
    kind, raw = decode_bech32(text)
    if kind is Nip19Kind.NPUB:
        raw = PublicKey(raw).raw
    elif kind is Nip19Kind.NSEC:
        raw = SecretKey(raw).raw
    return {"data_type": kind.value, "data": raw.hex()}
