"""
Nostr Core Versioned Encryption (NIP-44 version 2)

Authenticated encryption for messages that only the sender and the
recipient can read.

Construction:
    1. shared_x = x coordinate of ECDH(secret_a, public_b)
    2. conversation_key = HKDF-extract(salt="nip44-v2", ikm=shared_x)
    3. per message, a fresh 32-byte nonce:
         HKDF-expand(conversation_key, info=nonce, L=76)
           -> chacha_key (32) | chacha_nonce (12) | hmac_key (32)
    4. padded = u16be(len) || plaintext || zeros up to calc_padded_len(len)
    5. ciphertext = ChaCha20(chacha_key, chacha_nonce, counter=0) XOR padded
    6. mac = HMAC-SHA256(hmac_key, nonce || ciphertext)
    7. payload = base64(0x02 || nonce || ciphertext || mac)

Decryption checks the version, then the sizes, then the MAC (constant time)
and only then decrypts. A MAC mismatch raises AuthenticationFailed and no
plaintext, padded or not, is ever returned.

Usage:
    >>> from nostr_core.core.cipher import encrypt, decrypt
    >>>
    >>> payload = encrypt(alice.secret_key, bob.public_key, "hi bob")
    >>> decrypt(bob.secret_key, alice.public_key, payload)
    'hi bob'
"""

import base64
import binascii
import logging
import os
import struct
from dataclasses import dataclass
from typing import Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms
from cryptography.hazmat.primitives.kdf.hkdf import HKDFExpand

from nostr_core.core.errors import (
    AuthenticationFailed,
    MalformedPayload,
    UnsupportedVersion,
)
from nostr_core.core.keys import PublicKey, SecretKey, parse_public, parse_secret
from nostr_core.core.signer import DEFAULT_BACKEND

logger = logging.getLogger(__name__)

VERSION = 2
SUPPORTED_VERSIONS = frozenset({VERSION})

SALT = b"nip44-v2"
NONCE_SIZE = 32
MAC_SIZE = 32
MESSAGE_KEYS_SIZE = 76

MIN_PLAINTEXT_SIZE = 0
MAX_PLAINTEXT_SIZE = 65535

# version byte + nonce + (2 + 32 padded) + mac
MIN_PAYLOAD_SIZE = 1 + NONCE_SIZE + 2 + 32 + MAC_SIZE
MAX_PAYLOAD_SIZE = 1 + NONCE_SIZE + 2 + 65536 + MAC_SIZE
MIN_ENCODED_SIZE = 132
MAX_ENCODED_SIZE = 87472


@dataclass(frozen=True, repr=False)
class MessageKeys:
    """Per-message keys derived from the conversation key and nonce."""
    chacha_key: bytes
    chacha_nonce: bytes
    hmac_key: bytes


def _as_secret(secret_key: Union[SecretKey, str]) -> SecretKey:
    return parse_secret(secret_key) if isinstance(secret_key, str) else secret_key


def _as_public(public_key: Union[PublicKey, str]) -> PublicKey:
    return parse_public(public_key) if isinstance(public_key, str) else public_key


def get_conversation_key(
    secret_key: Union[SecretKey, str],
    public_key: Union[PublicKey, str]
) -> bytes:
    """
    Derive the 32-byte conversation key shared by a pair of keys.

    get_conversation_key(a, B) == get_conversation_key(b, A).

    Args:
        secret_key: Local secret key
        public_key: Remote x-only public key

    Returns:
        bytes: HKDF-extract of the shared x coordinate
    """
    secret_key = _as_secret(secret_key)
    public_key = _as_public(public_key)
    shared_x = DEFAULT_BACKEND.ecdh_x(secret_key.raw, public_key.raw)
    h = hmac.HMAC(SALT, hashes.SHA256())
    h.update(shared_x)
    return h.finalize()


def get_message_keys(conversation_key: bytes, nonce: bytes) -> MessageKeys:
    """Expand the conversation key with a message nonce."""
    if len(conversation_key) != 32:
        raise ValueError("conversation key must be 32 bytes")
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"nonce must be {NONCE_SIZE} bytes")
    keys = HKDFExpand(
        algorithm=hashes.SHA256(),
        length=MESSAGE_KEYS_SIZE,
        info=nonce
    ).derive(conversation_key)
    return MessageKeys(
        chacha_key=keys[0:32],
        chacha_nonce=keys[32:44],
        hmac_key=keys[44:76]
    )


def calc_padded_len(unpadded_len: int) -> int:
    """
    Size of the padded plaintext (without the 2-byte length prefix).

    Lengths up to 32 pad to 32. Above that the length is rounded up to a
    multiple of a chunk size: 32 while the next power of two is at most 256,
    one eighth of that power otherwise.
    """
    if unpadded_len < 0:
        raise ValueError("length must not be negative")
    if unpadded_len <= 32:
        return 32
    next_power = 1 << (unpadded_len - 1).bit_length()
    chunk = 32 if next_power <= 256 else next_power // 8
    return chunk * ((unpadded_len - 1) // chunk + 1)


def pad(plaintext: str) -> bytes:
    """
    Length-prefix and zero-pad a plaintext.

    Raises:
        MalformedPayload: If the plaintext is not encodable as UTF-8 or
                          exceeds 65535 bytes
    """
    try:
        unpadded = plaintext.encode("utf-8")
    except UnicodeEncodeError as e:
        raise MalformedPayload("plaintext is not encodable as UTF-8") from e
    size = len(unpadded)
    if not MIN_PLAINTEXT_SIZE <= size <= MAX_PLAINTEXT_SIZE:
        raise MalformedPayload(f"plaintext must be at most {MAX_PLAINTEXT_SIZE} bytes")
    return struct.pack(">H", size) + unpadded + bytes(calc_padded_len(size) - size)


def unpad(padded: bytes) -> str:
    """
    Strip the padding added by pad().

    Raises:
        MalformedPayload: Inconsistent length prefix, padding or UTF-8
    """
    if len(padded) < 2:
        raise MalformedPayload("padded plaintext too short")
    (size,) = struct.unpack(">H", padded[:2])
    unpadded = padded[2:2 + size]
    if len(unpadded) != size or len(padded) != 2 + calc_padded_len(size):
        raise MalformedPayload("invalid padding")
    try:
        return unpadded.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedPayload("plaintext is not valid UTF-8") from e


def _chacha20(keys: MessageKeys, data: bytes) -> bytes:
    # cryptography takes a 16-byte nonce: 4-byte little-endian counter, then the 12-byte nonce
    algorithm = algorithms.ChaCha20(keys.chacha_key, b"\x00\x00\x00\x00" + keys.chacha_nonce)
    transform = Cipher(algorithm, mode=None).encryptor()
    return transform.update(data) + transform.finalize()


def _hmac_aad(key: bytes, message: bytes, aad: bytes) -> hmac.HMAC:
    if len(aad) != NONCE_SIZE:
        raise ValueError("associated data must be 32 bytes")
    h = hmac.HMAC(key, hashes.SHA256())
    h.update(aad + message)
    return h


def _verify_mac(keys: MessageKeys, nonce: bytes, ciphertext: bytes, mac: bytes) -> None:
    try:
        _hmac_aad(keys.hmac_key, ciphertext, nonce).verify(mac)
    except InvalidSignature as e:
        raise AuthenticationFailed("invalid MAC") from e


def encrypt_with_conversation_key(
    conversation_key: bytes,
    plaintext: str,
    nonce: Optional[bytes] = None
) -> str:
    """
    Encrypt with an already derived conversation key.

    Args:
        conversation_key: From get_conversation_key()
        plaintext: Message text
        nonce: Only for reproducing known vectors. Leave unset so a fresh
               32-byte nonce is drawn from os.urandom for every message.

    Returns:
        str: base64 payload
    """
    if nonce is None:
        nonce = os.urandom(NONCE_SIZE)
    keys = get_message_keys(conversation_key, nonce)
    ciphertext = _chacha20(keys, pad(plaintext))
    mac = _hmac_aad(keys.hmac_key, ciphertext, nonce).finalize()
    payload = bytes([VERSION]) + nonce + ciphertext + mac
    logger.debug("encrypted payload of %d bytes", len(payload))
    return base64.b64encode(payload).decode("ascii")


def decode_payload(payload: str):
    """
    Split a base64 payload into (nonce, ciphertext, mac).

    Raises:
        UnsupportedVersion: Unknown version byte or a ``#`` prefix
        MalformedPayload: Undecodable base64 or out-of-range size
    """
    if not isinstance(payload, str) or not payload:
        raise MalformedPayload("payload must be a non-empty string")
    if payload[0] == "#":
        raise UnsupportedVersion("unknown encryption version")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedPayload("payload is not valid base64") from e
    if not data:
        raise MalformedPayload("payload is empty")
    if data[0] not in SUPPORTED_VERSIONS:
        raise UnsupportedVersion(f"unknown encryption version {data[0]}")
    if not MIN_ENCODED_SIZE <= len(payload) <= MAX_ENCODED_SIZE:
        raise MalformedPayload(f"invalid payload length {len(payload)}")
    if not MIN_PAYLOAD_SIZE <= len(data) <= MAX_PAYLOAD_SIZE:
        raise MalformedPayload(f"invalid decoded payload size {len(data)}")
    nonce = data[1:1 + NONCE_SIZE]
    ciphertext = data[1 + NONCE_SIZE:-MAC_SIZE]
    mac = data[-MAC_SIZE:]
    return nonce, ciphertext, mac


def decrypt_with_conversation_key(conversation_key: bytes, payload: str) -> str:
    """
    Authenticate and decrypt a payload with a conversation key.

    Raises:
        UnsupportedVersion, MalformedPayload: See decode_payload()
        AuthenticationFailed: MAC mismatch
    """
    nonce, ciphertext, mac = decode_payload(payload)
    keys = get_message_keys(conversation_key, nonce)
    _verify_mac(keys, nonce, ciphertext, mac)
    return unpad(_chacha20(keys, ciphertext))


def encrypt(
    secret_key: Union[SecretKey, str],
    public_key: Union[PublicKey, str],
    plaintext: str
) -> str:
    """
    Encrypt ``plaintext`` from the owner of ``secret_key`` to ``public_key``.

    Returns:
        str: base64 payload suitable for an event's content
    """
    return encrypt_with_conversation_key(get_conversation_key(secret_key, public_key), plaintext)


def decrypt(
    secret_key: Union[SecretKey, str],
    public_key: Union[PublicKey, str],
    payload: str
) -> str:
    """
    Decrypt a payload sent between ``secret_key``'s owner and ``public_key``.

    Raises:
        UnsupportedVersion: Unknown version
        MalformedPayload: Structurally invalid payload
        AuthenticationFailed: MAC mismatch (tampering or wrong keys)
    """
    return decrypt_with_conversation_key(get_conversation_key(secret_key, public_key), payload)
