"""
Nostr Core Schnorr Signer

This module provides BIP-340 Schnorr signatures and ECDH over secp256k1.

The curve library sits behind CurveBackend so EventCore and CipherV2 only
depend on four capabilities:

1. Derive the x-only public key of a secret scalar
2. Sign a 32-byte message (BIP-340, auxiliary randomness)
3. Verify a signature against an x-only public key
4. Compute the x coordinate of a shared ECDH point

CoincurveBackend implements them with libsecp256k1 through coincurve, whose
scalar multiplication is constant time.

Usage:
    >>> from nostr_core.core.signer import SchnorrSigner
    >>>
    >>> # Create a new signer with a generated key
    >>> signer = SchnorrSigner()
    >>>
    >>> # Sign a 32-byte digest
    >>> result = signer.sign(digest)
    >>>
    >>> # Verify
    >>> signer.verify(digest, result.signature).is_valid
    True
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

import coincurve

from nostr_core.core.errors import InvalidEncoding, InvalidPoint

logger = logging.getLogger(__name__)

# Order of the secp256k1 group.
CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

KEY_SIZE = 32
SIGNATURE_SIZE = 64
AUX_RAND_SIZE = 32


def is_valid_secret(secret: bytes) -> bool:
    """Return True if ``secret`` is a 32-byte scalar in [1, n-1]."""
    if len(secret) != KEY_SIZE:
        return False
    return 0 < int.from_bytes(secret, "big") < CURVE_ORDER


@dataclass
class SignatureResult:
    """Result of a signing operation."""
    signature: bytes
    signature_hex: str
    public_key: bytes
    public_key_hex: str


@dataclass
class VerificationResult:
    """Result of a signature verification."""
    is_valid: bool
    error_message: Optional[str] = None


class CurveBackend:
    """
    Capability interface over a secp256k1 implementation.

    All keys are raw bytes: 32-byte secret scalars and 32-byte x-only
    public keys.
    """

    def public_key(self, secret: bytes) -> bytes:
        raise NotImplementedError

    def is_valid_public_key(self, public_key: bytes) -> bool:
        raise NotImplementedError

    def sign_schnorr(self, secret: bytes, message: bytes, aux_rand: bytes) -> bytes:
        raise NotImplementedError

    def verify_schnorr(self, public_key: bytes, message: bytes, signature: bytes) -> bool:
        raise NotImplementedError

    def ecdh_x(self, secret: bytes, public_key: bytes) -> bytes:
        raise NotImplementedError


class CoincurveBackend(CurveBackend):
    """CurveBackend backed by coincurve (libsecp256k1)."""

    @staticmethod
    def _full_point(public_key: bytes) -> coincurve.PublicKey:
        # x-only keys always refer to the point with an even y coordinate
        try:
            return coincurve.PublicKey(b"\x02" + public_key)
        except ValueError as e:
            raise InvalidPoint("public key is not a point on secp256k1") from e

    def public_key(self, secret: bytes) -> bytes:
        if not is_valid_secret(secret):
            raise InvalidEncoding("secret key scalar out of range")
        return coincurve.PrivateKey(secret).public_key.format(compressed=True)[1:]

    def is_valid_public_key(self, public_key: bytes) -> bool:
        if len(public_key) != KEY_SIZE:
            return False
        try:
            self._full_point(public_key)
        except InvalidPoint:
            return False
        return True

    def sign_schnorr(self, secret: bytes, message: bytes, aux_rand: bytes) -> bytes:
        if not is_valid_secret(secret):
            raise InvalidEncoding("secret key scalar out of range")
        if len(message) != 32:
            raise ValueError("message must be a 32-byte digest")
        if len(aux_rand) != AUX_RAND_SIZE:
            raise ValueError("aux_rand must be 32 bytes")
        return coincurve.PrivateKey(secret).sign_schnorr(message, aux_rand)

    def verify_schnorr(self, public_key: bytes, message: bytes, signature: bytes) -> bool:
        if len(public_key) != KEY_SIZE or len(signature) != SIGNATURE_SIZE:
            return False
        try:
            return bool(coincurve.PublicKeyXOnly(public_key).verify(signature, message))
        except ValueError:
            return False

    def ecdh_x(self, secret: bytes, public_key: bytes) -> bytes:
        if not is_valid_secret(secret):
            raise InvalidEncoding("secret key scalar out of range")
        shared = self._full_point(public_key).multiply(secret)
        return shared.format(compressed=True)[1:]


DEFAULT_BACKEND: CurveBackend = CoincurveBackend()


def generate_secret() -> bytes:
    """Draw a valid secret scalar from the OS CSPRNG."""
    while True:
        candidate = os.urandom(KEY_SIZE)
        if is_valid_secret(candidate):
            return candidate


class SchnorrSigner:
    """
    BIP-340 Schnorr signature provider.

    Attributes:
        _secret: The 32-byte secret scalar
        _public_key: The 32-byte x-only public key, derived from _secret
        _backend: CurveBackend doing the curve arithmetic
    """

    def __init__(
        self,
        private_key: Optional[bytes] = None,
        backend: Optional[CurveBackend] = None
    ):
        """
        Initialize the signer.

        Args:
            private_key: Optional 32-byte secret key. If not provided,
                        a new one is generated.
            backend: Curve implementation, defaults to coincurve.

        Raises:
            InvalidEncoding: If the secret is not a scalar in [1, n-1]
        """
        self._backend = backend or DEFAULT_BACKEND
        if private_key is None:
            private_key = generate_secret()
        if not is_valid_secret(private_key):
            raise InvalidEncoding("secret key scalar out of range")
        self._secret = bytes(private_key)
        self._public_key = self._backend.public_key(self._secret)

    def __repr__(self) -> str:
        return f"SchnorrSigner(public_key={self.public_key_hex})"

    @property
    def public_key(self) -> bytes:
        """Get the x-only public key bytes."""
        return self._public_key

    @property
    def public_key_hex(self) -> str:
        """Get the public key as lowercase hex."""
        return self._public_key.hex()

    def sign(self, message: bytes, aux_rand: Optional[bytes] = None) -> SignatureResult:
        """
        Sign a 32-byte message.

        Args:
            message: The digest to sign (an event id)
            aux_rand: 32 bytes of auxiliary randomness. Fresh bytes from
                      os.urandom are used when omitted.

        Returns:
            SignatureResult: Contains signature and public key
        """
        if aux_rand is None:
            aux_rand = os.urandom(AUX_RAND_SIZE)
        signature = self._backend.sign_schnorr(self._secret, message, aux_rand)
        return SignatureResult(
            signature=signature,
            signature_hex=signature.hex(),
            public_key=self._public_key,
            public_key_hex=self.public_key_hex
        )

    def verify(self, message: bytes, signature: bytes) -> VerificationResult:
        """Verify a signature against this signer's public key."""
        return self.verify_with_public_key(message, signature, self._public_key, self._backend)

    def ecdh(self, public_key: bytes) -> bytes:
        """Shared x coordinate between this secret and ``public_key``."""
        return self._backend.ecdh_x(self._secret, public_key)

    @staticmethod
    def verify_with_public_key(
        message: bytes,
        signature: bytes,
        public_key: bytes,
        backend: Optional[CurveBackend] = None
    ) -> VerificationResult:
        """
        Verify a signature using a provided x-only public key.

        Args:
            message: The signed 32-byte digest
            signature: The 64-byte signature
            public_key: 32-byte x-only public key
            backend: Curve implementation, defaults to coincurve

        Returns:
            VerificationResult: Contains is_valid and optional error
        """
        backend = backend or DEFAULT_BACKEND
        if len(signature) != SIGNATURE_SIZE:
            return VerificationResult(is_valid=False, error_message="signature must be 64 bytes")
        if not backend.is_valid_public_key(public_key):
            return VerificationResult(is_valid=False, error_message="public key is not on the curve")
        if backend.verify_schnorr(public_key, message, signature):
            return VerificationResult(is_valid=True)
        return VerificationResult(is_valid=False, error_message="signature verification failed")

    @staticmethod
    def verify_with_public_key_hex(
        message: bytes,
        signature_hex: str,
        public_key_hex: str
    ) -> VerificationResult:
        """Verify using hex-encoded signature and public key."""
        try:
            signature = bytes.fromhex(signature_hex)
            public_key = bytes.fromhex(public_key_hex)
        except ValueError as e:
            return VerificationResult(is_valid=False, error_message=f"Decode error: {e}")
        return SchnorrSigner.verify_with_public_key(message, signature, public_key)


def generate_key_pair() -> Tuple[bytes, bytes]:
    """
    Generate a new secp256k1 key pair.

    Returns:
        Tuple[bytes, bytes]: (secret_key, x_only_public_key) each 32 bytes
    """
    signer = SchnorrSigner()
    return (signer._secret, signer.public_key)


def generate_key_pair_hex() -> Tuple[str, str]:
    """
    Generate a new key pair as hex strings.

    Returns:
        Tuple[str, str]: (secret_key_hex, public_key_hex)
    """
    secret, public = generate_key_pair()
    return (secret.hex(), public.hex())
