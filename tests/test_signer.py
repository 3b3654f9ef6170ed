"""
Tests for Nostr Core Schnorr Signer

Tests cover:
- BIP-340 reference vector
- Verification failures
- ECDH symmetry
- Pluggable curve backend
"""

import pytest

from nostr_core.core.errors import InvalidEncoding, InvalidPoint
from nostr_core.core.signer import (
    CURVE_ORDER,
    CoincurveBackend,
    SchnorrSigner,
    generate_key_pair,
    generate_key_pair_hex,
    is_valid_secret,
)


# BIP-340 test vector 0
BIP340_SECRET = (3).to_bytes(32, "big")
BIP340_PUBLIC = "f9308a019258c31049344f85f89d5229b531c845836f99b08601f113bce036f9"
BIP340_SIG = (
    "e907831f80848d1069a5371b402410364bdf1c5f8307b0084c55f1ce2dca8215"
    "25f66a4a85ea8b71e482a74f382d2ce5ebeee8fdb2172f477df4900d310536c0"
)


class TestBip340:
    """Deterministic signing with fixed auxiliary randomness."""

    def test_reference_vector(self):
        signer = SchnorrSigner(BIP340_SECRET)
        result = signer.sign(bytes(32), aux_rand=bytes(32))

        assert signer.public_key_hex == BIP340_PUBLIC
        assert result.signature_hex == BIP340_SIG
        assert result.public_key_hex == BIP340_PUBLIC

    def test_reference_vector_verifies(self):
        result = SchnorrSigner.verify_with_public_key_hex(bytes(32), BIP340_SIG, BIP340_PUBLIC)
        assert result.is_valid
        assert result.error_message is None

    def test_fresh_aux_rand_changes_signature(self):
        signer = SchnorrSigner()
        message = bytes(range(32))
        first = signer.sign(message)
        second = signer.sign(message)

        assert first.signature != second.signature
        assert signer.verify(message, first.signature).is_valid
        assert signer.verify(message, second.signature).is_valid


class TestVerification:
    """Invalid signatures are reported, not raised."""

    def test_wrong_message(self):
        signer = SchnorrSigner()
        result = signer.sign(bytes(32))
        assert not signer.verify(b"\x01" * 32, result.signature).is_valid

    def test_flipped_bit(self):
        signer = SchnorrSigner()
        signature = bytearray(signer.sign(bytes(32)).signature)
        signature[10] ^= 0x01
        result = signer.verify(bytes(32), bytes(signature))
        assert not result.is_valid
        assert result.error_message

    def test_wrong_signature_length(self):
        result = SchnorrSigner.verify_with_public_key(bytes(32), bytes(63), bytes.fromhex(BIP340_PUBLIC))
        assert not result.is_valid

    def test_bad_hex(self):
        result = SchnorrSigner.verify_with_public_key_hex(bytes(32), "zz", BIP340_PUBLIC)
        assert not result.is_valid
        assert "Decode error" in result.error_message

    def test_public_key_not_on_curve(self):
        result = SchnorrSigner.verify_with_public_key(
            bytes(32),
            bytes.fromhex(BIP340_SIG),
            bytes.fromhex("eefdea4cdb677750a420fee807eacf21eb9898ae79b9768766e4faa04a2d4a34")
        )
        assert not result.is_valid


class TestSecrets:
    """Scalar validation and key generation."""

    @pytest.mark.parametrize("value", [0, CURVE_ORDER, CURVE_ORDER + 1])
    def test_invalid_scalars(self, value):
        secret = value.to_bytes(32, "big")
        assert not is_valid_secret(secret)
        with pytest.raises(InvalidEncoding):
            SchnorrSigner(secret)

    def test_valid_extremes(self):
        assert is_valid_secret((1).to_bytes(32, "big"))
        assert is_valid_secret((CURVE_ORDER - 1).to_bytes(32, "big"))

    def test_generate_key_pair(self):
        secret, public = generate_key_pair()
        assert is_valid_secret(secret)
        assert SchnorrSigner(secret).public_key == public

    def test_generate_key_pair_hex(self):
        secret_hex, public_hex = generate_key_pair_hex()
        assert len(secret_hex) == 64
        assert SchnorrSigner(bytes.fromhex(secret_hex)).public_key_hex == public_hex

    def test_repr_has_no_secret(self):
        secret, _ = generate_key_pair()
        assert secret.hex() not in repr(SchnorrSigner(secret))


class TestEcdh:
    """Shared secret derivation."""

    def test_symmetric(self):
        a, b = SchnorrSigner(), SchnorrSigner()
        assert a.ecdh(b.public_key) == b.ecdh(a.public_key)
        assert len(a.ecdh(b.public_key)) == 32

    def test_invalid_point(self):
        with pytest.raises(InvalidPoint):
            SchnorrSigner().ecdh(
                bytes.fromhex("eefdea4cdb677750a420fee807eacf21eb9898ae79b9768766e4faa04a2d4a34")
            )


class RecordingBackend(CoincurveBackend):
    """Backend that records which capabilities were used."""

    def __init__(self):
        self.calls = []

    def sign_schnorr(self, secret, message, aux_rand):
        self.calls.append("sign")
        return super().sign_schnorr(secret, message, aux_rand)

    def verify_schnorr(self, public_key, message, signature):
        self.calls.append("verify")
        return super().verify_schnorr(public_key, message, signature)


class TestBackend:
    """The signer delegates curve work to its backend."""

    def test_custom_backend_used(self):
        backend = RecordingBackend()
        signer = SchnorrSigner(BIP340_SECRET, backend=backend)
        result = signer.sign(bytes(32), aux_rand=bytes(32))
        assert signer.verify(bytes(32), result.signature).is_valid
        assert backend.calls == ["sign", "verify"]
