"""
Tests for Nostr Core Versioned Encryption (NIP-44 v2)

Tests cover:
- Known conversation keys and payloads
- Round trips, including empty and long plaintexts
- Padding sizes
- Tamper detection over nonce, ciphertext and MAC
- Version and size checks ahead of authentication
"""

import base64
from unittest import mock

import pytest

from nostr_core.core import cipher
from nostr_core.core.keys import Keys
from nostr_core.core.errors import (
    AuthenticationFailed,
    InvalidPoint,
    MalformedPayload,
    NostrError,
    UnsupportedVersion,
)


SK1_HEX = "0" * 63 + "1"
SK2_HEX = "0" * 63 + "2"
PK1_HEX = "79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
PK2_HEX = "c6047f9441ed7d6d3045406e95c07cd85c778e4b8cef3ca7abac09b95c709ee5"

CONVERSATION_KEY = "c41c775356fd92eadc63ff5a0dc1da211b268cbea22316767095b2871ea1412d"
NONCE = bytes(31) + b"\x01"
PAYLOAD_A = (
    "AgAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAABee0G5VSK0/9YypIObAtDKfYEAjD35uVkHyB0F4DwrcNa"
    "CXlCWZKaArsGrY6M9wnuTMxWfp1RTN9Xga8no+kF5Vsb"
)
PAYLOAD_EMPTY = (
    "AgAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAABeexn5VSK0/9YypIObAtDKfYEAjD35uVkHyB0F4DwrcNa"
    "CUT/HXgglfhZ8nDHK+fCJSze9Cksz6eUx/xodA7cWFyQ"
)


def flip(payload: str, index: int) -> str:
    """Flip the lowest bit of one decoded payload byte."""
    raw = bytearray(base64.b64decode(payload))
    raw[index] ^= 0x01
    return base64.b64encode(bytes(raw)).decode("ascii")


class TestConversationKey:
    """Shared key derivation."""

    def test_known_vector(self):
        assert cipher.get_conversation_key(SK1_HEX, PK2_HEX).hex() == CONVERSATION_KEY

    def test_symmetric(self):
        assert cipher.get_conversation_key(SK2_HEX, PK1_HEX).hex() == CONVERSATION_KEY

    def test_symmetric_random(self, alice, bob):
        assert cipher.get_conversation_key(alice.secret_key, bob.public_key) == \
            cipher.get_conversation_key(bob.secret_key, alice.public_key)

    def test_invalid_point(self):
        with pytest.raises(InvalidPoint):
            cipher.get_conversation_key(
                SK1_HEX, "eefdea4cdb677750a420fee807eacf21eb9898ae79b9768766e4faa04a2d4a34"
            )

    def test_message_keys_split(self):
        keys = cipher.get_message_keys(bytes.fromhex(CONVERSATION_KEY), NONCE)
        assert len(keys.chacha_key) == 32
        assert len(keys.chacha_nonce) == 12
        assert len(keys.hmac_key) == 32
        assert keys.chacha_key.hex() not in repr(keys)

    def test_message_keys_nonce_size(self):
        with pytest.raises(ValueError):
            cipher.get_message_keys(bytes.fromhex(CONVERSATION_KEY), bytes(31))


class TestKnownPayloads:
    """Fixed nonce reproduces known payloads."""

    def test_single_character(self):
        key = bytes.fromhex(CONVERSATION_KEY)
        assert cipher.encrypt_with_conversation_key(key, "a", nonce=NONCE) == PAYLOAD_A
        assert cipher.decrypt_with_conversation_key(key, PAYLOAD_A) == "a"

    def test_empty_plaintext(self):
        key = bytes.fromhex(CONVERSATION_KEY)
        assert cipher.encrypt_with_conversation_key(key, "", nonce=NONCE) == PAYLOAD_EMPTY
        assert cipher.decrypt(SK2_HEX, PK1_HEX, PAYLOAD_EMPTY) == ""

    def test_minimum_encoded_size(self):
        assert len(PAYLOAD_A) == cipher.MIN_ENCODED_SIZE


class TestRoundTrip:
    """encrypt then decrypt gives back the plaintext."""

    @pytest.mark.parametrize("plaintext", [
        "",
        "a",
        "hello bob",
        "ünïcödé 🌍 テスト",
        "x" * 10000,
    ])
    def test_round_trip(self, alice, bob, plaintext):
        payload = cipher.encrypt(alice.secret_key, bob.public_key, plaintext)
        assert cipher.decrypt(bob.secret_key, alice.public_key, payload) == plaintext

    def test_maximum_plaintext(self, alice, bob):
        plaintext = "y" * cipher.MAX_PLAINTEXT_SIZE
        payload = cipher.encrypt(alice.secret_key, bob.public_key, plaintext)
        assert len(payload) <= cipher.MAX_ENCODED_SIZE
        assert cipher.decrypt(bob.secret_key, alice.public_key, payload) == plaintext

    def test_plaintext_too_long(self, alice, bob):
        with pytest.raises(MalformedPayload):
            cipher.encrypt(alice.secret_key, bob.public_key, "y" * (cipher.MAX_PLAINTEXT_SIZE + 1))

    def test_plaintext_not_encodable(self, alice, bob):
        with pytest.raises(MalformedPayload):
            cipher.encrypt(alice.secret_key, bob.public_key, "\ud800")

    def test_nonce_is_fresh(self, alice, bob):
        first = cipher.encrypt(alice.secret_key, bob.public_key, "same")
        second = cipher.encrypt(alice.secret_key, bob.public_key, "same")
        assert first != second
        assert base64.b64decode(first)[1:33] != base64.b64decode(second)[1:33]

    def test_version_byte(self, alice, bob):
        payload = cipher.encrypt(alice.secret_key, bob.public_key, "v")
        assert base64.b64decode(payload)[0] == 2

    def test_wrong_recipient(self, alice, bob):
        payload = cipher.encrypt(alice.secret_key, bob.public_key, "for bob")
        eve = Keys.generate()
        with pytest.raises(AuthenticationFailed):
            cipher.decrypt(eve.secret_key, alice.public_key, payload)


class TestPadding:
    """calc_padded_len chunking."""

    @pytest.mark.parametrize("length,padded", [
        (0, 32), (1, 32), (32, 32), (33, 64), (37, 64), (45, 64), (49, 64), (64, 64),
        (65, 96), (100, 128), (111, 128), (200, 224), (250, 256), (320, 320),
        (383, 384), (384, 384), (400, 448), (500, 512), (512, 512), (515, 640),
        (700, 768), (800, 896), (900, 1024), (1020, 1024), (65536, 65536),
    ])
    def test_padded_length(self, length, padded):
        assert cipher.calc_padded_len(length) == padded

    def test_pad_layout(self):
        padded = cipher.pad("abc")
        assert padded[:2] == b"\x00\x03"
        assert padded[2:5] == b"abc"
        assert padded[5:] == bytes(29)

    def test_unpad_rejects_bad_length_prefix(self):
        padded = bytearray(cipher.pad("abc"))
        padded[1] = 40
        with pytest.raises(MalformedPayload):
            cipher.unpad(bytes(padded))

    def test_unpad_rejects_truncated(self):
        with pytest.raises(MalformedPayload):
            cipher.unpad(cipher.pad("abc")[:-1])


class TestTamperDetection:
    """Any modified byte fails authentication."""

    @pytest.mark.parametrize("index", [1, 16, 32, 33, 50, 66, 67, 98])
    def test_flipped_byte(self, index):
        with pytest.raises(AuthenticationFailed):
            cipher.decrypt(SK2_HEX, PK1_HEX, flip(PAYLOAD_A, index))

    def test_no_partial_plaintext(self):
        key = bytes.fromhex(CONVERSATION_KEY)
        with mock.patch.object(cipher, "unpad") as unpad:
            with pytest.raises(AuthenticationFailed):
                cipher.decrypt_with_conversation_key(key, flip(PAYLOAD_A, 50))
        unpad.assert_not_called()


class TestPayloadChecks:
    """Version and structure are checked before the MAC."""

    def test_unknown_version_byte(self):
        with mock.patch.object(cipher, "_verify_mac") as verify_mac:
            with pytest.raises(UnsupportedVersion):
                cipher.decrypt(SK2_HEX, PK1_HEX, self._version(1))
        verify_mac.assert_not_called()

    def test_hash_prefix(self):
        with mock.patch.object(cipher, "_verify_mac") as verify_mac:
            with pytest.raises(UnsupportedVersion):
                cipher.decrypt(SK2_HEX, PK1_HEX, "#" + PAYLOAD_A[1:])
        verify_mac.assert_not_called()

    @pytest.mark.parametrize("payload", [
        "",
        "!!!!" * 40,
        base64.b64encode(b"\x02" + bytes(60)).decode("ascii"),
        PAYLOAD_A[:-4],
    ])
    def test_malformed(self, payload):
        with pytest.raises(MalformedPayload):
            cipher.decrypt(SK2_HEX, PK1_HEX, payload)

    def test_oversized(self):
        payload = base64.b64encode(b"\x02" + bytes(cipher.MAX_PAYLOAD_SIZE)).decode("ascii")
        with pytest.raises(MalformedPayload):
            cipher.decode_payload(payload)

    def test_errors_share_base(self):
        for error in (AuthenticationFailed, UnsupportedVersion, MalformedPayload):
            assert issubclass(error, NostrError)

    @staticmethod
    def _version(version: int) -> str:
        raw = bytearray(base64.b64decode(PAYLOAD_A))
        raw[0] = version
        return base64.b64encode(bytes(raw)).decode("ascii")
