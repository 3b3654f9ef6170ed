"""
Nostr Core Errors

Every failure raised by this package derives from NostrError, which is a
ValueError so callers that only care about "bad input" can catch that.

Error kinds:
    - InvalidEncoding: malformed hex, bech32 or checksum (and bad tags)
    - InvalidPoint: bytes that are not a valid curve point
    - IdMismatch: recomputed event id disagrees with the stored id
    - SignatureInvalid: Schnorr signature does not verify
    - UnsupportedVersion: unknown encrypted payload version
    - AuthenticationFailed: MAC check failed while decrypting
    - MalformedPayload: structurally invalid wire data

Messages never include secret key material or plaintext.
"""


class NostrError(ValueError):
    """Base class for all nostr_core errors."""


class InvalidEncoding(NostrError):
    """Input is not valid hex/bech32 for the expected type."""


class InvalidTag(InvalidEncoding):
    """A tag is not a non-empty sequence of strings."""


class InvalidPoint(NostrError):
    """Key bytes do not map to a point on secp256k1."""


class KeyMismatch(NostrError):
    """The secret key does not belong to the event's public key."""


class IdMismatch(NostrError):
    """The event id is not the digest of the event's fields."""


class SignatureInvalid(NostrError):
    """The event signature fails Schnorr verification."""


class UnsupportedVersion(NostrError):
    """Encrypted payload uses a version this package does not implement."""


class AuthenticationFailed(NostrError):
    """Encrypted payload MAC did not match."""


class MalformedPayload(NostrError):
    """Wire data has the wrong structure or size."""
