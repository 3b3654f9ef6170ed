#!/usr/bin/env python3
"""
nostr-core Demo: Encrypted Direct Message

Alice encrypts a message to Bob with NIP-44 v2. Bob derives the same
conversation key from his side and decrypts it; a modified payload is
rejected.

Usage:
    python examples/demo_encrypted_message.py --message "see you at the meetup"
"""

import argparse
import base64

from nostr_core.core import cipher
from nostr_core.core.errors import AuthenticationFailed
from nostr_core.core.keys import Keys


def main():
    parser = argparse.ArgumentParser(
        description="Encrypt and decrypt a message between two fresh key pairs"
    )
    parser.add_argument(
        "--message", "-m",
        type=str,
        default="hello bob 👋",
        help="Message to send"
    )
    args = parser.parse_args()

    alice = Keys.generate()
    bob = Keys.generate()

    print("\n🔐 NIP-44 v2 Encryption Demo")
    print("═" * 50)
    print(f"   Alice: {alice.public_key.to_bech32()}")
    print(f"   Bob:   {bob.public_key.to_bech32()}")
    print()

    alice_side = cipher.get_conversation_key(alice.secret_key, bob.public_key)
    bob_side = cipher.get_conversation_key(bob.secret_key, alice.public_key)
    print(f"   Conversation keys match: {alice_side == bob_side}")

    payload = cipher.encrypt(alice.secret_key, bob.public_key, args.message)
    print(f"   Payload ({len(payload)} chars): {payload[:48]}...")

    plaintext = cipher.decrypt(bob.secret_key, alice.public_key, payload)
    print(f"   Bob reads: {plaintext}")
    print()

    print("🔍 Tamper Check")
    print("─" * 50)
    raw = bytearray(base64.b64decode(payload))
    raw[40] ^= 0x01
    tampered = base64.b64encode(bytes(raw)).decode("ascii")
    try:
        cipher.decrypt(bob.secret_key, alice.public_key, tampered)
        print("   ❌ tampered payload was accepted")
    except AuthenticationFailed as e:
        print(f"   ✅ rejected: {e}")
    print()


if __name__ == "__main__":
    main()
