#!/usr/bin/env python3
"""
nostr-core Demo: Sign Sample Events

Generates a throwaway key pair, signs a batch of text notes and writes
them to a JSON file that ``nostr-core event verify`` can check.

Usage:
    python examples/demo_sign_events.py --events 50 --output data/events.json

    # Corrupt a few events to see the verifier report them
    python examples/demo_sign_events.py --events 50 --tamper 3 --verify
"""

import argparse
import json
import random
from pathlib import Path

from nostr_core.core.events import Event, Kind, build_event
from nostr_core.core.keys import Keys
from nostr_core.core.verifier import EventVerifier

HASHTAGS = ["nostr", "python", "bitcoin", "zaps", "relays"]


def sign_sample_events(keys: Keys, num_events: int) -> list:
    """
    Build and sign ``num_events`` text notes.

    Every third note replies to the previous one with an ``e`` tag, so
    the batch carries tags as well as plain content.

    Args:
        keys: Signing key pair
        num_events: Number of notes to create

    Returns:
        list: Signed Event objects
    """
    print(f"\n🚀 Signing {num_events} events")
    print(f"   Author: {keys.public_key.to_bech32()}")
    print()

    events = []
    for i in range(num_events):
        tag = random.choice(HASHTAGS)
        tags = [["t", tag]]
        if events and i % 3 == 0:
            tags.append(["e", events[-1].id, "", "reply"])

        unsigned = build_event(
            keys.public_key,
            f"note {i} about #{tag}",
            kind=Kind.TEXT_NOTE,
            tags=tags
        )
        events.append(unsigned.sign(keys.secret_key))

        if (i + 1) % 25 == 0 or (i + 1) == num_events:
            print(f"   Progress: {i + 1}/{num_events} events")

    print()
    return events


def tamper(events: list, count: int) -> list:
    """Return wire dicts with ``count`` events' content altered after signing."""
    wire = [event.to_dict() for event in events]
    for index in random.sample(range(len(wire)), min(count, len(wire))):
        wire[index]["content"] += " (edited)"
        print(f"   ✎ tampered with event {index}")
    return wire


def main():
    parser = argparse.ArgumentParser(
        description="Sign nostr-core demo events"
    )
    parser.add_argument(
        "--events", "-n",
        type=int,
        default=20,
        help="Number of events to sign (default: 20)"
    )
    parser.add_argument(
        "--tamper", "-t",
        type=int,
        default=0,
        help="Number of events to corrupt after signing (default: 0)"
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default="data/demo_events.json",
        help="Output file path (default: data/demo_events.json)"
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Run verification after signing"
    )

    args = parser.parse_args()

    keys = Keys.generate()
    events = sign_sample_events(keys, args.events)
    wire = tamper(events, args.tamper) if args.tamper else [e.to_dict() for e in events]

    if args.verify:
        print("🔍 Running Verification")
        print("─" * 50)

        result = EventVerifier().verify(wire)
        if result.is_valid:
            print(f"   ✅ All {result.events_verified} events verified")
        else:
            print(f"   ❌ {result.error_message}")
            print(f"   Id mismatches: {result.id_mismatches}")
        print()

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps({"events": wire}, indent=2, ensure_ascii=False))
    print(f"💾 Events exported to: {output_path}")
    print()

    # Reload one event to show the wire format parses back
    first = Event.from_dict(wire[0])
    print(f"   First event id: {first.id}")
    print()
    print("Next steps:")
    print(f"  1. Verify: nostr-core event verify {output_path} --verbose")
    print(f"  2. Inspect: nostr-core nip19 encode note {first.id}")


if __name__ == "__main__":
    main()
