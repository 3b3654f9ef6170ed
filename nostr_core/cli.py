#!/usr/bin/env python3
"""
nostr-core Command Line Interface

Provides command-line tools for keys, events and encrypted payloads.

Usage:
    nostr-core keys generate --show-secret
    nostr-core nip19 decode npub1...
    nostr-core event new --pubkey <hex> --content "hello" | nostr-core event sign
    nostr-core event verify events.json
    nostr-core encrypt --recipient npub1... "hi"
    nostr-core info

Secret keys are read from --secret-key, $NOSTR_SECRET_KEY or a hidden prompt.
"""

import json
import sys
from contextlib import contextmanager

import click

from nostr_core import __version__, __author__
from nostr_core.core import cipher
from nostr_core.core.errors import NostrError
from nostr_core.core.events import UnsignedEvent, build_event, kind_name, load_json
from nostr_core.core.filters import Filter
from nostr_core.core.keys import Keys, nip19_decode, nip19_encode, parse_public
from nostr_core.core.parser import parse_text
from nostr_core.core.verifier import EventVerifier, load_events
from nostr_core.utils.helpers import format_kind, mask_sensitive_data, truncate_hash
from nostr_core.utils.log import DEFAULT_LOG_LEVEL, LOG_FILE_ENV, LOG_LEVEL_ENV, configure_logging

SECRET_KEY_ENV = "NOSTR_SECRET_KEY"

secret_key_option = click.option(
    '--secret-key', '-s',
    envvar=SECRET_KEY_ENV,
    prompt='Secret key',
    hide_input=True,
    help=f'Secret key, hex or nsec (or ${SECRET_KEY_ENV})'
)


@contextmanager
def nostr_errors():
    """Report library errors as click errors (exit status 1)."""
    try:
        yield
    except NostrError as e:
        raise click.ClickException(f"{type(e).__name__}: {e}") from e


def echo_json(data, pretty: bool = False):
    if pretty:
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
    else:
        click.echo(json.dumps(data, separators=(',', ':'), ensure_ascii=False))


@click.group()
@click.version_option(version=__version__)
@click.option('--log-level', envvar=LOG_LEVEL_ENV, default=DEFAULT_LOG_LEVEL,
              show_default=True, help='Log level for stderr output')
@click.option('--log-file', envvar=LOG_FILE_ENV, default=None,
              type=click.Path(dir_okay=False), help='Also write logs to this file')
def main(log_level, log_file):
    """nostr-core: Nostr event identity, signatures and encryption"""
    configure_logging(log_level, log_file)


# =============================================================================
# Keys
# =============================================================================

@main.group()
def keys():
    """Generate and inspect key pairs."""


@keys.command('generate')
@click.option('--json-output', '-j', is_flag=True, help='Output as JSON')
@click.option('--show-secret', is_flag=True, help='Print the secret key unmasked')
def keys_generate(json_output, show_secret):
    """Generate a new key pair."""
    pair = Keys.generate()
    secret_hex = pair.secret_key.to_hex()
    nsec = pair.secret_key.to_bech32()
    if not show_secret:
        secret_hex = mask_sensitive_data(secret_hex)
        nsec = mask_sensitive_data(nsec)

    if json_output:
        echo_json({
            "public_key": pair.public_key.to_hex(),
            "npub": pair.public_key.to_bech32(),
            "secret_key": secret_hex,
            "nsec": nsec
        })
    else:
        click.echo(f"public key: {pair.public_key.to_hex()}")
        click.echo(f"npub:       {pair.public_key.to_bech32()}")
        click.echo(f"secret key: {secret_hex}")
        click.echo(f"nsec:       {nsec}")
        if not show_secret:
            click.echo("(secret masked, rerun with --show-secret to reveal)")


@keys.command('show')
@secret_key_option
@click.option('--json-output', '-j', is_flag=True, help='Output as JSON')
def keys_show(secret_key, json_output):
    """Derive the public key of a secret key."""
    with nostr_errors():
        pair = Keys.parse(secret_key)
    if json_output:
        echo_json({"public_key": pair.public_key.to_hex(), "npub": pair.public_key.to_bech32()})
    else:
        click.echo(f"public key: {pair.public_key.to_hex()}")
        click.echo(f"npub:       {pair.public_key.to_bech32()}")


# =============================================================================
# NIP-19
# =============================================================================

@main.group()
def nip19():
    """bech32 encoding of keys and event ids."""


@nip19.command('encode')
@click.argument('data_type', type=click.Choice(['npub', 'nsec', 'note']))
@click.argument('data')
def nip19_encode_cmd(data_type, data):
    """Encode 64-char hex DATA as DATA_TYPE."""
    with nostr_errors():
        click.echo(nip19_encode(data_type, data))


@nip19.command('decode')
@click.argument('text')
def nip19_decode_cmd(text):
    """Decode an npub, nsec or note string."""
    with nostr_errors():
        echo_json(nip19_decode(text))


# =============================================================================
# Events
# =============================================================================

@main.group()
def event():
    """Build, sign and verify events."""


def _parse_tag(ctx, param, values):
    tags = []
    for value in values:
        try:
            tag = json.loads(value)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"not a JSON array: {value}") from e
        tags.append(tag)
    return tags


@event.command('new')
@click.option('--pubkey', '-p', required=True, help='Author public key (hex or npub)')
@click.option('--content', '-c', default='', help='Event content')
@click.option('--kind', '-k', default=1, type=click.IntRange(0, 65535), show_default=True)
@click.option('--tag', '-t', 'tags', multiple=True, callback=_parse_tag,
              help='Tag as a JSON array, e.g. \'["e","<id>"]\' (repeatable)')
@click.option('--created-at', type=click.IntRange(min=0), default=None,
              help='Unix timestamp (default: now)')
def event_new(pubkey, content, kind, tags, created_at):
    """Print a new unsigned event as JSON."""
    with nostr_errors():
        unsigned = build_event(pubkey, content, kind=kind, tags=tags, created_at=created_at)
    click.echo(unsigned.to_json())


@event.command('sign')
@click.argument('input_file', type=click.File('r'), default='-')
@secret_key_option
def event_sign(input_file, secret_key):
    """Sign an unsigned event read from INPUT_FILE (default stdin)."""
    with nostr_errors():
        unsigned = UnsignedEvent.from_dict(load_json(input_file.read()))
        signed = unsigned.sign(secret_key)
    click.echo(signed.to_json())


@event.command('verify')
@click.argument('input_file', type=click.File('r'), default='-')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.option('--json-output', '-j', is_flag=True, help='Output as JSON')
def event_verify(input_file, verbose, json_output):
    """Verify one event or a JSON list of events."""
    with nostr_errors():
        events = load_events(load_json(input_file.read()))

    result = EventVerifier().verify(events)

    if json_output:
        echo_json(result.to_dict(), pretty=True)
    else:
        if result.is_valid:
            click.echo(click.style("✅ VERIFICATION PASSED", fg='green', bold=True))
        else:
            click.echo(click.style("❌ VERIFICATION FAILED", fg='red', bold=True))
            click.echo(f"Error: {result.error_message}")

        if verbose:
            for index, item in enumerate(result.results):
                status = "ok" if item.is_valid else item.failure
                label = truncate_hash(item.event_id or "<no id>")
                kind = events[index].get("kind") if isinstance(events[index], dict) else None
                kind_text = format_kind(kind, kind_name(kind)) if isinstance(kind, int) else "?"
                click.echo(f"  [{index}] {label} kind={kind_text} {status}")

    sys.exit(0 if result.is_valid else 1)


# =============================================================================
# Encryption
# =============================================================================

@main.command()
@click.option('--recipient', '-r', required=True, help='Recipient public key (hex or npub)')
@secret_key_option
@click.argument('plaintext')
def encrypt(recipient, secret_key, plaintext):
    """Encrypt PLAINTEXT for RECIPIENT (NIP-44 v2)."""
    with nostr_errors():
        click.echo(cipher.encrypt(secret_key, parse_public(recipient), plaintext))


@main.command()
@click.option('--sender', '-f', required=True, help='Sender public key (hex or npub)')
@secret_key_option
@click.argument('payload')
def decrypt(sender, secret_key, payload):
    """Decrypt a NIP-44 v2 PAYLOAD from SENDER."""
    with nostr_errors():
        click.echo(cipher.decrypt(secret_key, parse_public(sender), payload))


# =============================================================================
# Filters and text
# =============================================================================

@main.command('filter')
@click.option('--id', 'ids', multiple=True, help='Event id (repeatable)')
@click.option('--author', '-a', 'authors', multiple=True, help='Author key (repeatable)')
@click.option('--kind', '-k', 'kinds', multiple=True, type=click.IntRange(0, 65535),
              help='Kind (repeatable)')
@click.option('--since', type=click.IntRange(min=0), default=None)
@click.option('--until', type=click.IntRange(min=0), default=None)
@click.option('--limit', '-l', type=click.IntRange(min=0), default=None)
@click.option('--search', default=None)
@click.option('--hashtag', 'hashtags', multiple=True, help='Hashtag (repeatable)')
def filter_cmd(ids, authors, kinds, since, until, limit, search, hashtags):
    """Print a subscription filter as JSON."""
    with nostr_errors():
        f = Filter(
            ids=list(ids) or None,
            authors=list(authors) or None,
            kinds=list(kinds) or None,
            since=since,
            until=until,
            limit=limit,
            search=search,
            hashtags=list(hashtags) or None
        )
    click.echo(f.to_json())


@main.command()
@click.argument('text')
def parse(text):
    """Split TEXT into text, url and hashtag tokens."""
    echo_json([token.to_dict() for token in parse_text(text)])


@main.command()
def info():
    """Show nostr-core version and information."""
    click.echo(f"""
nostr-core: Nostr event identity, signatures and encryption
===========================================================

Version: {__version__}
Author: {__author__}

Features:
  - NIP-01 canonical event ids
  - BIP-340 Schnorr signatures (secp256k1)
  - NIP-19 bech32 keys and ids (npub, nsec, note)
  - NIP-44 v2 encryption (ChaCha20 + HMAC-SHA256, padded)

Environment:
  {SECRET_KEY_ENV}      secret key for sign/encrypt/decrypt
  {LOG_LEVEL_ENV}  log level (default {DEFAULT_LOG_LEVEL})
  {LOG_FILE_ENV}   optional log file
    """)


if __name__ == "__main__":
    main()
