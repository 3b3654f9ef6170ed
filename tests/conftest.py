"""Shared fixtures for the nostr-core test suite."""

import pytest

from nostr_core.core.keys import Keys


@pytest.fixture
def alice() -> Keys:
    return Keys.generate()


@pytest.fixture
def bob() -> Keys:
    return Keys.generate()


@pytest.fixture
def scalar_one() -> Keys:
    """Key pair for the secret scalar 1 (public key = generator x)."""
    return Keys.parse("0" * 63 + "1")
