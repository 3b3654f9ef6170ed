"""
Tests for Nostr Core Subscription Filters
"""

import json

import pytest

from nostr_core.core.errors import InvalidEncoding, InvalidPoint, MalformedPayload
from nostr_core.core.filters import Filter


PK1_HEX = "79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
NPUB1 = "npub10xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7vqpkge6d"
EVENT_ID = "bde202ea7642ff9910600c7edc948a1f4220f0cbf5e4fb2b7efafa681bbb5285"
NOTE = "note1hh3q96nkgtlejyrqp3lde9y2rapzpuxt7hj0k2m7ltaxsxam22zsklnttc"


class TestFilter:
    """Filter construction and serialization."""

    def test_empty(self):
        f = Filter()
        assert f.is_empty()
        assert f.to_json() == "{}"

    def test_bech32_inputs_normalized(self):
        f = Filter(ids=[NOTE], authors=[NPUB1])
        assert f.ids == [EVENT_ID]
        assert f.authors == [PK1_HEX]

    def test_to_dict(self):
        f = Filter(authors=[PK1_HEX], kinds=[1, 7], since=10, until=20, limit=5,
                   search="coffee", hashtags=["nostr"])
        assert f.to_dict() == {
            "authors": [PK1_HEX],
            "kinds": [1, 7],
            "since": 10,
            "until": 20,
            "limit": 5,
            "search": "coffee",
            "#t": ["nostr"],
        }

    def test_json_round_trip(self):
        f = Filter(ids=[EVENT_ID], kinds=[0], hashtags=["a", "b"])
        assert Filter.from_json(f.to_json()) == f

    def test_since_after_until(self):
        with pytest.raises(MalformedPayload):
            Filter(since=20, until=10)

    @pytest.mark.parametrize("kinds", [[-1], [65536], [True], ["1"]])
    def test_invalid_kinds(self, kinds):
        with pytest.raises(MalformedPayload):
            Filter(kinds=kinds)

    def test_non_string_hashtag(self):
        with pytest.raises(MalformedPayload):
            Filter(hashtags=["ok", 5])

    def test_negative_limit(self):
        with pytest.raises(MalformedPayload):
            Filter(limit=-1)

    def test_invalid_author_raises(self):
        with pytest.raises(InvalidEncoding):
            Filter(authors=[PK1_HEX, "nope"])

    def test_author_not_on_curve(self):
        with pytest.raises(InvalidPoint):
            Filter(authors=["eefdea4cdb677750a420fee807eacf21eb9898ae79b9768766e4faa04a2d4a34"])

    def test_from_dict_unknown_key(self):
        with pytest.raises(MalformedPayload):
            Filter.from_dict({"kinds": [1], "#e": [EVENT_ID]})

    def test_from_dict_hashtags(self):
        f = Filter.from_dict(json.loads('{"#t":["python"],"limit":3}'))
        assert f.hashtags == ["python"]
        assert f.limit == 3
