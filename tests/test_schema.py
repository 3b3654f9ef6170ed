"""
Tests for Nostr Core JSON Schema Validation

Two-tiered validation:
1. Schema validity: bundled schemas are valid JSON Schema
2. Example validation: generated events and filters pass, broken ones fail
"""

import pytest
from jsonschema import Draft202012Validator

from nostr_core.core.events import SCHEMA_DIR, build_event, load_schema
from nostr_core.core.filters import Filter


SCHEMA_NAMES = ["event", "filter"]


# =============================================================================
# Tier 1: Schema Validity Tests
# =============================================================================

class TestSchemaValidity:
    """Tier 1: Bundled schemas are valid JSON Schema."""

    def test_all_schemas_present(self):
        assert sorted(p.stem for p in SCHEMA_DIR.glob("*.json")) == SCHEMA_NAMES

    @pytest.mark.parametrize("name", SCHEMA_NAMES)
    def test_schema_is_valid(self, name):
        schema = load_schema(name)
        Draft202012Validator.check_schema(schema)
        assert schema["$schema"] == "https://json-schema.org/draft/2020-12/schema"

    def test_event_requires_all_fields(self):
        schema = load_schema("event")
        assert set(schema["required"]) == {
            "id", "pubkey", "created_at", "kind", "tags", "content", "sig"
        }
        assert schema["additionalProperties"] is False


# =============================================================================
# Tier 2: Example Validation Tests
# =============================================================================

class TestExampleValidation:
    """Tier 2: Generated objects validate against the schemas."""

    def test_signed_event_validates(self, alice):
        event = build_event(alice.public_key, "schema", tags=[["t", "x"]]).sign(alice.secret_key)
        Draft202012Validator(load_schema("event")).validate(event.to_dict())

    def test_unsigned_event_fails(self, alice):
        unsigned = build_event(alice.public_key, "schema")
        validator = Draft202012Validator(load_schema("event"))
        assert not validator.is_valid(unsigned.to_dict())

    def test_filter_validates(self, alice):
        f = Filter(authors=[alice.public_key], kinds=[1], hashtags=["x"])
        Draft202012Validator(load_schema("filter")).validate(f.to_dict())

    @pytest.mark.parametrize("tags", [[[]], [["e", 1]], ["e"]])
    def test_invalid_tags_fail(self, alice, tags):
        event = build_event(alice.public_key, "schema").sign(alice.secret_key)
        data = event.to_dict()
        data["tags"] = tags
        assert not Draft202012Validator(load_schema("event")).is_valid(data)
