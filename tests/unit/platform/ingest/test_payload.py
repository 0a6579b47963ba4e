"""Unit tests for JSON payload normalization."""

import json

from rentsync.platform.ingest.payload import encode_json_body, normalize_json_field, unwrap_json


class TestUnwrapJson:
    """Tests for unwrap_json."""

    def test_double_encoded_bytes(self):
        """Test that a double-encoded object decodes to the intended object after unwrapping."""
        intended = {"username": "sync", "scopes": ["read"]}
        raw = json.dumps(json.dumps(intended)).encode()

        unwrapped = unwrap_json(raw)

        assert isinstance(unwrapped, bytes)
        assert json.loads(unwrapped) == intended

    def test_plain_json_is_unchanged(self):
        """Test that an ordinary document is returned as is."""
        raw = b'{"a": 1}'
        assert unwrap_json(raw) is raw

    def test_idempotent(self):
        """Test that unwrapping an unwrapped value is a no-op."""
        raw = json.dumps(json.dumps({"a": 1})).encode()
        once = unwrap_json(raw)
        assert unwrap_json(once) == once

    def test_triple_encoding_loses_only_one_layer(self):
        """Test that exactly one layer is removed per call."""
        intended = {"a": 1}
        triple = json.dumps(json.dumps(json.dumps(intended)))

        once = unwrap_json(triple)

        assert once == json.dumps(json.dumps(intended))
        assert json.loads(unwrap_json(once)) == intended

    def test_json_string_that_is_not_json_inside(self):
        """Test that a JSON string with plain text content is left alone."""
        raw = b'"hello world"'
        assert unwrap_json(raw) == raw

    def test_invalid_json_and_empty_input(self):
        """Test that undecodable and empty input is returned unchanged."""
        assert unwrap_json(b"not json") == b"not json"
        assert unwrap_json(b"") == b""
        assert unwrap_json(None) is None


class TestNormalizeJsonField:
    """Tests for normalize_json_field."""

    def test_structured_values_are_kept(self):
        """Test that dicts and lists pass through."""
        value = {"a": [1, 2]}
        assert normalize_json_field(value) is value

    def test_serialized_and_double_serialized_strings(self):
        """Test that single and double encoded strings normalize to the same object."""
        assert normalize_json_field('{"a": 1}') == {"a": 1}
        assert normalize_json_field(json.dumps('{"a": 1}')) == {"a": 1}

    def test_plain_text_is_kept(self):
        """Test that a string that is not JSON stays a string."""
        assert normalize_json_field("just text") == "just text"


class TestEncodeJsonBody:
    """Tests for encode_json_body."""

    def test_null_like_templates_mean_no_body(self):
        """Test that None, empty and the null literal never produce a body."""
        assert encode_json_body(None) is None
        assert encode_json_body("") is None
        assert encode_json_body("null") is None
        assert encode_json_body(b"  null ") is None
        assert encode_json_body(json.dumps("null")) is None

    def test_structured_template(self):
        """Test that structured templates are serialized."""
        assert json.loads(encode_json_body({"page": 1})) == {"page": 1}

    def test_double_encoded_template(self):
        """Test that a double-encoded template is sent unwrapped."""
        body = encode_json_body(json.dumps(json.dumps({"page": 1})))
        assert json.loads(body) == {"page": 1}
