"""Unit tests for change detection."""

import hashlib

from rentsync.platform.ingest.delta import DeltaDetector

BODY = b'[{"serial": "SN-1"}]'
BODY_HASH = hashlib.sha256(BODY).hexdigest()


class TestDeltaDetector:
    """Tests for DeltaDetector."""

    def test_first_fetch_is_a_change(self):
        """Test that without stored state every payload is new."""
        delta = DeltaDetector().evaluate(200, BODY, '"v1"', None)

        assert delta.changed is True
        assert delta.reason == "changed"
        assert delta.content_hash == BODY_HASH
        assert delta.etag == '"v1"'

    def test_same_hash_is_unchanged(self):
        """Test that identical bytes are unchanged even when the ETag differs."""
        delta = DeltaDetector().evaluate(200, BODY, '"v2"', BODY_HASH, '"v1"')

        assert delta.changed is False
        assert delta.reason == "hash_match"
        assert delta.etag == '"v2"'

    def test_different_hash_is_a_change(self):
        """Test that a hash mismatch is a change even when the ETag is unchanged."""
        delta = DeltaDetector().evaluate(200, b"[]", '"v1"', BODY_HASH, '"v1"')

        assert delta.changed is True
        assert delta.content_hash != BODY_HASH

    def test_not_modified_keeps_stored_state(self):
        """Test that a 304 is unchanged and keeps the stored hash and ETag."""
        delta = DeltaDetector().evaluate(304, b"", None, BODY_HASH, '"v1"')

        assert delta.changed is False
        assert delta.reason == "not_modified"
        assert delta.content_hash == BODY_HASH
        assert delta.etag == '"v1"'

    def test_conditional_headers(self):
        """Test If-None-Match is only sent when an ETag is stored."""
        assert DeltaDetector.conditional_headers(None) == {}
        assert DeltaDetector.conditional_headers('"v1"') == {"If-None-Match": '"v1"'}
