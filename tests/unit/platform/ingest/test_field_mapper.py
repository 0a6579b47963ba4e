"""Unit tests for the field mapper."""

import pytest

from rentsync.core.exceptions import ItemMappingError, MalformedPathError
from rentsync.core.shared_models import IngestTargetModel
from rentsync.platform.ingest.field_mapper import FieldMapper
from tests.fixtures.common import make_mapping

ASSET = IngestTargetModel.ASSET
ITEM_TYPE = IngestTargetModel.ITEM_TYPE
PERSON = IngestTargetModel.PERSON


class TestMapItem:
    """Tests for FieldMapper.map_item."""

    def test_fields_and_identity(self):
        """Test a simple asset mapping with an identity."""
        mappings = [
            make_mapping("$.serial", ASSET, "serial_number", is_identity=True),
            make_mapping("$.state", ASSET, "status"),
        ]

        records = FieldMapper().map_item({"serial": "SN-1", "state": "deployed"}, mappings)

        assert len(records) == 1
        assert records[0].target_model == ASSET
        assert records[0].identity == "SN-1"
        assert records[0].fields == {"serial_number": "SN-1", "status": "deployed"}

    def test_missing_non_identity_field_is_skipped(self):
        """Test that a non-matching non-identity mapping leaves the field out."""
        mappings = [
            make_mapping("$.serial", ASSET, "serial_number", is_identity=True),
            make_mapping("$.location.site", ASSET, "location"),
        ]

        records = FieldMapper().map_item({"serial": "SN-1"}, mappings)

        assert "location" not in records[0].fields

    def test_missing_identity_rejects_item(self):
        """Test that an unresolved identity rejects the whole item."""
        mappings = [
            make_mapping("$.serial", ASSET, "serial_number", is_identity=True),
            make_mapping("$.state", ASSET, "status"),
        ]

        with pytest.raises(ItemMappingError) as exc_info:
            FieldMapper().map_item({"state": "deployed"}, mappings)
        assert exc_info.value.target_model == "asset"

    def test_kind_without_identity_mapping_rejects_item(self):
        """Test that a kind with no identity mapping at all is rejected."""
        mappings = [make_mapping("$.name", PERSON, "given_name")]

        with pytest.raises(ItemMappingError):
            FieldMapper().map_item({"name": "Ada"}, mappings)

    def test_first_resolving_identity_wins(self):
        """Test that among several identity mappings the first one that resolves is used."""
        mappings = [
            make_mapping("$.tag", ASSET, "asset_tag", is_identity=True),
            make_mapping("$.serial", ASSET, "serial_number", is_identity=True),
            make_mapping("$.imei", ASSET, "location", is_identity=True),
        ]

        records = FieldMapper().map_item({"serial": "SN-1", "imei": "3567"}, mappings)

        assert records[0].identity == "SN-1"

    def test_null_identity_is_not_resolved(self):
        """Test that a JSON null does not count as an identity value."""
        mappings = [
            make_mapping("$.tag", ASSET, "asset_tag", is_identity=True),
            make_mapping("$.serial", ASSET, "serial_number", is_identity=True),
        ]

        records = FieldMapper().map_item({"tag": None, "serial": "SN-1"}, mappings)

        assert records[0].identity == "SN-1"

    def test_grouped_per_kind_item_types_first(self):
        """Test that records are grouped per kind with item types ahead of assets."""
        mappings = [
            make_mapping("$.serial", ASSET, "asset_tag", is_identity=True),
            make_mapping("$.model.code", ASSET, "item_type_code"),
            make_mapping("$.model.code", ITEM_TYPE, "code", is_identity=True),
            make_mapping("$.model.name", ITEM_TYPE, "name"),
        ]
        item = {"serial": "SN-1", "model": {"code": "X200", "name": "Scanner X200"}}

        records = FieldMapper().map_item(item, mappings)

        assert [record.target_model for record in records] == [ITEM_TYPE, ASSET]
        assert records[0].fields == {"code": "X200", "name": "Scanner X200"}
        assert records[1].fields["item_type_code"] == "X200"

    def test_malformed_path_propagates(self):
        """Test that a broken mapping path is reported, not silently skipped."""
        mappings = [make_mapping("$..serial", ASSET, "asset_tag", is_identity=True)]

        with pytest.raises(MalformedPathError):
            FieldMapper().map_item({"serial": "SN-1"}, mappings)
