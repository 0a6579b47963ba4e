"""Unit tests for typed entity records."""

import uuid

import pytest

from rentsync.core.exceptions import ItemMappingError
from rentsync.core.shared_models import IngestTargetModel, ItemKind
from rentsync.platform.ingest.field_mapper import MappedRecord
from rentsync.platform.ingest.records import (
    AssetRecord,
    CompanyRecord,
    ItemTypeRecord,
    PersonRecord,
    PlaceRecord,
    build_record,
)


def _mapped(model: IngestTargetModel, identity, **fields) -> MappedRecord:
    return MappedRecord(target_model=model, fields=fields, identity=identity)


class TestBuildRecord:
    """Tests for build_record."""

    def test_item_type_code_from_identity(self):
        """Test that an item type without an explicit code uses the identity value."""
        record = build_record(_mapped(IngestTargetModel.ITEM_TYPE, "X200", name="Scanner"))

        assert isinstance(record, ItemTypeRecord)
        assert record.code == "X200"
        assert record.name == "Scanner"
        assert record.is_active is True
        assert record.item_kind == ItemKind.SERIALIZED

    def test_item_type_explicit_fields(self):
        """Test explicit code, kind and active flag."""
        record = build_record(
            _mapped(
                IngestTargetModel.ITEM_TYPE, "ignored", code="K1", kind="Kit", is_active=False
            )
        )

        assert record.code == "K1"
        assert record.name is None
        assert record.item_kind == ItemKind.KIT
        assert record.is_active is False

    def test_item_type_unknown_kind(self):
        """Test that an unknown kind is a per-item failure."""
        with pytest.raises(ItemMappingError):
            build_record(_mapped(IngestTargetModel.ITEM_TYPE, "X200", kind="gadget"))

    def test_asset_defaults(self):
        """Test that an asset's tag falls back to the identity and status to available."""
        record = build_record(_mapped(IngestTargetModel.ASSET, 1042, item_type_code="X200"))

        assert isinstance(record, AssetRecord)
        assert record.asset_tag == "1042"
        assert record.status == "available"
        assert record.item_type_code == "X200"

    def test_asset_item_type_id(self):
        """Test that a directly mapped item type id is parsed as UUID."""
        item_type_id = uuid.uuid4()
        record = build_record(
            _mapped(IngestTargetModel.ASSET, "T-1", item_type_id=str(item_type_id))
        )
        assert record.item_type_id == item_type_id

    def test_asset_invalid_item_type_id(self):
        """Test that a malformed item type id is a per-item failure."""
        with pytest.raises(ItemMappingError) as exc_info:
            build_record(_mapped(IngestTargetModel.ASSET, "T-1", item_type_id="17"))
        assert exc_info.value.target_model == "asset"

    def test_person_requires_both_names(self):
        """Test that a person without a family name is rejected."""
        with pytest.raises(ItemMappingError):
            build_record(_mapped(IngestTargetModel.PERSON, "E-7", given_name="Ada"))

    def test_person(self):
        """Test a complete person."""
        record = build_record(
            _mapped(IngestTargetModel.PERSON, "E-7", given_name="Ada", family_name="Lovelace")
        )
        assert isinstance(record, PersonRecord)
        assert record.external_id == "E-7"

    def test_company_and_place_names(self):
        """Test that companies and places are keyed by name, defaulting to the identity."""
        company = build_record(_mapped(IngestTargetModel.COMPANY, "ACME", legal_name="ACME Ltd"))
        place = build_record(_mapped(IngestTargetModel.PLACE, "ignored", name="Depot North"))

        assert isinstance(company, CompanyRecord)
        assert company.name == "ACME"
        assert isinstance(place, PlaceRecord)
        assert place.name == "Depot North"
        assert place.is_internal is False

    def test_numbers_become_text(self):
        """Test that integral floats are rendered without a decimal part."""
        record = build_record(_mapped(IngestTargetModel.ASSET, 12.0, serial_number=99))
        assert record.asset_tag == "12"
        assert record.serial_number == "99"


class TestToCreate:
    """Tests for the upsert payloads built from records."""

    def test_asset_payload_carries_only_mapped_fields(self):
        """Test that fields without a mapping are left out rather than sent as null."""
        record = build_record(_mapped(IngestTargetModel.ASSET, "T-1", item_type_code="X200"))
        item_type_id = uuid.uuid4()

        payload = record.to_create(item_type_id)

        assert payload.model_dump(exclude_unset=True) == {
            "asset_tag": "T-1",
            "item_type_id": item_type_id,
        }
        assert payload.status == "available"

    def test_asset_mapped_null_is_sent(self):
        """Test that a mapped field resolving to null clears the stored value."""
        record = build_record(
            _mapped(IngestTargetModel.ASSET, "T-1", location=None, status="Deployed")
        )

        payload = record.to_create(uuid.uuid4()).model_dump(exclude_unset=True)

        assert payload["location"] is None
        assert payload["status"] == "deployed"
        assert "serial_number" not in payload

    def test_item_type_payload_without_name(self):
        """Test that an item type without a mapped name leaves the name to storage."""
        record = build_record(_mapped(IngestTargetModel.ITEM_TYPE, "X200", kind="kit"))

        payload = record.to_create()

        assert payload.model_dump(exclude_unset=True) == {"code": "X200", "kind": ItemKind.KIT}
        assert payload.name is None

    def test_directory_payloads(self):
        """Test that company and place payloads skip unmapped optional fields."""
        company = build_record(_mapped(IngestTargetModel.COMPANY, "ACME", legal_name="ACME Ltd"))
        place = build_record(_mapped(IngestTargetModel.PLACE, "Depot North"))

        assert company.to_create().model_dump(exclude_unset=True) == {
            "name": "ACME",
            "legal_name": "ACME Ltd",
        }
        assert place.to_create().model_dump(exclude_unset=True) == {"name": "Depot North"}
