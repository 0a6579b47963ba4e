"""Unit tests for the entity resolver."""

import uuid

import pytest

from rentsync import schemas
from rentsync.core.exceptions import ItemMappingError
from rentsync.core.shared_models import ItemKind, OutboxEventType
from rentsync.platform.ingest.records import (
    AssetRecord,
    CompanyRecord,
    ItemTypeRecord,
    PersonRecord,
)
from rentsync.platform.ingest.resolver import EntityResolver, ItemTypeCache


class TestItemTypeCache:
    """Tests for ItemTypeCache."""

    def test_lookup_by_code_then_name(self):
        """Test that code wins and name lookups ignore case."""
        by_code, by_name = uuid.uuid4(), uuid.uuid4()
        cache = ItemTypeCache()
        cache.add(by_code, "X200", "Scanner X200")
        cache.add(by_name, "X300", "Printer")

        assert cache.get(code="X200", name="Printer") == by_code
        assert cache.get(code="unknown", name="printer") == by_name
        assert cache.get(code="unknown") is None
        assert len(cache) == 2


class TestEntityResolver:
    """Tests for EntityResolver."""

    @pytest.mark.asyncio
    async def test_item_type_created_once_and_cached(self, repository):
        """Test that two assets referencing an unknown code create the type exactly once."""
        resolver = EntityResolver(repository)

        first = AssetRecord(asset_tag="T-1", item_type_code="X200", item_type_name="Scanner")
        second = AssetRecord(asset_tag="T-2", item_type_code="X200", item_type_name="Scanner")
        await resolver.ingest([first])
        await resolver.ingest([second])

        assert len(repository.item_type_upserts) == 1
        assert repository.item_type_upserts[0].code == "X200"
        assert repository.item_type_upserts[0].name == "Scanner"
        item_type_id = repository.item_types["X200"].id
        assert repository.assets["T-1"].item_type_id == item_type_id
        assert repository.assets["T-2"].item_type_id == item_type_id

    @pytest.mark.asyncio
    async def test_existing_item_type_is_reused(self, repository):
        """Test that an active item type is found through the cache without writes."""
        existing = repository.add_item_type("X200", "Scanner X200")
        resolver = EntityResolver(repository)

        await resolver.ingest([AssetRecord(asset_tag="T-1", item_type_name="scanner x200")])

        assert repository.item_type_upserts == []
        assert repository.assets["T-1"].item_type_id == existing.id

    @pytest.mark.asyncio
    async def test_item_type_from_name_only(self, repository):
        """Test that a name-only reference creates a type coded by its name."""
        resolver = EntityResolver(repository)

        await resolver.ingest([AssetRecord(asset_tag="T-1", item_type_name="Tablet")])

        assert repository.item_type_upserts[0].code == "Tablet"
        assert repository.item_type_upserts[0].name == "Tablet"

    @pytest.mark.asyncio
    async def test_direct_item_type_id_skips_lookup(self, repository):
        """Test that an explicit item type id is used as is."""
        item_type_id = uuid.uuid4()
        resolver = EntityResolver(repository)

        await resolver.ingest([AssetRecord(asset_tag="T-1", item_type_id=item_type_id)])

        assert repository.item_type_upserts == []
        assert repository.assets["T-1"].item_type_id == item_type_id

    @pytest.mark.asyncio
    async def test_asset_without_item_type_is_rejected(self, repository):
        """Test that an asset with no item type reference fails as a mapping error."""
        resolver = EntityResolver(repository)

        with pytest.raises(ItemMappingError):
            await resolver.ingest([AssetRecord(asset_tag="T-1")])
        assert repository.asset_upserts == []

    @pytest.mark.asyncio
    async def test_item_type_record_before_asset(self, repository):
        """Test that an item type written earlier in the same item is reused by the asset."""
        resolver = EntityResolver(repository)

        await resolver.ingest(
            [
                ItemTypeRecord(code="X200", name="Scanner"),
                AssetRecord(asset_tag="T-1", item_type_code="X200"),
            ]
        )

        assert len(repository.item_type_upserts) == 1
        assert repository.assets["T-1"].item_type_id == repository.item_types["X200"].id

    @pytest.mark.asyncio
    async def test_outbox_events_for_new_asset(self, repository):
        """Test the events of a first sighting."""
        resolver = EntityResolver(repository)

        await resolver.ingest([AssetRecord(asset_tag="T-1", item_type_code="X200")])

        assert [event.event_type for event in repository.outbox] == [
            OutboxEventType.ITEM_TYPE_CREATED,
            OutboxEventType.ASSET_CREATED,
        ]
        asset_event = repository.outbox[1]
        assert asset_event.payload["asset_tag"] == "T-1"
        assert asset_event.payload["status"] == "available"
        assert asset_event.payload["asset_id"] == str(repository.assets["T-1"].id)

    @pytest.mark.asyncio
    async def test_status_change_event(self, repository):
        """Test that a changed status adds a status event carrying the previous status."""
        resolver = EntityResolver(repository)
        await resolver.ingest([AssetRecord(asset_tag="T-1", item_type_code="X200")])
        repository.outbox.clear()

        await resolver.ingest(
            [AssetRecord(asset_tag="T-1", item_type_code="X200", status="deployed")]
        )

        assert [event.event_type for event in repository.outbox] == [
            OutboxEventType.ASSET_UPDATED,
            OutboxEventType.ASSET_STATUS_CHANGED,
        ]
        assert repository.outbox[1].payload["previous_status"] == "available"
        assert repository.outbox[1].payload["status"] == "deployed"

    @pytest.mark.asyncio
    async def test_unchanged_asset_emits_nothing(self, repository):
        """Test that re-ingesting an asset with identical values appends no event."""
        resolver = EntityResolver(repository)
        record = AssetRecord(asset_tag="T-1", item_type_code="X200")
        await resolver.ingest([record])
        repository.outbox.clear()

        await resolver.ingest([record])

        assert repository.outbox == []

    @pytest.mark.asyncio
    async def test_directory_records(self, repository):
        """Test that companies and people are upserted by their natural keys."""
        resolver = EntityResolver(repository)
        records = [
            CompanyRecord(name="ACME"),
            PersonRecord(external_id="E-7", given_name="Ada", family_name="Lovelace"),
        ]

        first = await resolver.ingest(records)
        second = await resolver.ingest(records)

        assert [result.created for result in first] == [True, True]
        assert [result.created for result in second] == [False, False]
        assert [result.id for result in first] == [result.id for result in second]
        assert repository.outbox == []

    @pytest.mark.asyncio
    async def test_update_keeps_unmapped_fields(self, repository):
        """Test that an update without serial or location leaves the stored ones in place."""
        resolver = EntityResolver(repository)
        await resolver.ingest(
            [
                AssetRecord(
                    asset_tag="T-1",
                    item_type_code="X200",
                    serial_number="SER-XYZ",
                    location="Shelf 4",
                )
            ]
        )
        repository.outbox.clear()

        await resolver.ingest(
            [AssetRecord(asset_tag="T-1", item_type_code="X200", status="deployed")]
        )

        stored = repository.assets["T-1"]
        assert stored.serial_number == "SER-XYZ"
        assert stored.location == "Shelf 4"
        assert stored.status == "deployed"
        assert [event.event_type for event in repository.outbox] == [
            OutboxEventType.ASSET_UPDATED,
            OutboxEventType.ASSET_STATUS_CHANGED,
        ]

    @pytest.mark.asyncio
    async def test_unmapped_status_is_not_a_status_change(self, repository):
        """Test that an update without a status keeps the stored one and reports it."""
        resolver = EntityResolver(repository)
        await resolver.ingest(
            [AssetRecord(asset_tag="T-1", item_type_code="X200", status="deployed")]
        )
        repository.outbox.clear()

        await resolver.ingest(
            [AssetRecord(asset_tag="T-1", item_type_code="X200", location="Van 2")]
        )

        assert repository.assets["T-1"].status == "deployed"
        assert [event.event_type for event in repository.outbox] == [
            OutboxEventType.ASSET_UPDATED
        ]
        assert repository.outbox[0].payload["status"] == "deployed"

    @pytest.mark.asyncio
    async def test_referenced_inactive_item_type_keeps_its_fields(self, repository):
        """Test that an asset referencing an inactive type by code does not rewrite the type."""
        inactive = schemas.ItemType(
            id=uuid.uuid4(),
            code="X200",
            name="Scanner X200",
            kind=ItemKind.KIT,
            description="Handheld scanner kit",
            is_active=False,
        )
        repository.item_types["X200"] = inactive
        resolver = EntityResolver(repository)

        await resolver.ingest([AssetRecord(asset_tag="T-1", item_type_code="X200")])

        stored = repository.item_types["X200"]
        assert stored.id == inactive.id
        assert stored.name == "Scanner X200"
        assert stored.kind == ItemKind.KIT
        assert stored.description == "Handheld scanner kit"
        assert repository.assets["T-1"].item_type_id == inactive.id
        assert repository.item_type_upserts[0].model_dump(exclude_unset=True) == {"code": "X200"}
