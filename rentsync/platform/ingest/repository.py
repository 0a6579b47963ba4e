"""Persistence collaborator of the ingestion engine.

The sync engine only talks to storage through ``IngestRepository``. The SQL
implementation opens one session per call and commits every write on its
own, so token state and sync bookkeeping are each a single atomic write.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from rentsync import crud, schemas
from rentsync.db.session import get_db_context


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of an identity-keyed upsert.

    ``changed`` is False when an existing row already held every written
    value. ``status`` is the stored asset status after the write.
    """

    id: UUID
    created: bool
    changed: bool = True
    previous_status: Optional[str] = None
    status: Optional[str] = None


class IngestRepository(ABC):
    """Narrow storage interface consumed by the sync engine."""

    @abstractmethod
    async def get_source(self, source_id: UUID) -> Optional[schemas.IngestSourceInDB]:
        """Read one source, with its endpoints and their mappings."""
        pass

    @abstractmethod
    async def get_endpoint(self, endpoint_id: UUID) -> Optional[schemas.IngestEndpoint]:
        """Read one endpoint with its mappings."""
        pass

    @abstractmethod
    async def list_due_sources(self, now: datetime) -> list[schemas.IngestSourceInDB]:
        """List active sources whose next sync is at or before ``now``."""
        pass

    @abstractmethod
    async def list_active_item_types(self) -> list[schemas.ItemType]:
        """List every active item type."""
        pass

    @abstractmethod
    async def upsert_item_type(self, item_type: schemas.ItemTypeCreate) -> UpsertResult:
        """Create or update an item type keyed by code.

        Like every upsert here, an update only writes the fields set on the
        payload; the others keep their stored values.
        """
        pass

    @abstractmethod
    async def upsert_asset(self, asset: schemas.AssetCreate) -> UpsertResult:
        """Create or update an asset keyed by asset tag."""
        pass

    @abstractmethod
    async def upsert_company(self, company: schemas.CompanyCreate) -> UpsertResult:
        """Create or update a company keyed by name."""
        pass

    @abstractmethod
    async def upsert_person(self, person: schemas.PersonCreate) -> UpsertResult:
        """Create or update a person keyed by external id."""
        pass

    @abstractmethod
    async def upsert_place(self, place: schemas.PlaceCreate) -> UpsertResult:
        """Create or update a place keyed by name."""
        pass

    @abstractmethod
    async def update_source_tokens(
        self, source_id: UUID, tokens: schemas.IngestSourceTokenUpdate
    ) -> None:
        """Persist the token state of a source in one write."""
        pass

    @abstractmethod
    async def update_source_sync_state(
        self, source_id: UUID, state: schemas.IngestSourceSyncState
    ) -> None:
        """Persist the sync bookkeeping of a source in one write."""
        pass

    @abstractmethod
    async def update_endpoint_sync_state(
        self, endpoint_id: UUID, state: schemas.IngestEndpointSyncState
    ) -> None:
        """Persist the sync bookkeeping of an endpoint in one write."""
        pass

    @abstractmethod
    async def append_outbox_event(self, event: schemas.OutboxEventCreate) -> None:
        """Append an event for asynchronous delivery."""
        pass


class SQLIngestRepository(IngestRepository):
    """``IngestRepository`` backed by the CRUD layer."""

    async def get_source(self, source_id: UUID) -> Optional[schemas.IngestSourceInDB]:
        """Read one source, with its endpoints and their mappings."""
        async with get_db_context() as db:
            source = await crud.ingest_source.get(db, source_id)
            if source is None:
                return None
            return schemas.IngestSourceInDB.model_validate(source)

    async def get_endpoint(self, endpoint_id: UUID) -> Optional[schemas.IngestEndpoint]:
        """Read one endpoint with its mappings."""
        async with get_db_context() as db:
            endpoint = await crud.ingest_endpoint.get(db, endpoint_id)
            if endpoint is None:
                return None
            return schemas.IngestEndpoint.model_validate(endpoint)

    async def list_due_sources(self, now: datetime) -> list[schemas.IngestSourceInDB]:
        """List active sources whose next sync is at or before ``now``."""
        async with get_db_context() as db:
            sources = await crud.ingest_source.get_due(db, now=now)
            return [schemas.IngestSourceInDB.model_validate(source) for source in sources]

    async def list_active_item_types(self) -> list[schemas.ItemType]:
        """List every active item type."""
        async with get_db_context() as db:
            item_types = await crud.item_type.get_all_active(db)
            return [schemas.ItemType.model_validate(item_type) for item_type in item_types]

    async def upsert_item_type(self, item_type: schemas.ItemTypeCreate) -> UpsertResult:
        """Create or update an item type keyed by code."""
        async with get_db_context() as db:
            db_obj, created = await crud.item_type.upsert_by_field(
                db, field="code", obj_in=item_type
            )
            return UpsertResult(id=db_obj.id, created=created)

    async def upsert_asset(self, asset: schemas.AssetCreate) -> UpsertResult:
        """Create or update an asset keyed by asset tag."""
        async with get_db_context() as db:
            db_obj, created, previous_status, changed = await crud.asset.upsert_by_tag(
                db, obj_in=asset
            )
            return UpsertResult(
                id=db_obj.id,
                created=created,
                changed=changed,
                previous_status=previous_status,
                status=db_obj.status,
            )

    async def upsert_company(self, company: schemas.CompanyCreate) -> UpsertResult:
        """Create or update a company keyed by name."""
        async with get_db_context() as db:
            db_obj, created = await crud.company.upsert_by_field(db, field="name", obj_in=company)
            return UpsertResult(id=db_obj.id, created=created)

    async def upsert_person(self, person: schemas.PersonCreate) -> UpsertResult:
        """Create or update a person keyed by external id."""
        async with get_db_context() as db:
            db_obj, created = await crud.person.upsert_by_field(
                db, field="external_id", obj_in=person
            )
            return UpsertResult(id=db_obj.id, created=created)

    async def upsert_place(self, place: schemas.PlaceCreate) -> UpsertResult:
        """Create or update a place keyed by name."""
        async with get_db_context() as db:
            db_obj, created = await crud.place.upsert_by_field(db, field="name", obj_in=place)
            return UpsertResult(id=db_obj.id, created=created)

    async def update_source_tokens(
        self, source_id: UUID, tokens: schemas.IngestSourceTokenUpdate
    ) -> None:
        """Persist the token state of a source in one write."""
        async with get_db_context() as db:
            await crud.ingest_source.update_columns(db, id=source_id, obj_in=tokens)

    async def update_source_sync_state(
        self, source_id: UUID, state: schemas.IngestSourceSyncState
    ) -> None:
        """Persist the sync bookkeeping of a source in one write."""
        async with get_db_context() as db:
            await crud.ingest_source.update_columns(db, id=source_id, obj_in=state)

    async def update_endpoint_sync_state(
        self, endpoint_id: UUID, state: schemas.IngestEndpointSyncState
    ) -> None:
        """Persist the sync bookkeeping of an endpoint in one write."""
        async with get_db_context() as db:
            await crud.ingest_endpoint.update_sync_state(db, id=endpoint_id, obj_in=state)

    async def append_outbox_event(self, event: schemas.OutboxEventCreate) -> None:
        """Append an event for asynchronous delivery."""
        async with get_db_context() as db:
            await crud.outbox_event.create(db, obj_in=event)
