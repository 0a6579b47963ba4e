"""CRUD operations for ingest endpoints."""

from typing import Any, Union
from uuid import UUID

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from rentsync import schemas
from rentsync.crud._base_system import CRUDBaseSystem, _column_values
from rentsync.models.ingest_endpoint import IngestEndpoint
from rentsync.models.ingest_mapping import IngestMapping


class CRUDIngestEndpoint(
    CRUDBaseSystem[IngestEndpoint, schemas.IngestEndpointCreate, schemas.IngestEndpointUpdate]
):
    """CRUD operations for ingest endpoints."""

    async def create_for_source(
        self, db: AsyncSession, *, source_id: UUID, obj_in: schemas.IngestEndpointCreate
    ) -> IngestEndpoint:
        """Create an endpoint under a source."""
        data = obj_in.model_dump()
        data["source_id"] = source_id
        endpoint = await self.create(db, obj_in=data)
        # Re-select so the mappings relationship is loaded for the response
        return await self.get(db, endpoint.id)

    async def set_mappings(
        self,
        db: AsyncSession,
        *,
        endpoint_id: UUID,
        mappings: list[schemas.IngestMappingCreate],
    ) -> list[IngestMapping]:
        """Replace all mappings of an endpoint in one transaction.

        Args:
            db: Database session
            endpoint_id: The endpoint whose mappings are replaced
            mappings: The complete new set of mappings

        Returns:
            The created mappings
        """
        await db.execute(delete(IngestMapping).where(IngestMapping.endpoint_id == endpoint_id))
        created = [
            IngestMapping(endpoint_id=endpoint_id, **_column_values(mapping.model_dump()))
            for mapping in mappings
        ]
        db.add_all(created)
        await db.commit()
        return created

    async def update_sync_state(
        self,
        db: AsyncSession,
        *,
        id: UUID,
        obj_in: Union[schemas.IngestEndpointSyncState, dict[str, Any]],
    ) -> int:
        """Write the endpoint's sync bookkeeping in one UPDATE statement."""
        if not isinstance(obj_in, dict):
            obj_in = obj_in.model_dump(exclude_unset=True)
        if not obj_in:
            return 0

        stmt = update(IngestEndpoint).where(IngestEndpoint.id == id).values(**obj_in)
        result = await db.execute(stmt)
        await db.commit()
        return result.rowcount


ingest_endpoint = CRUDIngestEndpoint(IngestEndpoint)
