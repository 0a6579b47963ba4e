"""CRUD operations for ingest sources."""

from datetime import datetime
from typing import Any, Optional, Union
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rentsync import schemas
from rentsync.crud._base_system import CRUDBaseSystem, _column_values
from rentsync.models.ingest_source import IngestSource


class CRUDIngestSource(
    CRUDBaseSystem[IngestSource, schemas.IngestSourceCreate, schemas.IngestSourceUpdate]
):
    """CRUD operations for ingest sources."""

    async def get_due(self, db: AsyncSession, *, now: datetime) -> list[IngestSource]:
        """Get active sources whose next sync is due (or was never scheduled).

        Args:
            db: Database session
            now: Naive UTC reference time

        Returns:
            Due sources, oldest schedule first
        """
        stmt = (
            select(IngestSource)
            .where(
                IngestSource.is_active.is_(True),
                or_(IngestSource.next_sync_at.is_(None), IngestSource.next_sync_at <= now),
            )
            .order_by(IngestSource.next_sync_at.asc().nulls_first())
        )
        result = await db.execute(stmt)
        return list(result.unique().scalars().all())

    async def update_columns(
        self,
        db: AsyncSession,
        *,
        id: UUID,
        obj_in: Union[
            schemas.IngestSourceTokenUpdate, schemas.IngestSourceSyncState, dict[str, Any]
        ],
    ) -> Optional[int]:
        """Write a group of columns in one UPDATE statement.

        Token state and sync bookkeeping are each written this way so that an
        interrupted pass never leaves half of a group persisted.

        Returns:
            The number of updated rows.
        """
        if not isinstance(obj_in, dict):
            obj_in = obj_in.model_dump(exclude_unset=True)
        if not obj_in:
            return 0

        stmt = update(IngestSource).where(IngestSource.id == id).values(**_column_values(obj_in))
        result = await db.execute(stmt)
        await db.commit()
        return result.rowcount


ingest_source = CRUDIngestSource(IngestSource)
