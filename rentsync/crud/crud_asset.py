"""CRUD operations for assets."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from rentsync import schemas
from rentsync.crud._base_system import CRUDBaseSystem
from rentsync.models.asset import Asset


class CRUDAsset(CRUDBaseSystem[Asset, schemas.AssetCreate, schemas.AssetCreate]):
    """CRUD operations for assets."""

    async def upsert_by_tag(
        self, db: AsyncSession, *, obj_in: schemas.AssetCreate
    ) -> tuple[Asset, bool, Optional[str], bool]:
        """Create or update an asset keyed by its asset tag.

        An existing asset only receives the fields set on ``obj_in``, and is
        not written at all when none of them differ from what is stored.

        Returns:
            The asset, whether it was created, its status before the update
            (None when it was created) and whether anything changed.
        """
        existing = await self.get_by_field(db, "asset_tag", obj_in.asset_tag)
        if existing is None:
            return await self.create(db, obj_in=obj_in), True, None, True

        previous_status = existing.status
        if not self.has_changes(existing, obj_in):
            return existing, False, previous_status, False

        asset = await self.update(db, db_obj=existing, obj_in=obj_in)
        return asset, False, previous_status, True


asset = CRUDAsset(Asset)
