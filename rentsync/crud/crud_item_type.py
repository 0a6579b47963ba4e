"""CRUD operations for item types."""

from typing import Any, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentsync import schemas
from rentsync.crud._base_system import CRUDBaseSystem
from rentsync.models.item_type import ItemType


class CRUDItemType(CRUDBaseSystem[ItemType, schemas.ItemTypeCreate, schemas.ItemTypeCreate]):
    """CRUD operations for item types."""

    async def get_all_active(self, db: AsyncSession) -> list[ItemType]:
        """Get all active item types."""
        result = await db.execute(select(ItemType).where(ItemType.is_active.is_(True)))
        return list(result.scalars().all())

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: Union[schemas.ItemTypeCreate, dict[str, Any]],
        auto_commit: bool = True,
    ) -> ItemType:
        """Create an item type; without a name it is named after its code."""
        if not isinstance(obj_in, dict):
            obj_in = obj_in.model_dump()
        if not obj_in.get("name"):
            obj_in = {**obj_in, "name": obj_in["code"]}
        return await super().create(db, obj_in=obj_in, auto_commit=auto_commit)


item_type = CRUDItemType(ItemType)
