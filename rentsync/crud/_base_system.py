"""Base CRUD class for system tables."""

from enum import Enum
from typing import Any, Generic, Optional, Type, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentsync.models._base import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


def _column_values(data: dict[str, Any]) -> dict[str, Any]:
    """Replace enum members by their values before they reach the driver."""
    return {key: value.value if isinstance(value, Enum) else value for key, value in data.items()}


class CRUDBaseSystem(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """CRUD base class for system tables.

    Implements CRUD methods without user or organization context. Every write
    commits on its own unless ``auto_commit=False`` is passed, in which case
    the caller owns the transaction.
    """

    def __init__(self, model: Type[ModelType]):
        """CRUD object with default methods for system tables.

        Args:
        ----
            model (Type[ModelType]): The model to be used in the CRUD operations.

        """
        self.model = model

    async def get(self, db: AsyncSession, id: UUID) -> Optional[ModelType]:
        """Get a single object by ID.

        Args:
        ----
            db (AsyncSession): The database session.
            id (UUID): The UUID of the object to get.

        Returns:
        -------
            Optional[ModelType]: The object with the given ID.

        """
        query = (
            select(self.model).where(self.model.id == id).execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.unique().scalar_one_or_none()

    async def get_by_field(self, db: AsyncSession, field: str, value: Any) -> Optional[ModelType]:
        """Get a single object by the value of a unique column."""
        result = await db.execute(select(self.model).where(getattr(self.model, field) == value))
        return result.unique().scalar_one_or_none()

    async def get_all(
        self, db: AsyncSession, *, skip: int = 0, limit: int = 100, disable_limit: bool = True
    ) -> list[ModelType]:
        """Get multiple objects.

        Args:
        ----
            db (AsyncSession): The database session.
            skip (int): The number of objects to skip.
            limit (int): The number of objects to return.
            disable_limit (bool): Disable the limit parameter by default.

        Returns:
        -------
            List[ModelType]: A list of objects.

        """
        query = select(self.model).order_by(self.model.created_at).offset(skip)
        if not disable_limit:
            query = query.limit(limit)

        result = await db.execute(query)
        return list(result.unique().scalars().all())

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: Union[CreateSchemaType, dict[str, Any]],
        auto_commit: bool = True,
    ) -> ModelType:
        """Create a new object.

        Args:
        ----
            db (AsyncSession): The database session.
            obj_in (CreateSchemaType): The object to create.
            auto_commit (bool): Commit the transaction after adding the object.

        Returns:
        -------
            ModelType: The created object.

        """
        if not isinstance(obj_in, dict):
            obj_in = obj_in.model_dump()
        db_obj = self.model(**_column_values(obj_in))
        db.add(db_obj)

        if auto_commit:
            await db.commit()
        else:
            await db.flush()

        return db_obj

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, dict[str, Any]],
        auto_commit: bool = True,
    ) -> ModelType:
        """Update an object.

        Args:
        ----
            db (AsyncSession): The database session.
            db_obj (ModelType): The object to update.
            obj_in (Union[UpdateSchemaType, Dict[str, Any]]): The new object data.
            auto_commit (bool): Commit the transaction after updating the object.

        Returns:
        -------
            ModelType: The updated object

        """
        if not isinstance(obj_in, dict):
            obj_in = obj_in.model_dump(exclude_unset=True)

        for key, value in _column_values(obj_in).items():
            if hasattr(db_obj, key):
                setattr(db_obj, key, value)
        db.add(db_obj)

        if auto_commit:
            await db.commit()
        else:
            await db.flush()

        return db_obj

    @staticmethod
    def has_changes(db_obj: ModelType, obj_in: Union[UpdateSchemaType, dict[str, Any]]) -> bool:
        """Whether applying ``obj_in`` as an update would change any stored value."""
        if not isinstance(obj_in, dict):
            obj_in = obj_in.model_dump(exclude_unset=True)
        return any(
            getattr(db_obj, key) != value
            for key, value in _column_values(obj_in).items()
            if hasattr(db_obj, key)
        )

    async def upsert_by_field(
        self,
        db: AsyncSession,
        *,
        field: str,
        obj_in: Union[CreateSchemaType, dict[str, Any]],
        auto_commit: bool = True,
    ) -> tuple[ModelType, bool]:
        """Update the object whose ``field`` matches ``obj_in``, or create it.

        A created object gets every value including defaults. An update only
        writes the fields explicitly set on ``obj_in``.

        Returns:
        -------
            tuple[ModelType, bool]: The object and whether it was created.

        """
        value = obj_in[field] if isinstance(obj_in, dict) else getattr(obj_in, field)
        existing = await self.get_by_field(db, field, value)
        if existing is None:
            return await self.create(db, obj_in=obj_in, auto_commit=auto_commit), True
        return await self.update(db, db_obj=existing, obj_in=obj_in, auto_commit=auto_commit), False

    async def remove(
        self, db: AsyncSession, *, id: UUID, auto_commit: bool = True
    ) -> Optional[ModelType]:
        """Delete an object.

        Args:
        ----
            db (AsyncSession): The database session.
            id (UUID): The UUID of the object to delete.
            auto_commit (bool): Commit the transaction after deleting the object.

        Returns:
        -------
            Optional[ModelType]: The deleted object.

        """
        result = await db.execute(select(self.model).where(self.model.id == id))
        db_obj = result.unique().scalar_one_or_none()
        if db_obj is None:
            return None

        await db.delete(db_obj)

        if auto_commit:
            await db.commit()

        return db_obj
