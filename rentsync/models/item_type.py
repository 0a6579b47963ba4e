"""Models for item (equipment) types."""

from typing import Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from rentsync.core.shared_models import ItemKind
from rentsync.models._base import Base


class ItemType(Base):
    """A kind of rentable equipment, identified by its code."""

    __tablename__ = "item_type"

    code: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    kind: Mapped[str] = mapped_column(String, nullable=False, default=ItemKind.SERIALIZED.value)
    description: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
