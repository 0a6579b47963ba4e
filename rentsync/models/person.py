"""Models for people."""

import uuid
from typing import Optional

from sqlalchemy import UUID, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from rentsync.models._base import Base


class Person(Base):
    """A person, identified by an external reference (employee id, email, ...)."""

    __tablename__ = "person"

    external_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    given_name: Mapped[str] = mapped_column(String, nullable=False)
    family_name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID, ForeignKey("company.id", ondelete="SET NULL"), nullable=True
    )
