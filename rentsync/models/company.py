"""Models for companies (organizations)."""

from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rentsync.models._base import Base


class Company(Base):
    """An organization, identified by its name."""

    __tablename__ = "company"

    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    legal_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
