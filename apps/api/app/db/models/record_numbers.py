"""SQLAlchemy ORM models for the reusable record number pool."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class ReusableNumber(Base):
    """
    A released record number, available for reissue.

    Only record_number_service reads or writes this table.
    """

    __tablename__ = "reusable_numbers"

    module_type: Mapped[str] = mapped_column(String(50), primary_key=True)
    number: Mapped[int] = mapped_column(Integer, primary_key=True)


class ModuleSequence(Base):
    """
    Monotonic per-module counter used once the pool is empty.

    current_value is always >= the largest record number ever issued for the
    module, so new values never collide with numbers still in use.
    """

    __tablename__ = "module_sequences"

    module_type: Mapped[str] = mapped_column(String(50), primary_key=True)
    current_value: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
