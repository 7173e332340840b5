"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.enums import ScheduledTaskStatus
from app.db.types import JsonDocument, utcnow


class ScheduledTask(Base):
    """
    Bookkeeping row for deferred work.

    Written when a record is archived for deletion (archive_cleanup, due
    after the grace period). The archive sweep marks it completed once the
    record referenced in payload has been hard-deleted.
    """

    __tablename__ = "scheduled_tasks"
    __table_args__ = (Index("idx_scheduled_tasks_type_status", "task_type", "status"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    task_type: Mapped[str] = mapped_column(String(50), nullable=False)
    payload: Mapped[dict] = mapped_column(JsonDocument, default=dict, nullable=False)
    scheduled_for: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=ScheduledTaskStatus.PENDING.value, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
