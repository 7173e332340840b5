"""SQLAlchemy ORM models for the delete, unarchive and transfer approval workflows."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.enums import DeleteActionType, DeleteRequestStatus, TransferStatus, UnarchiveRequestStatus
from app.db.types import JsonDocument, utcnow


class DeleteRequest(Base):
    """
    A pending human decision to archive (and later hard delete) a record.

    Lifecycle: pending -> approved | denied | expired. The hourly expiry
    sweep flips stale pending rows to expired and spawns a replacement
    pending row carrying retry_count + 1, until the retry cap is reached.
    """

    __tablename__ = "delete_requests"
    __table_args__ = (
        Index("idx_delete_requests_record", "record_id", "record_type"),
        Index("idx_delete_requests_status_created", "status", "created_at"),
        # At most one pending request per record
        Index(
            "uq_delete_requests_pending_record",
            "record_id",
            "record_type",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    record_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    record_type: Mapped[str] = mapped_column(String(50), nullable=False)
    record_number: Mapped[str | None] = mapped_column(String(50), nullable=True)  # e.g. "O-42"

    # Requester
    requested_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    requested_by_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    requested_by_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=DeleteRequestStatus.PENDING.value, nullable=False
    )
    denial_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Review tracking
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    retry_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default=text("0"), nullable=False
    )
    action_type: Mapped[str] = mapped_column(
        String(20), default=DeleteActionType.STANDARD.value, nullable=False
    )
    dependencies_summary: Mapped[dict | None] = mapped_column(JsonDocument, nullable=True)
    user_consent: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )


class TransferRequest(Base):
    """
    Request to move all dependent data from a source record to a target
    record of the same type, then archive the source.
    """

    __tablename__ = "transfer_requests"
    __table_args__ = (
        CheckConstraint("source_id != target_id", name="chk_transfer_different_records"),
        Index("idx_transfer_requests_source", "record_type", "source_id"),
        Index("idx_transfer_requests_target", "record_type", "target_id"),
        Index("idx_transfer_requests_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    record_type: Mapped[str] = mapped_column(String(50), nullable=False)
    source_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    target_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    source_record_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    target_record_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    requested_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    requested_by_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    requested_by_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), default=TransferStatus.PENDING.value, nullable=False
    )
    denial_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )


class UnarchiveRequest(Base):
    """
    Request to restore an archived record to Active before the archive
    sweep hard-deletes it.

    Lifecycle: pending -> approved | denied. No expiry; a pending request
    for a record the sweep removes is closed as denied.
    """

    __tablename__ = "unarchive_requests"
    __table_args__ = (
        Index("idx_unarchive_requests_record", "record_id", "record_type"),
        Index("idx_unarchive_requests_status", "status"),
        Index(
            "uq_unarchive_requests_pending_record",
            "record_id",
            "record_type",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    record_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    record_type: Mapped[str] = mapped_column(String(50), nullable=False)
    record_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    requested_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    requested_by_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    requested_by_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=UnarchiveRequestStatus.PENDING.value, nullable=False
    )
    denial_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )
