"""SQLAlchemy ORM models for numbered CRM records."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from app.db.base import Base
from app.db.enums import RecordStatus
from app.db.types import JsonDocument, utcnow


class NumberedRecordMixin:
    """
    Columns shared by every record that owns a display record number.

    record_number is display-only (e.g. "J-42") and is reused after a hard
    delete; id stays the permanent key for all lookups.
    Lifecycle: Active -> Archived (archived_at stamped, number still
    reserved) -> hard-deleted by the archive sweep (number released).
    """

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    record_number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    status: Mapped[str] = mapped_column(
        String(50), default=RecordStatus.ACTIVE.value, nullable=False
    )
    archived_at: Mapped[datetime | None] = mapped_column(nullable=True)
    archive_reason: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    @declared_attr.directive
    def __table_args__(cls):
        return (Index(f"idx_{cls.__tablename__}_status_archived", "status", "archived_at"),)


class Organization(NumberedRecordMixin, Base):
    """A client company. Parent of hiring managers, jobs and leads."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_organization_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True
    )
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    custom_fields: Mapped[dict] = mapped_column(JsonDocument, default=dict, nullable=False)


class HiringManager(NumberedRecordMixin, Base):
    """A contact at a client organization."""

    __tablename__ = "hiring_managers"

    organization_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)


class Job(NumberedRecordMixin, Base):
    """An open position at a client organization."""

    __tablename__ = "jobs"

    organization_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True
    )
    hiring_manager_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("hiring_managers.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)


class Lead(NumberedRecordMixin, Base):
    __tablename__ = "leads"

    organization_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)


class JobSeeker(NumberedRecordMixin, Base):
    """
    A candidate.

    custom_fields holds structured data entered through configurable
    fields; custom_fields["applications"] is the application history list.
    """

    __tablename__ = "job_seekers"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    custom_fields: Mapped[dict] = mapped_column(JsonDocument, default=dict, nullable=False)


class Placement(NumberedRecordMixin, Base):
    """A job seeker placed into a job."""

    __tablename__ = "placements"

    job_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True
    )
    job_seeker_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("job_seekers.id", ondelete="SET NULL"), nullable=True
    )


class Task(NumberedRecordMixin, Base):
    """To-do item optionally linked to a job seeker, organization or hiring manager."""

    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    job_seeker_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("job_seekers.id", ondelete="SET NULL"), nullable=True
    )
    organization_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True
    )
    hiring_manager_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("hiring_managers.id", ondelete="SET NULL"), nullable=True
    )
