"""Pydantic schemas for numbered records."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.db.enums import RecordType


class RecordCreate(BaseModel):
    """Request to create a record. `fields` is validated against the type's create schema."""

    fields: dict[str, Any] = Field(default_factory=dict)


class _RecordFields(BaseModel):
    # Lifecycle columns (record_number, status, archived_at...) are never accepted
    model_config = ConfigDict(extra="forbid")


class OrganizationCreate(_RecordFields):
    name: str = Field(..., min_length=1, max_length=255)
    parent_organization_id: UUID | None = None
    website: str | None = Field(None, max_length=500)
    phone: str | None = Field(None, max_length=50)
    address: str | None = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)


class HiringManagerCreate(_RecordFields):
    organization_id: UUID | None = None
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str | None = Field(None, max_length=255)


class JobCreate(_RecordFields):
    organization_id: UUID | None = None
    hiring_manager_id: UUID | None = None
    title: str = Field(..., min_length=1, max_length=255)


class LeadCreate(_RecordFields):
    organization_id: UUID | None = None
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


class JobSeekerCreate(_RecordFields):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str | None = Field(None, max_length=255)
    custom_fields: dict[str, Any] = Field(default_factory=dict)


class PlacementCreate(_RecordFields):
    job_id: UUID | None = None
    job_seeker_id: UUID | None = None


class TaskCreate(_RecordFields):
    title: str = Field(..., min_length=1, max_length=255)
    job_seeker_id: UUID | None = None
    organization_id: UUID | None = None
    hiring_manager_id: UUID | None = None


RECORD_CREATE_SCHEMAS: dict[RecordType, type[_RecordFields]] = {
    RecordType.ORGANIZATION: OrganizationCreate,
    RecordType.HIRING_MANAGER: HiringManagerCreate,
    RecordType.JOB: JobCreate,
    RecordType.LEAD: LeadCreate,
    RecordType.JOB_SEEKER: JobSeekerCreate,
    RecordType.PLACEMENT: PlacementCreate,
    RecordType.TASK: TaskCreate,
}


class RecordRead(BaseModel):
    id: UUID
    record_type: str
    record_number: int
    display_record_number: str
    status: str
    archived_at: datetime | None = None
    archive_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class DependencyCounts(BaseModel):
    hiring_managers: int
    jobs: int
    leads: int
    placements: int
    child_organizations: int
