"""Pydantic schemas for unarchive requests."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.db.enums import RecordType


class UnarchiveRequestCreate(BaseModel):
    record_type: RecordType
    record_id: UUID
    reason: str = Field(..., min_length=1, max_length=4000)


class UnarchiveRequestDeny(BaseModel):
    denial_reason: str = Field(..., min_length=1, max_length=4000)


class UnarchiveRequestRead(BaseModel):
    id: UUID
    record_id: UUID
    record_type: str
    record_number: str | None = None
    requested_by: UUID | None = None
    requested_by_name: str | None = None
    requested_by_email: str | None = None
    reason: str
    status: str
    denial_reason: str | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
