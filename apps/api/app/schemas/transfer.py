"""Pydantic schemas for transfer requests."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.db.enums import RecordType


class TransferCreate(BaseModel):
    record_type: RecordType
    source_id: UUID
    target_id: UUID


class TransferDeny(BaseModel):
    denial_reason: str = Field(..., min_length=1, max_length=4000)


class TransferRead(BaseModel):
    id: UUID
    record_type: str
    source_id: UUID
    target_id: UUID
    source_record_number: str | None = None
    target_record_number: str | None = None
    requested_by: UUID | None = None
    requested_by_name: str | None = None
    requested_by_email: str | None = None
    status: str
    denial_reason: str | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
