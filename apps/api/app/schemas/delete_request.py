"""Pydantic schemas for delete requests."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from app.db.enums import DeleteActionType, RecordType


class DeleteRequestCreate(BaseModel):
    record_type: RecordType
    record_id: UUID
    reason: str = Field(..., min_length=1, max_length=4000)
    action_type: DeleteActionType = DeleteActionType.STANDARD
    dependencies_summary: dict[str, Any] | None = None
    user_consent: bool = False


class DeleteRequestDeny(BaseModel):
    denial_reason: str = Field(..., min_length=1, max_length=4000)


class DeleteRequestRead(BaseModel):
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
    retry_count: int
    action_type: str
    dependencies_summary: dict[str, Any] | None = None
    user_consent: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DeleteRequestApproveResponse(BaseModel):
    request: DeleteRequestRead
    auto_approved_ids: list[UUID] = Field(default_factory=list)
