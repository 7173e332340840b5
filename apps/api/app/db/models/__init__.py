"""SQLAlchemy ORM models."""

from app.db.models.auth import User
from app.db.models.delete_requests import DeleteRequest, TransferRequest, UnarchiveRequest
from app.db.models.notes import Document, Note, RecordHistory
from app.db.models.record_numbers import ModuleSequence, ReusableNumber
from app.db.models.records import (
    HiringManager,
    Job,
    JobSeeker,
    Lead,
    NumberedRecordMixin,
    Organization,
    Placement,
    Task,
)
from app.db.models.scheduled_tasks import ScheduledTask

__all__ = [
    "DeleteRequest",
    "Document",
    "HiringManager",
    "Job",
    "JobSeeker",
    "Lead",
    "ModuleSequence",
    "Note",
    "NumberedRecordMixin",
    "Organization",
    "Placement",
    "RecordHistory",
    "ReusableNumber",
    "ScheduledTask",
    "Task",
    "TransferRequest",
    "UnarchiveRequest",
    "User",
]
