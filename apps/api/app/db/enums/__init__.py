"""Enum definitions for application constants."""

from app.db.enums.auth import ROLES_CAN_REVIEW, Role
from app.db.enums.delete_requests import (
    DeleteActionType,
    DeleteRequestStatus,
    TransferStatus,
    UnarchiveRequestStatus,
)
from app.db.enums.records import (
    RECORD_NUMBER_PREFIXES,
    ArchiveReason,
    RecordStatus,
    RecordType,
)
from app.db.enums.scheduled_tasks import ScheduledTaskStatus, ScheduledTaskType

__all__ = [
    "ArchiveReason",
    "DeleteActionType",
    "DeleteRequestStatus",
    "RECORD_NUMBER_PREFIXES",
    "ROLES_CAN_REVIEW",
    "RecordStatus",
    "RecordType",
    "Role",
    "ScheduledTaskStatus",
    "ScheduledTaskType",
    "TransferStatus",
    "UnarchiveRequestStatus",
]
