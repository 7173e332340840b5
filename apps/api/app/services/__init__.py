"""Service layer modules."""

# Import service modules (not individual functions) for cleaner access
from app.services import record_number_service
from app.services import record_service
from app.services import note_service
from app.services import scheduled_task_service
from app.services import archive_service
from app.services import notification_service
from app.services import delete_request_service
from app.services import transfer_service
from app.services import unarchive_service

__all__ = [
    "record_number_service",
    "record_service",
    "note_service",
    "scheduled_task_service",
    "archive_service",
    "notification_service",
    "delete_request_service",
    "transfer_service",
    "unarchive_service",
]
