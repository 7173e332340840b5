"""Scheduled task service - bookkeeping rows for deferred archive cleanup."""

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.enums import RecordType, ScheduledTaskStatus, ScheduledTaskType
from app.db.models import ScheduledTask
from app.db.types import utcnow


def schedule_archive_cleanup(
    db: Session,
    record_type: RecordType,
    record_id: UUID,
    delete_request_id: UUID | None = None,
    now: datetime | None = None,
) -> ScheduledTask:
    """
    Record that an archived record is due for hard delete after the grace period.

    Does not commit; the row belongs to the caller's archive transaction.
    """
    now = now or utcnow()
    payload = {"record_type": record_type.value, "record_id": str(record_id)}
    if delete_request_id:
        payload["delete_request_id"] = str(delete_request_id)

    task = ScheduledTask(
        task_type=ScheduledTaskType.ARCHIVE_CLEANUP.value,
        payload=payload,
        scheduled_for=now + timedelta(days=settings.ARCHIVE_GRACE_PERIOD_DAYS),
        status=ScheduledTaskStatus.PENDING.value,
    )
    db.add(task)
    db.flush()
    return task


def list_pending_cleanup_tasks(db: Session) -> list[ScheduledTask]:
    return (
        db.query(ScheduledTask)
        .filter(
            ScheduledTask.task_type == ScheduledTaskType.ARCHIVE_CLEANUP.value,
            ScheduledTask.status == ScheduledTaskStatus.PENDING.value,
        )
        .order_by(ScheduledTask.scheduled_for)
        .all()
    )


def complete_cleanup_tasks(
    db: Session,
    deleted: dict[RecordType, set[UUID]],
    now: datetime | None = None,
) -> int:
    """
    Mark pending archive_cleanup tasks completed for hard-deleted records.

    Matching is done on the payload's record_type + record_id.
    Returns the number of tasks completed.
    """
    now = now or utcnow()
    wanted = {
        (record_type.value, str(record_id))
        for record_type, ids in deleted.items()
        for record_id in ids
    }
    if not wanted:
        return 0

    completed = 0
    for task in list_pending_cleanup_tasks(db):
        payload = task.payload or {}
        if (payload.get("record_type"), payload.get("record_id")) in wanted:
            task.status = ScheduledTaskStatus.COMPLETED.value
            task.completed_at = now
            completed += 1
    db.flush()
    return completed


def cancel_cleanup_tasks(
    db: Session,
    record_type: RecordType,
    record_id: UUID,
    now: datetime | None = None,
) -> int:
    """Cancel pending archive_cleanup tasks for a record restored to Active."""
    now = now or utcnow()
    cancelled = 0
    for task in list_pending_cleanup_tasks(db):
        payload = task.payload or {}
        if payload.get("record_type") == record_type.value and payload.get("record_id") == str(record_id):
            task.status = ScheduledTaskStatus.CANCELLED.value
            task.completed_at = now
            cancelled += 1
    db.flush()
    return cancelled
