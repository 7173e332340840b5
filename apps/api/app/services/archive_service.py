"""
Archive lifecycle: soft-archive now, hard delete after the grace period.
An approved unarchive request can restore a record until the sweep runs.

Archived records keep their record number; the number only goes back to
the pool when the sweep hard-deletes the row.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.enums import (
    ArchiveReason,
    DeleteRequestStatus,
    RecordStatus,
    RecordType,
    UnarchiveRequestStatus,
)
from app.db.models import DeleteRequest, HiringManager, Job, Lead, Placement, UnarchiveRequest
from app.db.types import utcnow
from app.services import note_service, record_number_service, scheduled_task_service
from app.services.record_registry import SWEEP_ORDER, dependents_for, model_for, parse_record_type
from app.services.record_service import require_record

logger = logging.getLogger(__name__)


def resolve_pending_delete_requests(
    db: Session,
    record_type: RecordType,
    record_ids: list[UUID],
    status: DeleteRequestStatus,
    now: datetime,
    user_id: UUID | None = None,
) -> int:
    """
    Close pending delete requests for records that left the live set.

    APPROVED when the record was archived some other way, EXPIRED when the
    row itself is gone. No replacement is ever opened for these.
    """
    if not record_ids:
        return 0
    values = {"status": status.value, "updated_at": now}
    if status == DeleteRequestStatus.APPROVED:
        values.update(reviewed_by=user_id, reviewed_at=now)
    result = db.execute(
        update(DeleteRequest)
        .where(
            DeleteRequest.record_type == record_type.value,
            DeleteRequest.record_id.in_(record_ids),
            DeleteRequest.status == DeleteRequestStatus.PENDING.value,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    closed = result.rowcount or 0
    if closed:
        logger.info(
            "Closed %s pending delete request(s) for %s as %s", closed, record_type.value, status.value
        )
    return closed


def archive_record(
    db: Session,
    record_type: RecordType | str,
    record_id: UUID,
    reason: ArchiveReason,
    user_id: UUID | None = None,
    note: str | None = None,
    now: datetime | None = None,
):
    """
    Soft-archive a record. Raises RecordNotFoundError.

    Already archived records keep their original archived_at so the grace
    period is not restarted. Newly archived records have their pending
    delete requests closed as approved. Does not commit.
    """
    record_type = parse_record_type(record_type)
    now = now or utcnow()
    record = require_record(db, record_type, record_id, lock=True)

    if record.status != RecordStatus.ARCHIVED.value:
        record.status = RecordStatus.ARCHIVED.value
        record.archived_at = now
        record.archive_reason = reason.value
        record.updated_at = now
        note_service.add_history(
            db,
            record_type,
            record.id,
            "archived",
            {"reason": reason.value},
            actor_user_id=user_id,
        )
        resolve_pending_delete_requests(
            db, record_type, [record.id], DeleteRequestStatus.APPROVED, now, user_id=user_id
        )

    if note:
        note_service.add_note(db, record_type, record.id, note, author_id=user_id)
    db.flush()
    return record


def _archive_live(db: Session, model: type, record_type: RecordType, criteria, reason, user_id, now) -> int:
    rows = (
        db.execute(
            select(model)
            .where(criteria, model.status != RecordStatus.ARCHIVED.value)
            .with_for_update()
        )
        .scalars()
        .all()
    )
    for row in rows:
        archive_record(db, record_type, row.id, reason, user_id=user_id, now=now)
    return len(rows)


def archive_cascade(
    db: Session,
    organization_id: UUID,
    user_id: UUID | None = None,
    reason: ArchiveReason = ArchiveReason.CASCADE_DELETION,
    now: datetime | None = None,
) -> dict[str, int]:
    """
    Archive an organization with its live hiring managers, jobs, leads and
    the placements on those jobs. Does not commit.
    """
    now = now or utcnow()
    archive_record(db, RecordType.ORGANIZATION, organization_id, reason, user_id=user_id, now=now)

    job_ids = select(Job.id).where(Job.organization_id == organization_id)
    counts = {
        "placements": _archive_live(
            db, Placement, RecordType.PLACEMENT, Placement.job_id.in_(job_ids), reason, user_id, now
        ),
        "hiring_managers": _archive_live(
            db,
            HiringManager,
            RecordType.HIRING_MANAGER,
            HiringManager.organization_id == organization_id,
            reason,
            user_id,
            now,
        ),
        "jobs": _archive_live(
            db, Job, RecordType.JOB, Job.organization_id == organization_id, reason, user_id, now
        ),
        "leads": _archive_live(
            db, Lead, RecordType.LEAD, Lead.organization_id == organization_id, reason, user_id, now
        ),
    }
    logger.info("Cascade-archived organization %s: %s", organization_id, counts)
    return counts


def _deny_pending_unarchive_requests(db: Session, record_type: RecordType, record_id: UUID, now: datetime) -> None:
    db.execute(
        update(UnarchiveRequest)
        .where(
            UnarchiveRequest.record_type == record_type.value,
            UnarchiveRequest.record_id == record_id,
            UnarchiveRequest.status == UnarchiveRequestStatus.PENDING.value,
        )
        .values(
            status=UnarchiveRequestStatus.DENIED.value,
            denial_reason="Record was permanently deleted after the archive grace period",
            reviewed_at=now,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )


def restore_record(
    db: Session,
    record_type: RecordType | str,
    record_id: UUID,
    user_id: UUID | None = None,
    note: str | None = None,
    now: datetime | None = None,
):
    """
    Return an archived record to Active, clearing archived_at and the reason.

    Only the record itself is restored, not records archived alongside it.
    Raises RecordNotFoundError, or ValueError if the record is not archived.
    Does not commit.
    """
    record_type = parse_record_type(record_type)
    now = now or utcnow()
    record = require_record(db, record_type, record_id, lock=True)
    if record.status != RecordStatus.ARCHIVED.value:
        raise ValueError(f"{record_type.value} {record_id} is not archived")

    previous_reason = record.archive_reason
    record.status = RecordStatus.ACTIVE.value
    record.archived_at = None
    record.archive_reason = None
    record.updated_at = now
    note_service.add_history(
        db,
        record_type,
        record.id,
        "unarchived",
        {"previous_reason": previous_reason},
        actor_user_id=user_id,
    )
    if note:
        note_service.add_note(db, record_type, record.id, note, author_id=user_id)
    db.flush()
    return record


def _hard_delete(
    db: Session,
    record_type: RecordType,
    record_id: UUID,
    record_number: int | None,
    deleted: dict[RecordType, set[UUID]],
    now: datetime,
) -> None:
    """Delete one record with its dependents and polymorphic children, releasing numbers."""
    for dependent in dependents_for(record_type):
        dep_model = model_for(dependent.record_type)
        children = db.execute(
            select(dep_model.id, dep_model.record_number).where(
                getattr(dep_model, dependent.parent_column) == record_id
            )
        ).all()
        for child_id, child_number in children:
            _hard_delete(db, dependent.record_type, child_id, child_number, deleted, now)

    model = model_for(record_type)
    note_service.delete_children(db, record_type, [record_id])
    resolve_pending_delete_requests(db, record_type, [record_id], DeleteRequestStatus.EXPIRED, now)
    _deny_pending_unarchive_requests(db, record_type, record_id, now)
    record_number_service.release_record_number(db, record_type, record_number)
    db.execute(
        delete(model)
        .where(model.id == record_id)
        .execution_options(synchronize_session=False)
    )
    deleted.setdefault(record_type, set()).add(record_id)


def cleanup_archived_records(db: Session, now: datetime, grace_days: int) -> dict[str, int]:
    """
    Hard-delete records archived at least grace_days ago. Does not commit.

    Returns per-type deletion counts, cascade dependents included.
    """
    cutoff = now - timedelta(days=grace_days)
    deleted: dict[RecordType, set[UUID]] = {}

    for record_type in SWEEP_ORDER:
        model = model_for(record_type)
        rows = db.execute(
            select(model.id, model.record_number)
            .where(
                model.status == RecordStatus.ARCHIVED.value,
                model.archived_at.is_not(None),
                model.archived_at <= cutoff,
            )
            .order_by(model.archived_at)
            .with_for_update()
        ).all()
        for record_id, record_number in rows:
            if record_id in deleted.get(record_type, set()):
                continue
            _hard_delete(db, record_type, record_id, record_number, deleted, now)

    scheduled_task_service.complete_cleanup_tasks(db, deleted, now=now)
    return {record_type.value: len(deleted.get(record_type, ())) for record_type in SWEEP_ORDER}


def run_archive_cleanup(
    session_factory: Callable[[], Session],
    now: datetime | None = None,
    grace_days: int | None = None,
) -> dict[str, int]:
    """
    Sweep entry point for the scheduler.

    The whole sweep is one transaction: any failure rolls everything back
    (no numbers released, no rows deleted) and re-raises.
    """
    now = now or utcnow()
    grace = settings.ARCHIVE_GRACE_PERIOD_DAYS if grace_days is None else grace_days

    with session_factory() as db:
        try:
            counts = cleanup_archived_records(db, now, grace)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Archive cleanup failed, rolled back")
            raise

    total = sum(counts.values())
    if total:
        logger.info("Archive cleanup deleted %s records: %s", total, counts)
    else:
        logger.info("Archive cleanup: nothing to delete")
    return counts
