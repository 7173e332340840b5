"""
Cross-record transfer: move everything linked to a source record onto a
target record of the same type, then archive the source.

Approval and execution share one transaction; if any step fails nothing is
moved, the source stays live and the request stays pending.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.db.enums import ArchiveReason, RecordStatus, RecordType, TransferStatus
from app.db.models import HiringManager, Job, JobSeeker, Lead, Organization, Placement, Task, TransferRequest, User
from app.db.types import utcnow
from app.services import archive_service, note_service, notification_service, record_service, scheduled_task_service
from app.services.email_sender import EmailSender
from app.services.record_registry import parse_record_type

logger = logging.getLogger(__name__)

TRANSFERABLE_TYPES = frozenset(
    {RecordType.JOB_SEEKER, RecordType.ORGANIZATION, RecordType.HIRING_MANAGER}
)

# Organization fields copied from the source when blank on the target
ORGANIZATION_FILL_FIELDS = ("website", "phone", "address")


class TransferError(Exception):
    """Base exception for transfer errors."""

    pass


class TransferNotFoundError(TransferError):
    pass


class TransferConflictError(TransferError):
    """Transfer is not pending, or the records cannot take part in a transfer."""

    pass


class TransferRecordMissingError(TransferError):
    """Source or target record disappeared before execution."""

    pass


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def get_transfer_request(db: Session, transfer_id: UUID) -> TransferRequest | None:
    return db.get(TransferRequest, transfer_id)


def create_transfer_request(
    db: Session,
    record_type: RecordType | str,
    source_id: UUID,
    target_id: UUID,
    requester: User | None = None,
    sender: EmailSender | None = None,
) -> TransferRequest:
    """Open a pending transfer request and notify the reviewer mailbox."""
    if source_id == target_id:
        raise ValueError("Source and target must be different records")
    record_type = parse_record_type(record_type)
    if record_type not in TRANSFERABLE_TYPES:
        raise ValueError(f"Transfers are not supported for {record_type.value}")

    source = record_service.require_record(db, record_type, source_id)
    target = record_service.require_record(db, record_type, target_id)
    for record in (source, target):
        if record.status == RecordStatus.ARCHIVED.value:
            raise TransferConflictError(f"{record_type.value} {record.id} is archived")

    existing = (
        db.query(TransferRequest)
        .filter(
            TransferRequest.record_type == record_type.value,
            TransferRequest.source_id == source_id,
            TransferRequest.status == TransferStatus.PENDING.value,
        )
        .first()
    )
    if existing:
        raise TransferConflictError("A pending transfer already exists for this source record")

    transfer = TransferRequest(
        record_type=record_type.value,
        source_id=source_id,
        target_id=target_id,
        source_record_number=record_service.display_number(record_type, source),
        target_record_number=record_service.display_number(record_type, target),
        requested_by=requester.id if requester else None,
        requested_by_name=requester.display_name if requester else None,
        requested_by_email=requester.email if requester else None,
        status=TransferStatus.PENDING.value,
    )
    db.add(transfer)
    db.commit()
    db.refresh(transfer)

    logger.info(
        "Transfer request %s created: %s -> %s",
        transfer.id,
        transfer.source_record_number,
        transfer.target_record_number,
    )
    notification_service.notify_transfer_requested(transfer, sender=sender)
    return transfer


def _compare_and_set(db: Session, transfer_id: UUID, new_status: TransferStatus, **values) -> None:
    result = db.execute(
        update(TransferRequest)
        .where(
            TransferRequest.id == transfer_id,
            TransferRequest.status == TransferStatus.PENDING.value,
        )
        .values(status=new_status.value, **values)
    )
    if result.rowcount != 1:
        raise TransferConflictError("Transfer request not found or already processed")


def _move_rows(db: Session, model: type, column: str, source_id: UUID, target_id: UUID) -> int:
    result = db.execute(
        update(model)
        .where(getattr(model, column) == source_id)
        .values({column: target_id})
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


def merge_applications(target_fields: dict | None, source_fields: dict | None) -> dict:
    """Target custom_fields with applications = target's then source's."""
    target_fields = dict(target_fields or {})
    source_fields = source_fields or {}
    target_apps = target_fields.get("applications")
    source_apps = source_fields.get("applications")
    target_fields["applications"] = [
        *(target_apps if isinstance(target_apps, list) else []),
        *(source_apps if isinstance(source_apps, list) else []),
    ]
    return target_fields


def _transfer_job_seeker(
    db: Session, source: JobSeeker, target: JobSeeker, transfer: TransferRequest, approved_by: UUID | None
) -> dict[str, int]:
    moved = note_service.move_children(db, RecordType.JOB_SEEKER, source.id, target.id)
    moved["tasks"] = _move_rows(db, Task, "job_seeker_id", source.id, target.id)
    moved["placements"] = _move_rows(db, Placement, "job_seeker_id", source.id, target.id)

    target.custom_fields = merge_applications(target.custom_fields, source.custom_fields)

    note_service.add_note(
        db,
        RecordType.JOB_SEEKER,
        source.id,
        f"Transfer approved: All data moved to {transfer.target_record_number}. Status changed to Archived.",
        author_id=approved_by,
    )
    note_service.add_note(
        db,
        RecordType.JOB_SEEKER,
        target.id,
        f"Transfer approved: Received notes, documents, tasks, placements, and applications "
        f"from {transfer.source_record_number}.",
        author_id=approved_by,
    )
    return moved


def _transfer_organization(
    db: Session,
    source: Organization,
    target: Organization,
    transfer: TransferRequest,
    approved_by: UUID | None,
) -> dict[str, int]:
    for field_name in ORGANIZATION_FILL_FIELDS:
        source_value = getattr(source, field_name)
        if _is_blank(getattr(target, field_name)) and not _is_blank(source_value):
            setattr(target, field_name, source_value)

    if source.custom_fields:
        merged = dict(target.custom_fields or {})
        for key, value in source.custom_fields.items():
            if _is_blank(merged.get(key)):
                merged[key] = value
        target.custom_fields = merged

    moved = {
        "hiring_managers": _move_rows(db, HiringManager, "organization_id", source.id, target.id),
        "jobs": _move_rows(db, Job, "organization_id", source.id, target.id),
        "leads": _move_rows(db, Lead, "organization_id", source.id, target.id),
    }

    note_service.add_note(
        db,
        RecordType.ORGANIZATION,
        source.id,
        f"Transfer approved: Data moved to {transfer.target_record_number}. Status changed to Archived.",
        author_id=approved_by,
    )
    note_service.add_note(
        db,
        RecordType.ORGANIZATION,
        target.id,
        f"Transfer approved: Data received from {transfer.source_record_number}.",
        author_id=approved_by,
    )
    return moved


def _transfer_hiring_manager(
    db: Session,
    source: HiringManager,
    target: HiringManager,
    transfer: TransferRequest,
    approved_by: UUID | None,
) -> dict[str, int]:
    moved = note_service.move_children(db, RecordType.HIRING_MANAGER, source.id, target.id)
    moved["tasks"] = _move_rows(db, Task, "hiring_manager_id", source.id, target.id)
    moved["jobs"] = _move_rows(db, Job, "hiring_manager_id", source.id, target.id)

    note_service.add_note(
        db,
        RecordType.HIRING_MANAGER,
        source.id,
        f"Transfer approved: Notes, documents, tasks and jobs moved to {transfer.target_record_number}. "
        f"Status changed to Archived.",
        author_id=approved_by,
    )
    note_service.add_note(
        db,
        RecordType.HIRING_MANAGER,
        target.id,
        f"Transfer approved: Received notes, documents, tasks and jobs from {transfer.source_record_number}.",
        author_id=approved_by,
    )
    return moved


def execute_transfer(
    db: Session,
    transfer: TransferRequest,
    approved_by: UUID | None = None,
    now: datetime | None = None,
) -> dict[str, int]:
    """
    Move linked data from source to target and archive the source.

    Locks both records first. Does not commit. Returns moved row counts.
    """
    now = now or utcnow()
    record_type = parse_record_type(transfer.record_type)
    if record_type not in TRANSFERABLE_TYPES:
        raise TransferConflictError(f"Transfers are not supported for {record_type.value}")

    source = record_service.get_record(db, record_type, transfer.source_id, lock=True)
    target = record_service.get_record(db, record_type, transfer.target_id, lock=True)
    if not source or not target:
        raise TransferRecordMissingError(
            f"Transfer {transfer.id}: source or target {record_type.value} no longer exists"
        )
    for record in (source, target):
        if record.status == RecordStatus.ARCHIVED.value:
            raise TransferConflictError(
                f"Transfer {transfer.id}: {record_type.value} {record.record_number} is archived"
            )

    if record_type == RecordType.JOB_SEEKER:
        moved = _transfer_job_seeker(db, source, target, transfer, approved_by)
    elif record_type == RecordType.HIRING_MANAGER:
        moved = _transfer_hiring_manager(db, source, target, transfer, approved_by)
    else:
        moved = _transfer_organization(db, source, target, transfer, approved_by)
    target.updated_at = now

    archive_service.archive_record(
        db, record_type, source.id, ArchiveReason.TRANSFER, user_id=approved_by, now=now
    )
    note_service.add_history(
        db,
        record_type,
        target.id,
        "transfer_received",
        {"transfer_id": str(transfer.id), "source_id": str(source.id), "moved": moved},
        actor_user_id=approved_by,
    )
    scheduled_task_service.schedule_archive_cleanup(db, record_type, source.id, now=now)
    return moved


def approve_transfer_request(
    db: Session,
    transfer_id: UUID,
    reviewer: User | None = None,
    now: datetime | None = None,
    sender: EmailSender | None = None,
) -> TransferRequest:
    """Approve and execute a pending transfer as one transaction."""
    now = now or utcnow()
    reviewer_id = reviewer.id if reviewer else None
    transfer = get_transfer_request(db, transfer_id)
    if not transfer:
        raise TransferNotFoundError(f"Transfer request {transfer_id} not found")

    try:
        _compare_and_set(
            db,
            transfer_id,
            TransferStatus.APPROVED,
            approved_by=reviewer_id,
            approved_at=now,
            updated_at=now,
        )
        moved = execute_transfer(db, transfer, approved_by=reviewer_id, now=now)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Transfer %s failed, rolled back", transfer_id)
        raise

    db.refresh(transfer)
    logger.info("Transfer %s approved and executed: %s", transfer.id, moved)
    notification_service.notify_transfer_approved(transfer, sender=sender)
    return transfer


def deny_transfer_request(
    db: Session,
    transfer_id: UUID,
    reviewer: User | None,
    denial_reason: str,
    now: datetime | None = None,
    sender: EmailSender | None = None,
) -> TransferRequest:
    denial_reason = (denial_reason or "").strip()
    if not denial_reason:
        raise ValueError("Denial reason is required")
    now = now or utcnow()
    reviewer_id = reviewer.id if reviewer else None
    transfer = get_transfer_request(db, transfer_id)
    if not transfer:
        raise TransferNotFoundError(f"Transfer request {transfer_id} not found")

    try:
        _compare_and_set(
            db,
            transfer_id,
            TransferStatus.DENIED,
            denial_reason=denial_reason,
            approved_by=reviewer_id,
            approved_at=now,
            updated_at=now,
        )
        for record_id in (transfer.source_id, transfer.target_id):
            note_service.add_note(
                db,
                transfer.record_type,
                record_id,
                f"Transfer denied: {denial_reason}",
                author_id=reviewer_id,
            )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(transfer)
    logger.info("Transfer %s denied by %s", transfer.id, reviewer_id)
    notification_service.notify_transfer_denied(transfer, sender=sender)
    return transfer
