"""
Unarchive request workflow: pending -> approved | denied.

Approval restores the record to Active and cancels its pending
archive_cleanup task. It only works inside the archive grace period; once
the sweep has hard-deleted the record there is nothing left to restore.
Status changes are compare-and-swap updates guarded by status = 'pending'.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.enums import RecordStatus, RecordType, UnarchiveRequestStatus
from app.db.models import UnarchiveRequest, User
from app.db.types import utcnow
from app.services import (
    archive_service,
    note_service,
    notification_service,
    record_service,
    scheduled_task_service,
)
from app.services.email_sender import EmailSender
from app.services.record_registry import parse_record_type

logger = logging.getLogger(__name__)

PENDING = UnarchiveRequestStatus.PENDING.value


class UnarchiveRequestError(Exception):
    """Base exception for unarchive request errors."""

    pass


class UnarchiveRequestNotFoundError(UnarchiveRequestError):
    pass


class UnarchiveRequestConflictError(UnarchiveRequestError):
    """Request is not pending, or the record cannot be restored."""

    pass


def get_unarchive_request(db: Session, request_id: UUID) -> UnarchiveRequest | None:
    return db.get(UnarchiveRequest, request_id)


def get_pending_for_record(
    db: Session, record_id: UUID, record_type: RecordType | str
) -> UnarchiveRequest | None:
    record_type = parse_record_type(record_type)
    return (
        db.query(UnarchiveRequest)
        .filter(
            UnarchiveRequest.record_id == record_id,
            UnarchiveRequest.record_type == record_type.value,
            UnarchiveRequest.status == PENDING,
        )
        .first()
    )


def list_pending_requests(db: Session, limit: int = 100) -> list[UnarchiveRequest]:
    """Pending requests, oldest first."""
    return (
        db.query(UnarchiveRequest)
        .filter(UnarchiveRequest.status == PENDING)
        .order_by(UnarchiveRequest.created_at)
        .limit(limit)
        .all()
    )


def create_unarchive_request(
    db: Session,
    record_type: RecordType | str,
    record_id: UUID,
    reason: str,
    requester: User | None = None,
    sender: EmailSender | None = None,
) -> UnarchiveRequest:
    """
    Open a pending unarchive request and notify the reviewer mailbox.

    Raises ValueError without a reason, RecordNotFoundError if the record is
    gone and UnarchiveRequestConflictError if it is not archived or a
    request is already pending.
    """
    reason = (reason or "").strip()
    if not reason:
        raise ValueError("Reason for unarchiving is required")
    record_type = parse_record_type(record_type)

    record = record_service.require_record(db, record_type, record_id)
    if record.status != RecordStatus.ARCHIVED.value:
        raise UnarchiveRequestConflictError("Record is not archived")
    if get_pending_for_record(db, record_id, record_type):
        raise UnarchiveRequestConflictError("A pending unarchive request already exists for this record")

    request = UnarchiveRequest(
        record_id=record_id,
        record_type=record_type.value,
        record_number=record_service.display_number(record_type, record),
        requested_by=requester.id if requester else None,
        requested_by_name=requester.display_name if requester else None,
        requested_by_email=requester.email if requester else None,
        reason=reason,
        status=PENDING,
    )
    db.add(request)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise UnarchiveRequestConflictError("A pending unarchive request already exists for this record")
    db.refresh(request)

    logger.info(
        "Unarchive request %s created for %s %s",
        request.id,
        request.record_type,
        request.record_number,
    )
    notification_service.notify_unarchive_request_pending(request, sender=sender)
    return request


def _compare_and_set(db: Session, request_id: UUID, new_status: UnarchiveRequestStatus, **values) -> None:
    result = db.execute(
        update(UnarchiveRequest)
        .where(UnarchiveRequest.id == request_id, UnarchiveRequest.status == PENDING)
        .values(status=new_status.value, **values)
    )
    if result.rowcount != 1:
        raise UnarchiveRequestConflictError("Unarchive request not found or already processed")


def approve_unarchive_request(
    db: Session,
    request_id: UUID,
    reviewer: User | None = None,
    now: datetime | None = None,
    sender: EmailSender | None = None,
) -> UnarchiveRequest:
    """Approve a pending request and restore its record atomically."""
    now = now or utcnow()
    reviewer_id = reviewer.id if reviewer else None
    request = get_unarchive_request(db, request_id)
    if not request:
        raise UnarchiveRequestNotFoundError(f"Unarchive request {request_id} not found")
    record_type = parse_record_type(request.record_type)

    try:
        _compare_and_set(
            db,
            request_id,
            UnarchiveRequestStatus.APPROVED,
            reviewed_by=reviewer_id,
            reviewed_at=now,
            updated_at=now,
        )
        record = record_service.get_record(db, record_type, request.record_id, lock=True)
        if record is None:
            raise UnarchiveRequestConflictError("Record was permanently deleted; nothing to restore")
        if record.status != RecordStatus.ARCHIVED.value:
            raise UnarchiveRequestConflictError("Record is not archived")

        archive_service.restore_record(
            db,
            record_type,
            record.id,
            user_id=reviewer_id,
            note="Record restored following payroll approval",
            now=now,
        )
        scheduled_task_service.cancel_cleanup_tasks(db, record_type, record.id, now=now)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(request)
    logger.info("Unarchive request %s approved by %s", request.id, reviewer_id)
    notification_service.notify_unarchive_request_approved(request, sender=sender)
    return request


def deny_unarchive_request(
    db: Session,
    request_id: UUID,
    reviewer: User | None,
    denial_reason: str,
    now: datetime | None = None,
    sender: EmailSender | None = None,
) -> UnarchiveRequest:
    """Deny a pending request. The record stays archived."""
    denial_reason = (denial_reason or "").strip()
    if not denial_reason:
        raise ValueError("Denial reason is required")
    now = now or utcnow()
    reviewer_id = reviewer.id if reviewer else None
    request = get_unarchive_request(db, request_id)
    if not request:
        raise UnarchiveRequestNotFoundError(f"Unarchive request {request_id} not found")

    try:
        _compare_and_set(
            db,
            request_id,
            UnarchiveRequestStatus.DENIED,
            denial_reason=denial_reason,
            reviewed_by=reviewer_id,
            reviewed_at=now,
            updated_at=now,
        )
        note_service.add_note(
            db,
            request.record_type,
            request.record_id,
            f"Unarchive denied: {denial_reason}",
            author_id=reviewer_id,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(request)
    logger.info("Unarchive request %s denied by %s", request.id, reviewer_id)
    notification_service.notify_unarchive_request_denied(request, sender=sender)
    return request
