"""
Delete request workflow: pending -> approved | denied | expired.

Status changes are compare-and-swap updates guarded by status = 'pending';
zero affected rows means another actor got there first and is reported as
a conflict. Approval archives the record in the same transaction. Emails
go out only after commit.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.enums import (
    ArchiveReason,
    DeleteActionType,
    DeleteRequestStatus,
    RecordStatus,
    RecordType,
)
from app.db.models import DeleteRequest, Organization, User
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

PENDING = DeleteRequestStatus.PENDING.value


class DeleteRequestError(Exception):
    """Base exception for delete request errors."""

    pass


class DeleteRequestNotFoundError(DeleteRequestError):
    """Delete request not found."""

    pass


class DeleteRequestConflictError(DeleteRequestError):
    """Request is not pending anymore, or a pending request already exists."""

    pass


class DependenciesExistError(DeleteRequestError):
    """Standard deletion of an organization that still has linked records."""

    def __init__(self, dependency_counts: dict[str, int]):
        self.dependency_counts = dependency_counts
        super().__init__(
            "Organization has linked records; use cascade deletion to archive them together"
        )


@dataclass
class ExpiryOutcome:
    """Result of expiring one pending request."""

    expired: DeleteRequest | None = None  # None: request was no longer pending
    new_request: DeleteRequest | None = None
    capped: bool = False
    record_unavailable: bool = False  # record deleted or archived meanwhile


@dataclass
class ApprovalResult:
    request: DeleteRequest
    auto_approved: list[DeleteRequest] = field(default_factory=list)


# =============================================================================
# Queries
# =============================================================================


def get_delete_request(db: Session, request_id: UUID) -> DeleteRequest | None:
    return db.get(DeleteRequest, request_id)


def get_by_record(
    db: Session, record_id: UUID, record_type: RecordType | str
) -> DeleteRequest | None:
    """Latest delete request for a record, any status."""
    record_type = parse_record_type(record_type)
    return (
        db.query(DeleteRequest)
        .filter(
            DeleteRequest.record_id == record_id,
            DeleteRequest.record_type == record_type.value,
        )
        .order_by(DeleteRequest.created_at.desc(), DeleteRequest.retry_count.desc())
        .first()
    )


def get_pending_for_record(
    db: Session, record_id: UUID, record_type: RecordType | str
) -> DeleteRequest | None:
    record_type = parse_record_type(record_type)
    return (
        db.query(DeleteRequest)
        .filter(
            DeleteRequest.record_id == record_id,
            DeleteRequest.record_type == record_type.value,
            DeleteRequest.status == PENDING,
        )
        .first()
    )


def list_pending_requests(
    db: Session,
    record_type: RecordType | str | None = None,
    limit: int = 100,
) -> list[DeleteRequest]:
    """Pending requests, oldest first."""
    query = db.query(DeleteRequest).filter(DeleteRequest.status == PENDING)
    if record_type:
        query = query.filter(DeleteRequest.record_type == parse_record_type(record_type).value)
    return query.order_by(DeleteRequest.created_at).limit(limit).all()


def get_expired_pending_requests(
    db: Session,
    now: datetime | None = None,
    expiry_hours: int | None = None,
) -> list[DeleteRequest]:
    """Pending requests created at least expiry_hours ago, oldest first."""
    now = now or utcnow()
    hours = settings.DELETE_REQUEST_EXPIRY_HOURS if expiry_hours is None else expiry_hours
    cutoff = now - timedelta(hours=hours)
    return (
        db.query(DeleteRequest)
        .filter(DeleteRequest.status == PENDING, DeleteRequest.created_at <= cutoff)
        .order_by(DeleteRequest.created_at)
        .all()
    )


# =============================================================================
# Create
# =============================================================================


def create_delete_request(
    db: Session,
    record_type: RecordType | str,
    record_id: UUID,
    reason: str,
    requester: User | None = None,
    action_type: DeleteActionType | str = DeleteActionType.STANDARD,
    dependencies_summary: dict | None = None,
    user_consent: bool = False,
    sender: EmailSender | None = None,
) -> DeleteRequest:
    """
    Open a pending delete request and notify the reviewer mailbox.

    Raises ValueError for invalid input, RecordNotFoundError if the record is
    missing, DependenciesExistError for a standard organization delete with
    linked records and DeleteRequestConflictError if one is already pending.
    """
    reason = (reason or "").strip()
    if not reason:
        raise ValueError("Reason for deletion is required")
    record_type = parse_record_type(record_type)
    action_value = action_type.value if isinstance(action_type, DeleteActionType) else action_type
    if action_value not in {t.value for t in DeleteActionType}:
        raise ValueError(f"Invalid action_type: {action_type}")

    is_cascade = action_value == DeleteActionType.CASCADE.value
    if is_cascade:
        if record_type != RecordType.ORGANIZATION:
            raise ValueError("Cascade deletion is only supported for organizations")
        if not isinstance(dependencies_summary, dict):
            raise ValueError("dependencies_summary is required for cascade deletion")
        if not user_consent:
            raise ValueError("User consent is required for cascade deletion")

    record = record_service.require_record(db, record_type, record_id)
    if record.status == RecordStatus.ARCHIVED.value:
        raise DeleteRequestConflictError("Record is already archived")

    if record_type == RecordType.ORGANIZATION and not is_cascade:
        counts = record_service.get_dependency_counts(db, record_id)
        if record_service.has_dependencies(counts):
            raise DependenciesExistError(counts)

    if get_pending_for_record(db, record_id, record_type):
        raise DeleteRequestConflictError("A pending delete request already exists for this record")

    request = DeleteRequest(
        record_id=record_id,
        record_type=record_type.value,
        record_number=record_service.display_number(record_type, record),
        requested_by=requester.id if requester else None,
        requested_by_name=requester.display_name if requester else None,
        requested_by_email=requester.email if requester else None,
        reason=reason,
        status=PENDING,
        retry_count=0,
        action_type=action_value,
        dependencies_summary=dependencies_summary if is_cascade else None,
        user_consent=bool(user_consent) if is_cascade else False,
    )
    db.add(request)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race against a concurrent request for the same record
        db.rollback()
        raise DeleteRequestConflictError("A pending delete request already exists for this record")
    db.refresh(request)

    logger.info(
        "Delete request %s created for %s %s (%s)",
        request.id,
        request.record_type,
        request.record_number,
        request.action_type,
    )
    notification_service.notify_delete_request_pending(request, sender=sender)
    return request


# =============================================================================
# Review
# =============================================================================


def _compare_and_set(db: Session, request_id: UUID, new_status: DeleteRequestStatus, **values) -> bool:
    result = db.execute(
        update(DeleteRequest)
        .where(DeleteRequest.id == request_id, DeleteRequest.status == PENDING)
        .values(status=new_status.value, **values)
    )
    return result.rowcount == 1


def _raise_not_pending(db: Session, request_id: UUID) -> None:
    db.rollback()
    current = db.get(DeleteRequest, request_id)
    if current and current.status == DeleteRequestStatus.EXPIRED.value:
        raise DeleteRequestConflictError(
            "Delete request has expired; review the replacement request instead"
        )
    raise DeleteRequestConflictError("Delete request not found or already processed")


def _execute_deletion(
    db: Session, request: DeleteRequest, reviewer_id: UUID | None, now: datetime
) -> list[DeleteRequest]:
    """Archive the record for an approved request. Returns auto-approved child requests."""
    record_type = parse_record_type(request.record_type)
    auto_approved: list[DeleteRequest] = []

    if record_type == RecordType.ORGANIZATION and request.action_type == DeleteActionType.CASCADE.value:
        child_org_ids = (
            db.execute(
                select(Organization.id).where(
                    Organization.parent_organization_id == request.record_id,
                    Organization.status != RecordStatus.ARCHIVED.value,
                    Organization.id != request.record_id,
                )
            )
            .scalars()
            .all()
        )

        archive_service.archive_cascade(
            db, request.record_id, reviewer_id, ArchiveReason.CASCADE_DELETION, now=now
        )
        note_service.add_note(
            db,
            record_type,
            request.record_id,
            "Organization and all linked records archived following payroll approval (Cascade Deletion)",
            author_id=reviewer_id,
        )

        for child_id in child_org_ids:
            child_request = get_pending_for_record(db, child_id, RecordType.ORGANIZATION)
            if not child_request:
                continue
            if not _compare_and_set(
                db,
                child_request.id,
                DeleteRequestStatus.APPROVED,
                reviewed_by=reviewer_id,
                reviewed_at=now,
                updated_at=now,
            ):
                continue
            archive_service.archive_record(
                db,
                RecordType.ORGANIZATION,
                child_id,
                ArchiveReason.DELETION,
                user_id=reviewer_id,
                note="Record archived following auto-approval (parent organization cascade deletion approved)",
                now=now,
            )
            scheduled_task_service.schedule_archive_cleanup(
                db, RecordType.ORGANIZATION, child_id, child_request.id, now=now
            )
            auto_approved.append(child_request)
            logger.info("Auto-approved child organization delete request %s", child_request.id)
    else:
        archive_service.archive_record(
            db,
            record_type,
            request.record_id,
            ArchiveReason.DELETION,
            user_id=reviewer_id,
            note="Record archived following payroll approval",
            now=now,
        )

    scheduled_task_service.schedule_archive_cleanup(
        db, record_type, request.record_id, request.id, now=now
    )
    return auto_approved


def approve_delete_request(
    db: Session,
    request_id: UUID,
    reviewer: User | None = None,
    now: datetime | None = None,
    sender: EmailSender | None = None,
) -> ApprovalResult:
    """
    Approve a pending request and archive its record atomically.

    The record is archived with reason Deletion (or cascade-archived for a
    cascade organization request) and an archive_cleanup task is scheduled
    for the end of the grace period.
    """
    now = now or utcnow()
    reviewer_id = reviewer.id if reviewer else None
    request = get_delete_request(db, request_id)
    if not request:
        raise DeleteRequestNotFoundError(f"Delete request {request_id} not found")

    try:
        if not _compare_and_set(
            db,
            request_id,
            DeleteRequestStatus.APPROVED,
            reviewed_by=reviewer_id,
            reviewed_at=now,
            updated_at=now,
        ):
            _raise_not_pending(db, request_id)
        auto_approved = _execute_deletion(db, request, reviewer_id, now)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(request)
    logger.info("Delete request %s approved by %s", request.id, reviewer_id)

    notification_service.notify_delete_request_approved(request, sender=sender)
    for child_request in auto_approved:
        db.refresh(child_request)
        notification_service.notify_delete_request_approved(child_request, sender=sender)
    return ApprovalResult(request=request, auto_approved=auto_approved)


def deny_delete_request(
    db: Session,
    request_id: UUID,
    reviewer: User | None,
    denial_reason: str,
    now: datetime | None = None,
    sender: EmailSender | None = None,
) -> DeleteRequest:
    """Deny a pending request. The record stays as it is."""
    denial_reason = (denial_reason or "").strip()
    if not denial_reason:
        raise ValueError("Denial reason is required")
    now = now or utcnow()
    reviewer_id = reviewer.id if reviewer else None
    request = get_delete_request(db, request_id)
    if not request:
        raise DeleteRequestNotFoundError(f"Delete request {request_id} not found")

    try:
        if not _compare_and_set(
            db,
            request_id,
            DeleteRequestStatus.DENIED,
            denial_reason=denial_reason,
            reviewed_by=reviewer_id,
            reviewed_at=now,
            updated_at=now,
        ):
            _raise_not_pending(db, request_id)
        note_service.add_note(
            db,
            request.record_type,
            request.record_id,
            f"Delete denied: {denial_reason}",
            author_id=reviewer_id,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(request)
    logger.info("Delete request %s denied by %s", request.id, reviewer_id)
    notification_service.notify_delete_request_denied(request, sender=sender)
    return request


# =============================================================================
# Expiry
# =============================================================================


def expire_and_create_new(
    db: Session,
    old_request: DeleteRequest,
    max_retries: int | None = None,
    now: datetime | None = None,
) -> ExpiryOutcome:
    """
    Expire a pending request and open its replacement with retry_count + 1.

    No replacement once retry_count + 1 would exceed max_retries, or when the
    record has been hard-deleted or archived since. Returns an empty outcome
    if the request is no longer pending. Does not commit.
    """
    now = now or utcnow()
    cap = settings.DELETE_REQUEST_MAX_RETRIES if max_retries is None else max_retries

    if not _compare_and_set(db, old_request.id, DeleteRequestStatus.EXPIRED, updated_at=now):
        return ExpiryOutcome()

    record = record_service.get_record(db, old_request.record_type, old_request.record_id)
    if record is None or record.status == RecordStatus.ARCHIVED.value:
        logger.info(
            "Delete request %s expired; %s %s is no longer live, no replacement created",
            old_request.id,
            old_request.record_type,
            old_request.record_id,
        )
        return ExpiryOutcome(expired=old_request, record_unavailable=True)

    next_retry = (old_request.retry_count or 0) + 1
    if next_retry > cap:
        logger.warning(
            "Delete request %s expired after %s retries; no replacement created",
            old_request.id,
            old_request.retry_count,
        )
        return ExpiryOutcome(expired=old_request, capped=True)

    new_request = DeleteRequest(
        record_id=old_request.record_id,
        record_type=old_request.record_type,
        record_number=old_request.record_number,
        requested_by=old_request.requested_by,
        requested_by_name=old_request.requested_by_name,
        requested_by_email=old_request.requested_by_email,
        reason=old_request.reason,
        status=PENDING,
        retry_count=next_retry,
        action_type=old_request.action_type,
        dependencies_summary=old_request.dependencies_summary,
        user_consent=old_request.user_consent,
        created_at=now,
        updated_at=now,
    )
    db.add(new_request)
    db.flush()
    return ExpiryOutcome(expired=old_request, new_request=new_request)


def run_delete_request_expiry_sweep(
    session_factory: Callable[[], Session],
    now: datetime | None = None,
    max_retries: int | None = None,
    expiry_hours: int | None = None,
    sender: EmailSender | None = None,
) -> dict:
    """
    Sweep entry point for the scheduler.

    Each request is handled in its own transaction, so one failure rolls back
    only that request. Notifications are sent after commit.
    """
    now = now or utcnow()
    results: list[dict] = []

    with session_factory() as db:
        request_ids = [r.id for r in get_expired_pending_requests(db, now, expiry_hours)]
        db.commit()

        for request_id in request_ids:
            try:
                old_request = db.get(DeleteRequest, request_id)
                if not old_request or old_request.status != PENDING:
                    continue
                outcome = expire_and_create_new(db, old_request, max_retries=max_retries, now=now)
                db.commit()
            except Exception as exc:
                db.rollback()
                logger.exception("Failed to expire delete request %s", request_id)
                results.append({"request_id": str(request_id), "status": "error", "error": str(exc)})
                continue

            if outcome.expired is None:
                continue
            if outcome.record_unavailable:
                results.append({"request_id": str(request_id), "status": "record_unavailable"})
                continue
            if outcome.capped:
                results.append({"request_id": str(request_id), "status": "max_retries_reached"})
                continue

            new_request = outcome.new_request
            db.refresh(new_request)
            notified = notification_service.notify_delete_request_pending(new_request, sender=sender)
            results.append(
                {
                    "request_id": str(request_id),
                    "status": "retried",
                    "new_request_id": str(new_request.id),
                    "retry_count": new_request.retry_count,
                    "notified": notified,
                }
            )

    logger.info("Delete request expiry sweep processed %s requests", len(results))
    return {"processed": len(results), "results": results}
