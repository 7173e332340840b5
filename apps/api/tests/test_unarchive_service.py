"""Tests for the unarchive request workflow and its interaction with the sweep."""

import uuid
from datetime import timedelta

import pytest

from app.db.enums import (
    ArchiveReason,
    RecordStatus,
    RecordType,
    ScheduledTaskStatus,
    UnarchiveRequestStatus,
)
from app.db.models import Job, ScheduledTask
from app.services import archive_service, note_service, scheduled_task_service, unarchive_service
from app.services.record_service import RecordNotFoundError
from app.services.unarchive_service import UnarchiveRequestConflictError


def _archive(db, record_type, record, now, days=0):
    archived_at = now - timedelta(days=days)
    archive_service.archive_record(db, record_type, record.id, ArchiveReason.DELETION, now=archived_at)
    scheduled_task_service.schedule_archive_cleanup(db, record_type, record.id, now=archived_at)
    db.commit()


def test_create_request_for_archived_record_notifies_payroll(db, make_record, now, recruiter, sent_emails):
    job = make_record(RecordType.JOB)
    _archive(db, RecordType.JOB, job, now)

    request = unarchive_service.create_unarchive_request(
        db, RecordType.JOB, job.id, "Archived by mistake", requester=recruiter
    )

    assert request.status == UnarchiveRequestStatus.PENDING.value
    assert request.record_number == "J-1"
    assert request.requested_by == recruiter.id
    assert sent_emails.sent[-1]["subject"] == "Unarchive Request: job J-1"
    assert sent_emails.sent[-1]["to"] == ["payroll@example.com"]


def test_create_requires_reason(db, make_record, now):
    job = make_record(RecordType.JOB)
    _archive(db, RecordType.JOB, job, now)

    with pytest.raises(ValueError, match="Reason"):
        unarchive_service.create_unarchive_request(db, RecordType.JOB, job.id, "   ")


def test_create_for_active_record_conflicts(db, make_record):
    job = make_record(RecordType.JOB)

    with pytest.raises(UnarchiveRequestConflictError, match="not archived"):
        unarchive_service.create_unarchive_request(db, RecordType.JOB, job.id, "Please")


def test_create_for_missing_record_raises(db):
    with pytest.raises(RecordNotFoundError):
        unarchive_service.create_unarchive_request(db, RecordType.JOB, uuid.uuid4(), "Please")


def test_second_pending_request_conflicts(db, make_record, now):
    job = make_record(RecordType.JOB)
    _archive(db, RecordType.JOB, job, now)
    unarchive_service.create_unarchive_request(db, RecordType.JOB, job.id, "First")

    with pytest.raises(UnarchiveRequestConflictError, match="already exists"):
        unarchive_service.create_unarchive_request(db, RecordType.JOB, job.id, "Second")


def test_approve_restores_record_and_cancels_cleanup(db, make_record, now, recruiter, reviewer, sent_emails):
    job = make_record(RecordType.JOB)
    _archive(db, RecordType.JOB, job, now, days=2)
    request = unarchive_service.create_unarchive_request(
        db, RecordType.JOB, job.id, "Client came back", requester=recruiter
    )

    approved = unarchive_service.approve_unarchive_request(db, request.id, reviewer, now=now)

    assert approved.status == UnarchiveRequestStatus.APPROVED.value
    assert approved.reviewed_by == reviewer.id
    db.refresh(job)
    assert job.status == RecordStatus.ACTIVE.value
    assert job.archived_at is None
    assert job.archive_reason is None
    # Number is kept across the round trip
    assert job.record_number == 1

    task = db.query(ScheduledTask).one()
    assert task.status == ScheduledTaskStatus.CANCELLED.value
    assert task.completed_at is not None

    history = note_service.list_history(db, RecordType.JOB, job.id)
    assert [h.action for h in history] == ["created", "archived", "unarchived"]
    assert history[-1].details == {"previous_reason": "Deletion"}
    notes = [n.body for n in note_service.list_notes(db, RecordType.JOB, job.id)]
    assert notes == ["Record restored following payroll approval"]

    assert sent_emails.sent[-1]["subject"] == "Unarchive Request Approved: job J-1"
    assert sent_emails.sent[-1]["to"] == [recruiter.email]


def test_restored_record_survives_the_sweep(db, make_record, now, reviewer, session_factory):
    job = make_record(RecordType.JOB)
    _archive(db, RecordType.JOB, job, now, days=8)
    request = unarchive_service.create_unarchive_request(db, RecordType.JOB, job.id, "Keep it")
    unarchive_service.approve_unarchive_request(db, request.id, reviewer, now=now)

    deleted = archive_service.run_archive_cleanup(session_factory, now=now, grace_days=7)

    assert deleted["job"] == 0
    db.expire_all()
    assert db.get(Job, job.id).status == RecordStatus.ACTIVE.value


def test_second_approve_conflicts(db, make_record, now, reviewer):
    job = make_record(RecordType.JOB)
    _archive(db, RecordType.JOB, job, now)
    request = unarchive_service.create_unarchive_request(db, RecordType.JOB, job.id, "Keep it")
    unarchive_service.approve_unarchive_request(db, request.id, reviewer, now=now)

    with pytest.raises(UnarchiveRequestConflictError, match="already processed"):
        unarchive_service.approve_unarchive_request(db, request.id, reviewer, now=now)


def test_approve_after_record_restored_elsewhere_rolls_back(db, make_record, now, reviewer):
    job = make_record(RecordType.JOB)
    _archive(db, RecordType.JOB, job, now)
    request = unarchive_service.create_unarchive_request(db, RecordType.JOB, job.id, "Keep it")
    archive_service.restore_record(db, RecordType.JOB, job.id, now=now)
    db.commit()

    with pytest.raises(UnarchiveRequestConflictError, match="not archived"):
        unarchive_service.approve_unarchive_request(db, request.id, reviewer, now=now)

    db.refresh(request)
    assert request.status == UnarchiveRequestStatus.PENDING.value


def test_sweep_denies_pending_request_and_approve_then_conflicts(db, make_record, now, reviewer, session_factory):
    job = make_record(RecordType.JOB)
    _archive(db, RecordType.JOB, job, now, days=8)
    request = unarchive_service.create_unarchive_request(db, RecordType.JOB, job.id, "Too late")

    archive_service.run_archive_cleanup(session_factory, now=now, grace_days=7)

    db.expire_all()
    swept = unarchive_service.get_unarchive_request(db, request.id)
    assert swept.status == UnarchiveRequestStatus.DENIED.value
    assert "permanently deleted" in swept.denial_reason
    assert db.get(Job, job.id) is None

    with pytest.raises(UnarchiveRequestConflictError):
        unarchive_service.approve_unarchive_request(db, request.id, reviewer, now=now)


def test_deny_keeps_record_archived(db, make_record, now, recruiter, reviewer, sent_emails):
    job = make_record(RecordType.JOB)
    _archive(db, RecordType.JOB, job, now)
    request = unarchive_service.create_unarchive_request(
        db, RecordType.JOB, job.id, "Keep it", requester=recruiter
    )

    denied = unarchive_service.deny_unarchive_request(db, request.id, reviewer, "Duplicate of J-2", now=now)

    assert denied.status == UnarchiveRequestStatus.DENIED.value
    assert denied.denial_reason == "Duplicate of J-2"
    db.refresh(job)
    assert job.status == RecordStatus.ARCHIVED.value
    assert db.query(ScheduledTask).one().status == ScheduledTaskStatus.PENDING.value
    notes = [n.body for n in note_service.list_notes(db, RecordType.JOB, job.id)]
    assert notes == ["Unarchive denied: Duplicate of J-2"]
    assert sent_emails.sent[-1]["subject"] == "Unarchive Request Denied: job J-1"


def test_deny_requires_reason(db, make_record, now, reviewer):
    job = make_record(RecordType.JOB)
    _archive(db, RecordType.JOB, job, now)
    request = unarchive_service.create_unarchive_request(db, RecordType.JOB, job.id, "Keep it")

    with pytest.raises(ValueError, match="Denial reason"):
        unarchive_service.deny_unarchive_request(db, request.id, reviewer, "")


def test_restore_active_record_raises(db, make_record):
    job = make_record(RecordType.JOB)

    with pytest.raises(ValueError, match="not archived"):
        archive_service.restore_record(db, RecordType.JOB, job.id)
