"""Tests for archiving and the grace-period hard-delete sweep."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from app.db.enums import ArchiveReason, RecordStatus, RecordType, ScheduledTaskStatus
from app.db.models import (
    Document,
    HiringManager,
    Job,
    Lead,
    Note,
    Organization,
    Placement,
    ReusableNumber,
    ScheduledTask,
    Task,
)
from app.db.types import as_utc
from app.services import archive_service, note_service, record_number_service, scheduled_task_service
from app.services.record_service import RecordNotFoundError


def _exists(db, model, record_id) -> bool:
    return db.execute(select(func.count()).select_from(model).where(model.id == record_id)).scalar_one() == 1


def _pool(db, module_type: str) -> list[int]:
    return list(
        db.execute(
            select(ReusableNumber.number)
            .where(ReusableNumber.module_type == module_type)
            .order_by(ReusableNumber.number)
        ).scalars()
    )


def _archive_days_ago(db, record_type, record, now, days):
    archive_service.archive_record(db, record_type, record.id, ArchiveReason.DELETION, now=now - timedelta(days=days))
    db.commit()


def test_archive_record_sets_status_reason_and_history(db, make_record, now, recruiter):
    job = make_record(RecordType.JOB)

    archive_service.archive_record(
        db, RecordType.JOB, job.id, ArchiveReason.DELETION, user_id=recruiter.id, note="Bye", now=now
    )
    db.commit()
    db.refresh(job)

    assert job.status == RecordStatus.ARCHIVED.value
    assert job.archive_reason == "Deletion"
    assert as_utc(job.archived_at) == now
    # Number stays reserved until hard delete
    assert job.record_number == 1
    assert _pool(db, "job") == []

    actions = [h.action for h in note_service.list_history(db, RecordType.JOB, job.id)]
    assert actions == ["created", "archived"]
    assert [n.body for n in note_service.list_notes(db, RecordType.JOB, job.id)] == ["Bye"]


def test_archive_record_keeps_original_archived_at(db, make_record, now):
    job = make_record(RecordType.JOB)
    _archive_days_ago(db, RecordType.JOB, job, now, 3)

    archive_service.archive_record(db, RecordType.JOB, job.id, ArchiveReason.TRANSFER, now=now)
    db.commit()
    db.refresh(job)

    assert as_utc(job.archived_at) == now - timedelta(days=3)
    assert job.archive_reason == "Deletion"


def test_archive_missing_record_raises(db):
    import uuid

    with pytest.raises(RecordNotFoundError):
        archive_service.archive_record(db, RecordType.JOB, uuid.uuid4(), ArchiveReason.DELETION)


def test_archive_cascade_archives_linked_records_only(db, make_record, now):
    org = make_record(RecordType.ORGANIZATION)
    other_org = make_record(RecordType.ORGANIZATION, name="Other")
    hm = make_record(RecordType.HIRING_MANAGER, organization_id=org.id)
    job = make_record(RecordType.JOB, organization_id=org.id)
    lead = make_record(RecordType.LEAD, organization_id=org.id)
    placement = make_record(RecordType.PLACEMENT, job_id=job.id)
    other_job = make_record(RecordType.JOB, organization_id=other_org.id)

    counts = archive_service.archive_cascade(db, org.id, now=now)
    db.commit()

    assert counts == {"placements": 1, "hiring_managers": 1, "jobs": 1, "leads": 1}
    for record in (org, hm, job, lead, placement):
        db.refresh(record)
        assert record.status == RecordStatus.ARCHIVED.value
        assert record.archive_reason == ArchiveReason.CASCADE_DELETION.value
    db.refresh(other_job)
    db.refresh(other_org)
    assert other_job.status == RecordStatus.ACTIVE.value
    assert other_org.status == RecordStatus.ACTIVE.value


def test_sweep_deletes_after_grace_period_and_reuses_number(db, make_record, session_factory, now):
    job = make_record(RecordType.JOB)
    assert job.record_number == 1
    _archive_days_ago(db, RecordType.JOB, job, now, 8)

    counts = archive_service.run_archive_cleanup(session_factory, now=now)

    assert counts["job"] == 1
    assert not _exists(db, Job, job.id)
    assert _pool(db, "job") == [1]

    assert record_number_service.allocate_record_number(db, RecordType.JOB) == 1
    db.commit()


def test_sweep_skips_recently_archived_and_live_records(db, make_record, session_factory, now):
    recent = make_record(RecordType.JOB, title="Recent")
    live = make_record(RecordType.JOB, title="Live")
    _archive_days_ago(db, RecordType.JOB, recent, now, 6)

    counts = archive_service.run_archive_cleanup(session_factory, now=now)

    assert counts["job"] == 0
    assert _exists(db, Job, recent.id)
    assert _exists(db, Job, live.id)
    assert _pool(db, "job") == []


def test_sweep_boundary_is_inclusive(db, make_record, session_factory, now):
    job = make_record(RecordType.JOB)
    _archive_days_ago(db, RecordType.JOB, job, now, 7)

    counts = archive_service.run_archive_cleanup(session_factory, now=now)

    assert counts["job"] == 1
    assert not _exists(db, Job, job.id)


def test_sweep_grace_period_override(db, make_record, session_factory, now):
    job = make_record(RecordType.JOB)
    _archive_days_ago(db, RecordType.JOB, job, now, 2)

    assert archive_service.run_archive_cleanup(session_factory, now=now)["job"] == 0
    assert archive_service.run_archive_cleanup(session_factory, now=now, grace_days=1)["job"] == 1


def test_sweep_cascades_organization_dependents(db, make_record, session_factory, now):
    org = make_record(RecordType.ORGANIZATION)
    hm = make_record(RecordType.HIRING_MANAGER, organization_id=org.id)
    job = make_record(RecordType.JOB, organization_id=org.id)
    lead = make_record(RecordType.LEAD, organization_id=org.id)
    placement = make_record(RecordType.PLACEMENT, job_id=job.id)
    task = make_record(RecordType.TASK, organization_id=org.id)
    note_service.add_note(db, RecordType.ORGANIZATION, org.id, "Org note")
    note_service.add_note(db, RecordType.JOB, job.id, "Job note")
    db.add(Document(entity_type="organization", entity_id=org.id, name="msa.pdf", file_path="docs/msa.pdf"))
    db.commit()
    _archive_days_ago(db, RecordType.ORGANIZATION, org, now, 8)

    counts = archive_service.run_archive_cleanup(session_factory, now=now)

    assert counts["organization"] == 1
    assert counts["hiring_manager"] == 1
    assert counts["job"] == 1
    assert counts["lead"] == 1
    assert counts["placement"] == 1
    assert counts["task"] == 0
    for model, record in (
        (Organization, org),
        (HiringManager, hm),
        (Job, job),
        (Lead, lead),
        (Placement, placement),
    ):
        assert not _exists(db, model, record.id)

    for module in ("organization", "hiring_manager", "job", "lead", "placement"):
        assert _pool(db, module) == [1]

    assert db.execute(select(func.count()).select_from(Note)).scalar_one() == 0
    assert db.execute(select(func.count()).select_from(Document)).scalar_one() == 0

    # Tasks are not cascade dependents; they only lose the link
    remaining = db.execute(select(Task).where(Task.id == task.id)).scalar_one()
    assert remaining.organization_id is None
    assert remaining.status == RecordStatus.ACTIVE.value


def test_sweep_removes_job_seeker_placements(db, make_record, session_factory, now):
    seeker = make_record(RecordType.JOB_SEEKER)
    job = make_record(RecordType.JOB)
    placement = make_record(RecordType.PLACEMENT, job_id=job.id, job_seeker_id=seeker.id)
    note_service.add_note(db, RecordType.PLACEMENT, placement.id, "Start date confirmed")
    db.commit()
    _archive_days_ago(db, RecordType.JOB_SEEKER, seeker, now, 8)

    counts = archive_service.run_archive_cleanup(session_factory, now=now)

    assert counts["job_seeker"] == 1
    assert counts["placement"] == 1
    assert not _exists(db, Placement, placement.id)
    assert _exists(db, Job, job.id)
    assert _pool(db, "placement") == [1]
    assert db.execute(select(func.count()).select_from(Note)).scalar_one() == 0


def test_sweep_completes_scheduled_cleanup_task(db, make_record, session_factory, now):
    seeker = make_record(RecordType.JOB_SEEKER)
    _archive_days_ago(db, RecordType.JOB_SEEKER, seeker, now, 8)
    scheduled_task_service.schedule_archive_cleanup(
        db, RecordType.JOB_SEEKER, seeker.id, now=now - timedelta(days=8)
    )
    db.commit()

    archive_service.run_archive_cleanup(session_factory, now=now)

    task = db.execute(select(ScheduledTask)).scalar_one()
    db.refresh(task)
    assert task.status == ScheduledTaskStatus.COMPLETED.value
    assert as_utc(task.completed_at) == now


def test_sweep_failure_rolls_back_everything(db, make_record, session_factory, now, monkeypatch):
    first = make_record(RecordType.JOB, title="First")
    second = make_record(RecordType.JOB, title="Second")
    _archive_days_ago(db, RecordType.JOB, first, now, 10)
    _archive_days_ago(db, RecordType.JOB, second, now, 9)

    original_release = record_number_service.release_record_number
    calls = []

    def flaky_release(session, module_type, number):
        calls.append(number)
        if len(calls) == 2:
            raise RuntimeError("disk on fire")
        return original_release(session, module_type, number)

    monkeypatch.setattr(record_number_service, "release_record_number", flaky_release)

    with pytest.raises(RuntimeError):
        archive_service.run_archive_cleanup(session_factory, now=now)

    assert _exists(db, Job, first.id)
    assert _exists(db, Job, second.id)
    assert _pool(db, "job") == []
