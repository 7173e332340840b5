"""Tests for the delete requests router."""

import uuid

import pytest

from app.db.enums import RecordStatus, RecordType
from app.services import delete_request_service


@pytest.mark.asyncio
async def test_create_delete_request(authed_client, make_record, recruiter):
    job = make_record(RecordType.JOB)

    response = await authed_client.post(
        "/delete-requests",
        json={"record_type": "job", "record_id": str(job.id), "reason": "Duplicate posting"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["record_number"] == "J-1"
    assert data["retry_count"] == 0
    assert data["requested_by"] == str(recruiter.id)


@pytest.mark.asyncio
async def test_duplicate_pending_request_is_409(authed_client, make_record):
    job = make_record(RecordType.JOB)
    body = {"record_type": "job", "record_id": str(job.id), "reason": "Duplicate posting"}

    first = await authed_client.post("/delete-requests", json=body)
    second = await authed_client.post("/delete-requests", json=body)

    assert first.status_code == 201
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_missing_record_is_404(authed_client):
    response = await authed_client.post(
        "/delete-requests",
        json={"record_type": "job", "record_id": str(uuid.uuid4()), "reason": "gone"},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_organization_with_dependencies_requires_cascade(authed_client, make_record):
    org = make_record(RecordType.ORGANIZATION)
    make_record(RecordType.JOB, organization_id=org.id)

    response = await authed_client.post(
        "/delete-requests",
        json={"record_type": "organization", "record_id": str(org.id), "reason": "closed"},
    )

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["requires_cascade"] is True
    assert detail["dependency_counts"]["jobs"] == 1


@pytest.mark.asyncio
async def test_cascade_without_consent_is_400(authed_client, make_record):
    org = make_record(RecordType.ORGANIZATION)

    response = await authed_client.post(
        "/delete-requests",
        json={
            "record_type": "organization",
            "record_id": str(org.id),
            "reason": "closed",
            "action_type": "cascade",
            "dependencies_summary": {"jobs": 0},
        },
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_recruiter_cannot_approve(authed_client, db, make_record, recruiter):
    job = make_record(RecordType.JOB)
    request = delete_request_service.create_delete_request(
        db, RecordType.JOB, job.id, "dup", requester=recruiter
    )

    response = await authed_client.post(f"/delete-requests/{request.id}/approve")

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_reviewer_approves_and_second_approve_conflicts(reviewer_client, db, make_record, recruiter):
    job = make_record(RecordType.JOB)
    request = delete_request_service.create_delete_request(
        db, RecordType.JOB, job.id, "dup", requester=recruiter
    )

    response = await reviewer_client.post(f"/delete-requests/{request.id}/approve")

    assert response.status_code == 200
    data = response.json()
    assert data["request"]["status"] == "approved"
    assert data["auto_approved_ids"] == []
    db.refresh(job)
    assert job.status == RecordStatus.ARCHIVED.value

    again = await reviewer_client.post(f"/delete-requests/{request.id}/approve")
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_approve_unknown_request_is_404(reviewer_client):
    response = await reviewer_client.post(f"/delete-requests/{uuid.uuid4()}/approve")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_reviewer_denies(reviewer_client, db, make_record, recruiter):
    job = make_record(RecordType.JOB)
    request = delete_request_service.create_delete_request(
        db, RecordType.JOB, job.id, "dup", requester=recruiter
    )

    response = await reviewer_client.post(
        f"/delete-requests/{request.id}/deny", json={"denial_reason": "Still active"}
    )

    assert response.status_code == 200
    assert response.json()["status"] == "denied"
    assert response.json()["denial_reason"] == "Still active"


@pytest.mark.asyncio
async def test_deny_requires_reason(reviewer_client, db, make_record, recruiter):
    job = make_record(RecordType.JOB)
    request = delete_request_service.create_delete_request(
        db, RecordType.JOB, job.id, "dup", requester=recruiter
    )

    response = await reviewer_client.post(
        f"/delete-requests/{request.id}/deny", json={"denial_reason": ""}
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_pending_list_and_lookup_by_record(reviewer_client, db, make_record, recruiter):
    job = make_record(RecordType.JOB)
    lead = make_record(RecordType.LEAD)
    job_request = delete_request_service.create_delete_request(
        db, RecordType.JOB, job.id, "dup", requester=recruiter
    )
    delete_request_service.create_delete_request(db, RecordType.LEAD, lead.id, "dup", requester=recruiter)

    pending = await reviewer_client.get("/delete-requests/pending")
    assert pending.status_code == 200
    assert len(pending.json()) == 2

    jobs_only = await reviewer_client.get("/delete-requests/pending", params={"record_type": "job"})
    assert [r["id"] for r in jobs_only.json()] == [str(job_request.id)]

    by_record = await reviewer_client.get(
        "/delete-requests/by-record", params={"record_type": "job", "record_id": str(job.id)}
    )
    assert by_record.status_code == 200
    assert by_record.json()["id"] == str(job_request.id)

    detail = await reviewer_client.get(f"/delete-requests/{job_request.id}")
    assert detail.json()["reason"] == "dup"


@pytest.mark.asyncio
async def test_pending_list_is_reviewer_only(authed_client):
    response = await authed_client.get("/delete-requests/pending")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_lookup_by_record_without_requests_is_404(authed_client, make_record):
    job = make_record(RecordType.JOB)
    response = await authed_client.get(
        "/delete-requests/by-record", params={"record_type": "job", "record_id": str(job.id)}
    )
    assert response.status_code == 404
