"""Unarchive requests router - restore archived records before the sweep removes them."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db, require_csrf_header, require_reviewer
from app.schemas.unarchive_request import (
    UnarchiveRequestCreate,
    UnarchiveRequestDeny,
    UnarchiveRequestRead,
)
from app.services import unarchive_service
from app.services.record_service import RecordNotFoundError
from app.services.unarchive_service import (
    UnarchiveRequestConflictError,
    UnarchiveRequestNotFoundError,
)

router = APIRouter(prefix="/unarchive-requests", tags=["unarchive-requests"])


@router.post(
    "",
    response_model=UnarchiveRequestRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_unarchive_request(
    data: UnarchiveRequestCreate,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return unarchive_service.create_unarchive_request(
            db, data.record_type, data.record_id, data.reason, requester=user
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UnarchiveRequestConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/pending", response_model=list[UnarchiveRequestRead])
def list_pending(
    _reviewer=Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    return unarchive_service.list_pending_requests(db)


@router.get("/{request_id}", response_model=UnarchiveRequestRead)
def get_unarchive_request(
    request_id: UUID,
    _user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    request = unarchive_service.get_unarchive_request(db, request_id)
    if not request:
        raise HTTPException(status_code=404, detail="Unarchive request not found")
    return request


@router.post(
    "/{request_id}/approve",
    response_model=UnarchiveRequestRead,
    dependencies=[Depends(require_csrf_header)],
)
def approve_unarchive_request(
    request_id: UUID,
    reviewer=Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    """Restore the record; 409 once the sweep has already deleted it."""
    try:
        return unarchive_service.approve_unarchive_request(db, request_id, reviewer)
    except UnarchiveRequestNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UnarchiveRequestConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post(
    "/{request_id}/deny",
    response_model=UnarchiveRequestRead,
    dependencies=[Depends(require_csrf_header)],
)
def deny_unarchive_request(
    request_id: UUID,
    data: UnarchiveRequestDeny,
    reviewer=Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    try:
        return unarchive_service.deny_unarchive_request(db, request_id, reviewer, data.denial_reason)
    except UnarchiveRequestNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UnarchiveRequestConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
