"""Delete requests router - request, review and inspect record deletions."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db, require_csrf_header, require_reviewer
from app.db.enums import RecordType
from app.schemas.delete_request import (
    DeleteRequestApproveResponse,
    DeleteRequestCreate,
    DeleteRequestDeny,
    DeleteRequestRead,
)
from app.services import delete_request_service
from app.services.delete_request_service import (
    DeleteRequestConflictError,
    DeleteRequestNotFoundError,
    DependenciesExistError,
)
from app.services.record_service import RecordNotFoundError

router = APIRouter(prefix="/delete-requests", tags=["delete-requests"])


@router.post(
    "",
    response_model=DeleteRequestRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_delete_request(
    data: DeleteRequestCreate,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return delete_request_service.create_delete_request(
            db,
            record_type=data.record_type,
            record_id=data.record_id,
            reason=data.reason,
            requester=user,
            action_type=data.action_type,
            dependencies_summary=data.dependencies_summary,
            user_consent=data.user_consent,
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DependenciesExistError as e:
        raise HTTPException(
            status_code=409,
            detail={
                "message": str(e),
                "requires_cascade": True,
                "dependency_counts": e.dependency_counts,
            },
        )
    except DeleteRequestConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/pending", response_model=list[DeleteRequestRead])
def list_pending(
    record_type: RecordType | None = None,
    _reviewer=Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    return delete_request_service.list_pending_requests(db, record_type=record_type)


@router.get("/by-record", response_model=DeleteRequestRead)
def get_by_record(
    record_type: RecordType,
    record_id: UUID,
    _user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Latest delete request for a record."""
    request = delete_request_service.get_by_record(db, record_id, record_type)
    if not request:
        raise HTTPException(status_code=404, detail="No delete request for this record")
    return request


@router.get("/{request_id}", response_model=DeleteRequestRead)
def get_delete_request(
    request_id: UUID,
    _user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    request = delete_request_service.get_delete_request(db, request_id)
    if not request:
        raise HTTPException(status_code=404, detail="Delete request not found")
    return request


@router.post(
    "/{request_id}/approve",
    response_model=DeleteRequestApproveResponse,
    dependencies=[Depends(require_csrf_header)],
)
def approve_delete_request(
    request_id: UUID,
    reviewer=Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    try:
        result = delete_request_service.approve_delete_request(db, request_id, reviewer)
    except DeleteRequestNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DeleteRequestConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return DeleteRequestApproveResponse(
        request=DeleteRequestRead.model_validate(result.request),
        auto_approved_ids=[r.id for r in result.auto_approved],
    )


@router.post(
    "/{request_id}/deny",
    response_model=DeleteRequestRead,
    dependencies=[Depends(require_csrf_header)],
)
def deny_delete_request(
    request_id: UUID,
    data: DeleteRequestDeny,
    reviewer=Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    try:
        return delete_request_service.deny_delete_request(
            db, request_id, reviewer, data.denial_reason
        )
    except DeleteRequestNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DeleteRequestConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
