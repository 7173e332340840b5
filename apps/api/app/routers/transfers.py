"""Transfers router - merge one record into another."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db, require_csrf_header, require_reviewer
from app.schemas.transfer import TransferCreate, TransferDeny, TransferRead
from app.services import transfer_service
from app.services.record_service import RecordNotFoundError
from app.services.transfer_service import (
    TransferConflictError,
    TransferNotFoundError,
    TransferRecordMissingError,
)

router = APIRouter(prefix="/transfers", tags=["transfers"])


@router.post(
    "",
    response_model=TransferRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_transfer(
    data: TransferCreate,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return transfer_service.create_transfer_request(
            db, data.record_type, data.source_id, data.target_id, requester=user
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransferConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{transfer_id}", response_model=TransferRead)
def get_transfer(
    transfer_id: UUID,
    _user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    transfer = transfer_service.get_transfer_request(db, transfer_id)
    if not transfer:
        raise HTTPException(status_code=404, detail="Transfer request not found")
    return transfer


@router.post(
    "/{transfer_id}/approve",
    response_model=TransferRead,
    dependencies=[Depends(require_csrf_header)],
)
def approve_transfer(
    transfer_id: UUID,
    reviewer=Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    """Approve and execute; any failure leaves the request pending and data untouched."""
    try:
        return transfer_service.approve_transfer_request(db, transfer_id, reviewer)
    except TransferNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransferRecordMissingError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except TransferConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post(
    "/{transfer_id}/deny",
    response_model=TransferRead,
    dependencies=[Depends(require_csrf_header)],
)
def deny_transfer(
    transfer_id: UUID,
    data: TransferDeny,
    reviewer=Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    try:
        return transfer_service.deny_transfer_request(db, transfer_id, reviewer, data.denial_reason)
    except TransferNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransferConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
