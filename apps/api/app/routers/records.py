"""Records router - create and read numbered records."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db, require_csrf_header
from app.db.enums import RecordType
from app.schemas.record import RECORD_CREATE_SCHEMAS, DependencyCounts, RecordCreate, RecordRead
from app.services import record_service
from app.services.record_number_service import RecordNumberError

router = APIRouter(prefix="/records", tags=["records"], dependencies=[Depends(get_current_user)])


def to_record_read(record_type: RecordType, record) -> RecordRead:
    return RecordRead(
        id=record.id,
        record_type=record_type.value,
        record_number=record.record_number,
        display_record_number=record_service.display_number(record_type, record),
        status=record.status,
        archived_at=record.archived_at,
        archive_reason=record.archive_reason,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


@router.post(
    "/{record_type}",
    response_model=RecordRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_record(
    record_type: RecordType,
    data: RecordCreate,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a record; its display number is allocated in the same transaction."""
    try:
        payload = RECORD_CREATE_SCHEMAS[record_type].model_validate(data.fields)
    except ValidationError as e:
        raise HTTPException(
            status_code=422, detail=e.errors(include_url=False, include_context=False)
        )
    try:
        record = record_service.create_record(db, record_type, payload, user_id=user.id)
    except RecordNumberError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return to_record_read(record_type, record)


@router.get("/organization/{organization_id}/dependencies", response_model=DependencyCounts)
def get_organization_dependencies(organization_id: UUID, db: Session = Depends(get_db)):
    """Live records linked to an organization (shown before a delete request)."""
    if not record_service.get_record(db, RecordType.ORGANIZATION, organization_id):
        raise HTTPException(status_code=404, detail="Organization not found")
    return DependencyCounts(**record_service.get_dependency_counts(db, organization_id))


@router.get("/{record_type}/{record_id}", response_model=RecordRead)
def get_record(record_type: RecordType, record_id: UUID, db: Session = Depends(get_db)):
    record = record_service.get_record(db, record_type, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Record not found")
    return to_record_read(record_type, record)
