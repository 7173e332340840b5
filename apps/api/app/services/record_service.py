"""Record service - creation and lookup of numbered records."""

import logging
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.enums import RecordStatus, RecordType
from app.db.models import HiringManager, Job, Lead, Organization, Placement, ReusableNumber
from app.schemas.record import RECORD_CREATE_SCHEMAS
from app.services import note_service, record_number_service
from app.services.record_registry import RECORD_MODELS, model_for, parse_record_type

logger = logging.getLogger(__name__)


class RecordServiceError(Exception):
    """Base exception for record service errors."""

    pass


class RecordNotFoundError(RecordServiceError):
    """Record not found."""

    pass


def _create_values(record_type: RecordType, data: BaseModel | dict) -> dict:
    schema = RECORD_CREATE_SCHEMAS[record_type]
    if not isinstance(data, schema):
        # pydantic.ValidationError is a ValueError
        data = schema.model_validate(data)
    return data.model_dump(exclude_unset=True)


def create_record(
    db: Session,
    record_type: RecordType | str,
    data: BaseModel | dict,
    user_id: UUID | None = None,
):
    """
    Create a record and give it a display number in the same transaction.

    data is the type's create schema (or a dict validated against it).
    Raises ValueError for invalid fields or a constraint violation such as
    an unknown foreign key. If the insert fails the allocation rolls back
    with it, so the number is never lost from the pool.
    """
    record_type = parse_record_type(record_type)
    model = model_for(record_type)
    values = _create_values(record_type, data)

    try:
        number = record_number_service.allocate_record_number(db, record_type)
        record = model(record_number=number, status=RecordStatus.ACTIVE.value, **values)
        db.add(record)
        db.flush()
        note_service.add_history(
            db,
            record_type,
            record.id,
            "created",
            {"record_number": number},
            actor_user_id=user_id,
        )
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ValueError(f"Invalid {record_type.value} record: {e.orig}") from e
    except Exception:
        db.rollback()
        raise

    db.refresh(record)
    logger.info(
        "Created %s %s (%s)",
        record_type.value,
        record.id,
        record_number_service.format_display_record_number(record_type, number),
    )
    return record


def get_record(
    db: Session,
    record_type: RecordType | str,
    record_id: UUID,
    *,
    lock: bool = False,
):
    """Get a record by id (archived included). Returns None if missing."""
    model = model_for(record_type)
    stmt = select(model).where(model.id == record_id)
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def require_record(
    db: Session,
    record_type: RecordType | str,
    record_id: UUID,
    *,
    lock: bool = False,
):
    """Get a record by id or raise RecordNotFoundError."""
    record = get_record(db, record_type, record_id, lock=lock)
    if not record:
        raise RecordNotFoundError(f"{parse_record_type(record_type).value} {record_id} not found")
    return record


def display_number(record_type: RecordType | str, record) -> str:
    return record_number_service.format_display_record_number(
        parse_record_type(record_type), record.record_number if record else None
    )


def _count_live(db: Session, model: type, *criteria) -> int:
    return db.execute(
        select(func.count())
        .select_from(model)
        .where(model.status != RecordStatus.ARCHIVED.value, *criteria)
    ).scalar_one()


def get_dependency_counts(db: Session, organization_id: UUID) -> dict[str, int]:
    """Count live records linked to an organization."""
    job_ids = select(Job.id).where(Job.organization_id == organization_id)
    return {
        "hiring_managers": _count_live(db, HiringManager, HiringManager.organization_id == organization_id),
        "jobs": _count_live(db, Job, Job.organization_id == organization_id),
        "leads": _count_live(db, Lead, Lead.organization_id == organization_id),
        "placements": _count_live(db, Placement, Placement.job_id.in_(job_ids)),
        "child_organizations": _count_live(
            db,
            Organization,
            Organization.parent_organization_id == organization_id,
            Organization.id != organization_id,
        ),
    }


def has_dependencies(counts: dict[str, int]) -> bool:
    return any(value > 0 for value in counts.values())


def sync_record_sequences(db: Session) -> dict[str, int]:
    """
    Align the number pool with record numbers already in the tables.

    For imported or restored rows: raises each module sequence to the
    highest number in use and drops pooled numbers that a row now holds.
    Returns the highest number per record type. Commits.
    """
    highest: dict[str, int] = {}
    try:
        for record_type, model in RECORD_MODELS.items():
            current = db.execute(select(func.max(model.record_number))).scalar_one() or 0
            if current:
                record_number_service.ensure_sequence_at_least(db, record_type, current)
            db.execute(
                delete(ReusableNumber)
                .where(
                    ReusableNumber.module_type == record_type.value,
                    ReusableNumber.number.in_(select(model.record_number)),
                )
                .execution_options(synchronize_session=False)
            )
            highest[record_type.value] = current
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Record sequences synced: %s", highest)
    return highest
