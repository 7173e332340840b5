"""Note service - polymorphic notes, history and documents keyed by (entity_type, entity_id).

Child rows carry no typed foreign key, so nothing cascades in the database.
Every helper here takes a RecordType and callers enumerate the known types.
Functions flush but never commit; the caller owns the transaction.
"""

from uuid import UUID

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from app.db.enums import RecordType
from app.db.models import Document, Note, RecordHistory

CHILD_MODELS = (Note, RecordHistory, Document)


def _type_str(entity_type: RecordType | str) -> str:
    type_str = entity_type.value if isinstance(entity_type, RecordType) else entity_type
    if not RecordType.has_value(type_str):
        raise ValueError(f"Invalid entity type: {entity_type}")
    return type_str


def add_note(
    db: Session,
    entity_type: RecordType | str,
    entity_id: UUID,
    body: str,
    author_id: UUID | None = None,
) -> Note:
    """Attach a note to a record."""
    note = Note(
        entity_type=_type_str(entity_type),
        entity_id=entity_id,
        body=body,
        created_by_user_id=author_id,
    )
    db.add(note)
    db.flush()
    return note


def add_history(
    db: Session,
    entity_type: RecordType | str,
    entity_id: UUID,
    action: str,
    details: dict | None = None,
    actor_user_id: UUID | None = None,
) -> RecordHistory:
    """Append an audit entry for a record."""
    entry = RecordHistory(
        entity_type=_type_str(entity_type),
        entity_id=entity_id,
        action=action,
        details=details or {},
        performed_by_user_id=actor_user_id,
    )
    db.add(entry)
    db.flush()
    return entry


def list_notes(db: Session, entity_type: RecordType | str, entity_id: UUID) -> list[Note]:
    """List notes for a record, oldest first."""
    return (
        db.query(Note)
        .filter(Note.entity_type == _type_str(entity_type), Note.entity_id == entity_id)
        .order_by(Note.created_at, Note.id)
        .all()
    )


def list_history(
    db: Session, entity_type: RecordType | str, entity_id: UUID
) -> list[RecordHistory]:
    return (
        db.query(RecordHistory)
        .filter(
            RecordHistory.entity_type == _type_str(entity_type),
            RecordHistory.entity_id == entity_id,
        )
        .order_by(RecordHistory.created_at, RecordHistory.id)
        .all()
    )


def delete_children(db: Session, entity_type: RecordType | str, entity_ids: list[UUID]) -> None:
    """Hard-delete notes, history and documents of the given records."""
    if not entity_ids:
        return
    type_str = _type_str(entity_type)
    for model in CHILD_MODELS:
        db.execute(
            delete(model)
            .where(model.entity_type == type_str, model.entity_id.in_(entity_ids))
            .execution_options(synchronize_session=False)
        )


def move_children(
    db: Session,
    entity_type: RecordType | str,
    source_id: UUID,
    target_id: UUID,
    models: tuple = (Note, Document),
) -> dict[str, int]:
    """
    Re-point child rows from source to target. Returns moved counts per table.

    History stays with the source by default so its audit trail survives
    until the source is hard-deleted.
    """
    type_str = _type_str(entity_type)
    moved: dict[str, int] = {}
    for model in models:
        result = db.execute(
            update(model)
            .where(model.entity_type == type_str, model.entity_id == source_id)
            .values(entity_id=target_id)
            .execution_options(synchronize_session=False)
        )
        moved[model.__tablename__] = result.rowcount or 0
    return moved
