"""
Reusable display record numbers (e.g. T-15, J-4).

- record_number is for display only; all lookups go through the UUID id.
- Numbers are released back to the pool only on HARD delete, never on archive.
- Both operations run on the caller's Session inside the caller's open
  transaction and never commit. Concurrency safety comes from the row lock
  on the pool entry and the atomic sequence upsert.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select, text
from sqlalchemy.orm import Session

from app.db.enums import RECORD_NUMBER_PREFIXES, RecordType
from app.db.models import ReusableNumber

logger = logging.getLogger(__name__)


class RecordNumberError(Exception):
    """Base exception for record number errors."""

    pass


class UnknownModuleError(RecordNumberError, ValueError):
    """module_type is not one of the numbered record types."""

    pass


def validate_module(module_type: str | RecordType) -> str:
    """Return the module_type string, raising UnknownModuleError if invalid."""
    value = module_type.value if isinstance(module_type, RecordType) else module_type
    if not isinstance(value, str) or not RecordType.has_value(value):
        allowed = ", ".join(t.value for t in RecordType)
        raise UnknownModuleError(
            f"Invalid module_type for record number: {module_type}. Allowed: {allowed}"
        )
    return value


def allocate_record_number(db: Session, module_type: str | RecordType) -> int:
    """
    Allocate the next record_number for a module.

    Takes the smallest released number first (row-locked so two concurrent
    transactions cannot take the same entry), otherwise advances the module
    sequence. A module without a sequence row starts at 1.
    """
    module = validate_module(module_type)

    reusable = db.execute(
        select(ReusableNumber.number)
        .where(ReusableNumber.module_type == module)
        .order_by(ReusableNumber.number)
        .limit(1)
        .with_for_update()
    ).scalar_one_or_none()

    if reusable is not None:
        db.execute(
            delete(ReusableNumber).where(
                ReusableNumber.module_type == module,
                ReusableNumber.number == reusable,
            )
        )
        return reusable

    result = db.execute(
        text("""
            INSERT INTO module_sequences (module_type, current_value)
            VALUES (:module_type, 1)
            ON CONFLICT (module_type)
            DO UPDATE SET current_value = module_sequences.current_value + 1,
                          updated_at = CURRENT_TIMESTAMP
            RETURNING current_value
        """),
        {"module_type": module},
    ).scalar_one_or_none()
    if result is None:
        raise RecordNumberError(f"Failed to allocate record number for {module}")
    return int(result)


def release_record_number(db: Session, module_type: str | RecordType, number) -> None:
    """
    Return a number to the pool after a hard delete.

    Idempotent. None, non-integer and < 1 values are ignored.
    """
    module = validate_module(module_type)
    try:
        num = int(number)
    except (TypeError, ValueError):
        return
    if num < 1:
        return

    db.execute(
        text("""
            INSERT INTO reusable_numbers (module_type, number)
            VALUES (:module_type, :number)
            ON CONFLICT DO NOTHING
        """),
        {"module_type": module, "number": num},
    )


def ensure_sequence_at_least(db: Session, module_type: str | RecordType, value: int) -> None:
    """
    Raise the module sequence so the next allocation is above `value`.

    Used after importing or backfilling records that already carry numbers.
    Never lowers the sequence.
    """
    module = validate_module(module_type)
    db.execute(
        text("""
            INSERT INTO module_sequences (module_type, current_value)
            VALUES (:module_type, :value)
            ON CONFLICT (module_type)
            DO UPDATE SET current_value = CASE
                    WHEN module_sequences.current_value < :value THEN :value
                    ELSE module_sequences.current_value
                END,
                updated_at = CURRENT_TIMESTAMP
        """),
        {"module_type": module, "value": int(value)},
    )


def format_display_record_number(module_type: str | RecordType, record_number: int | None) -> str:
    """Display string: prefix + '-' + record_number (e.g. O-42). Empty for None."""
    if record_number is None:
        return ""
    value = module_type.value if isinstance(module_type, RecordType) else module_type
    prefix = value
    if RecordType.has_value(value):
        prefix = RECORD_NUMBER_PREFIXES[RecordType(value)]
    return f"{prefix}-{record_number}"
