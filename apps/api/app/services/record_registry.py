"""Per-record-type metadata: ORM model and hard-delete cascade dependents."""

from __future__ import annotations

from dataclasses import dataclass

from app.db.enums import RecordType
from app.db.models import (
    HiringManager,
    Job,
    JobSeeker,
    Lead,
    Organization,
    Placement,
    Task,
)


RECORD_MODELS: dict[RecordType, type] = {
    RecordType.ORGANIZATION: Organization,
    RecordType.HIRING_MANAGER: HiringManager,
    RecordType.JOB: Job,
    RecordType.LEAD: Lead,
    RecordType.PLACEMENT: Placement,
    RecordType.TASK: Task,
    RecordType.JOB_SEEKER: JobSeeker,
}


@dataclass(frozen=True)
class CascadeDependent:
    """Child records hard-deleted together with their parent."""

    record_type: RecordType
    parent_column: str


# Parents are swept before their dependents (organizations first)
CASCADE_DEPENDENTS: dict[RecordType, tuple[CascadeDependent, ...]] = {
    RecordType.ORGANIZATION: (
        CascadeDependent(RecordType.HIRING_MANAGER, "organization_id"),
        CascadeDependent(RecordType.JOB, "organization_id"),
        CascadeDependent(RecordType.LEAD, "organization_id"),
    ),
    RecordType.JOB: (CascadeDependent(RecordType.PLACEMENT, "job_id"),),
    RecordType.JOB_SEEKER: (CascadeDependent(RecordType.PLACEMENT, "job_seeker_id"),),
}

SWEEP_ORDER: tuple[RecordType, ...] = (
    RecordType.ORGANIZATION,
    RecordType.JOB,
    RecordType.HIRING_MANAGER,
    RecordType.LEAD,
    RecordType.PLACEMENT,
    RecordType.TASK,
    RecordType.JOB_SEEKER,
)


def parse_record_type(value: str | RecordType) -> RecordType:
    """Return the RecordType for value or raise ValueError."""
    if isinstance(value, RecordType):
        return value
    if not RecordType.has_value(value):
        raise ValueError(f"Invalid record type: {value}")
    return RecordType(value)


def model_for(record_type: str | RecordType) -> type:
    return RECORD_MODELS[parse_record_type(record_type)]


def dependents_for(record_type: str | RecordType) -> tuple[CascadeDependent, ...]:
    return CASCADE_DEPENDENTS.get(parse_record_type(record_type), ())
