"""Record-related enums (record types, lifecycle statuses)."""

from enum import Enum


class RecordType(str, Enum):
    """
    Record types that carry a reusable display record number.

    Also the registry of valid entity_type values for polymorphic
    child rows (notes, history, documents).
    """

    ORGANIZATION = "organization"
    HIRING_MANAGER = "hiring_manager"
    JOB = "job"
    LEAD = "lead"
    PLACEMENT = "placement"
    TASK = "task"
    JOB_SEEKER = "job_seeker"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid record type."""
        return value in cls._value2member_map_

    @property
    def prefix(self) -> str:
        return RECORD_NUMBER_PREFIXES[self]


RECORD_NUMBER_PREFIXES: dict[RecordType, str] = {
    RecordType.TASK: "T",
    RecordType.JOB: "J",
    RecordType.ORGANIZATION: "O",
    RecordType.HIRING_MANAGER: "HM",
    RecordType.LEAD: "L",
    RecordType.PLACEMENT: "P",
    RecordType.JOB_SEEKER: "JS",
}


class RecordStatus(str, Enum):
    """Lifecycle status shared by all numbered records."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    ARCHIVED = "Archived"


class ArchiveReason(str, Enum):
    """Why a record was archived."""

    DELETION = "Deletion"
    CASCADE_DELETION = "Cascade Deletion"
    TRANSFER = "Transfer"
