"""Pydantic schemas for API request/response models."""

from app.schemas.delete_request import (
    DeleteRequestApproveResponse,
    DeleteRequestCreate,
    DeleteRequestDeny,
    DeleteRequestRead,
)
from app.schemas.record import (
    RECORD_CREATE_SCHEMAS,
    DependencyCounts,
    HiringManagerCreate,
    JobCreate,
    JobSeekerCreate,
    LeadCreate,
    OrganizationCreate,
    PlacementCreate,
    RecordCreate,
    RecordRead,
    TaskCreate,
)
from app.schemas.transfer import TransferCreate, TransferDeny, TransferRead
from app.schemas.unarchive_request import (
    UnarchiveRequestCreate,
    UnarchiveRequestDeny,
    UnarchiveRequestRead,
)

__all__ = [
    # Records
    "RecordCreate",
    "RecordRead",
    "RECORD_CREATE_SCHEMAS",
    "OrganizationCreate",
    "HiringManagerCreate",
    "JobCreate",
    "LeadCreate",
    "JobSeekerCreate",
    "PlacementCreate",
    "TaskCreate",
    "DependencyCounts",
    # Delete requests
    "DeleteRequestCreate",
    "DeleteRequestDeny",
    "DeleteRequestRead",
    "DeleteRequestApproveResponse",
    # Transfers
    "TransferCreate",
    "TransferDeny",
    "TransferRead",
    # Unarchive requests
    "UnarchiveRequestCreate",
    "UnarchiveRequestDeny",
    "UnarchiveRequestRead",
]
