"""Delete, unarchive and transfer request enums."""

from enum import Enum


class DeleteRequestStatus(str, Enum):
    """
    Delete request states.

    pending -> approved | denied | expired. Expired rows are terminal; the
    expiry sweep spawns a fresh pending row in their place.
    """

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    EXPIRED = "expired"


class DeleteActionType(str, Enum):
    """Standard deletes only the record; cascade also archives linked records."""

    STANDARD = "standard"
    CASCADE = "cascade"


class TransferStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class UnarchiveRequestStatus(str, Enum):
    """pending -> approved (record restored to Active) | denied."""

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
