"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    User roles.

    - RECRUITER: Day-to-day record work, may request deletes/transfers
    - PAYROLL: Reviews delete and transfer requests
    - ADMIN: Business admin (also reviews requests)
    - DEVELOPER: Platform admin
    """

    RECRUITER = "recruiter"
    PAYROLL = "payroll"
    ADMIN = "admin"
    DEVELOPER = "developer"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


# Roles allowed to approve or deny delete/transfer requests
ROLES_CAN_REVIEW = frozenset({Role.PAYROLL, Role.ADMIN, Role.DEVELOPER})
