"""Scheduled task enums."""

from enum import Enum


class ScheduledTaskType(str, Enum):
    """Types of scheduling records written for the sweeps."""

    ARCHIVE_CLEANUP = "archive_cleanup"  # Hard delete after grace period


class ScheduledTaskStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"  # record was restored before the sweep
