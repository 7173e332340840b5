"""
Internal endpoints for scheduled/cron operations.

Protected by "Authorization: Bearer <CRON_SECRET>".
Call from an external scheduler (Vercel cron, GH Actions, crontab).
"""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel

from app.core.config import settings
from app.core.deps import get_session_factory
from app.core.security import bearer_matches
from app.services import archive_service, delete_request_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal/scheduled", tags=["internal"])


def verify_cron_secret(authorization: str | None = Header(default=None)) -> None:
    """Verify the scheduler bearer secret."""
    if not settings.CRON_SECRET:
        raise HTTPException(status_code=501, detail="CRON_SECRET not configured")
    if not bearer_matches(authorization, settings.CRON_SECRET):
        raise HTTPException(status_code=401, detail="Unauthorized")


class ArchiveCleanupResponse(BaseModel):
    success: bool
    deleted: dict[str, int]
    total_deleted: int


@router.post(
    "/archive-cleanup",
    response_model=ArchiveCleanupResponse,
    dependencies=[Depends(verify_cron_secret)],
)
def archive_cleanup(session_factory=Depends(get_session_factory)):
    """
    Daily sweep: hard-delete records archived longer than the grace period.

    Runs as one transaction; on failure nothing is deleted and 500 is returned.
    """
    try:
        deleted = archive_service.run_archive_cleanup(session_factory)
    except Exception:
        logger.exception("Archive cleanup endpoint failed")
        raise HTTPException(status_code=500, detail="Archive cleanup failed")
    return ArchiveCleanupResponse(success=True, deleted=deleted, total_deleted=sum(deleted.values()))


class DeleteRequestExpiryResponse(BaseModel):
    success: bool
    processed: int
    results: list[dict]


@router.post(
    "/delete-request-expiry",
    response_model=DeleteRequestExpiryResponse,
    dependencies=[Depends(verify_cron_secret)],
)
def delete_request_expiry(session_factory=Depends(get_session_factory)):
    """
    Hourly sweep: expire stale pending delete requests and open replacements.

    Per-request failures are reported in results and do not fail the sweep.
    """
    summary = delete_request_service.run_delete_request_expiry_sweep(session_factory)
    return DeleteRequestExpiryResponse(success=True, **summary)
