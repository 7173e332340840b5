"""API routers."""

from app.routers.delete_requests import router as delete_requests_router
from app.routers.internal import router as internal_router
from app.routers.records import router as records_router
from app.routers.transfers import router as transfers_router
from app.routers.unarchive_requests import router as unarchive_requests_router

__all__ = [
    "delete_requests_router",
    "internal_router",
    "records_router",
    "transfers_router",
    "unarchive_requests_router",
]
