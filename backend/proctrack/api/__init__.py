"""API routes."""

from .audit import router as audit_router
from .auth_routes import router as auth_router
from .browse import router as browse_router
from .locations import router as locations_router
from .records import router as records_router
from .status_changes import router as status_changes_router
from .users import router as users_router

__all__ = [
    "audit_router",
    "auth_router",
    "browse_router",
    "locations_router",
    "records_router",
    "status_changes_router",
    "users_router",
]
