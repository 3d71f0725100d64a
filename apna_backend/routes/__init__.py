"""API routes."""

from .admin import router as admin_router
from .auth import router as auth_router
from .catalog import router as catalog_router

__all__ = [
    "admin_router",
    "auth_router",
    "catalog_router",
]
