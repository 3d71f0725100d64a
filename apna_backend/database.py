"""Database utilities for Supabase integration.

The Supabase client is created once by the application lifespan and kept
on ``app.state``; request handlers receive it through the ``Database``
dependency.
"""

from typing import Annotated

from fastapi import Depends, FastAPI, Request

from supabase import Client, create_client

from .config import Settings
from .errors import StorageError
from .logging_config import get_logger

logger = get_logger("apna.database")


# =============================================================================
# Table Names
# =============================================================================

USERS_TABLE = "users"
SERVICES_TABLE = "services"
JOBS_TABLE = "jobs"
HIRE_REQUESTS_TABLE = "hire_requests"
ADMIN_ACTIONS_TABLE = "admin_actions"


def create_supabase_client(settings: Settings) -> Client:
    """Create a Supabase client with the backend (secret) key."""
    # Prefer new secret key, fall back to legacy service_role_key
    api_key = settings.supabase_secret_key or settings.supabase_service_role_key
    if not api_key:
        raise ValueError("Either SUPABASE_SECRET_KEY or SUPABASE_SERVICE_ROLE_KEY must be set")
    return create_client(settings.supabase_url, api_key)


def init_database(app: FastAPI, settings: Settings) -> Client:
    """Create the Supabase client for this application, once.

    Called from the lifespan hook. Subsequent calls return the existing
    client.
    """
    if getattr(app.state, "db_initialized", False):
        return app.state.supabase
    app.state.supabase = create_supabase_client(settings)
    app.state.db_initialized = True
    logger.info("Supabase client initialized")
    return app.state.supabase


def get_db(request: Request) -> Client:
    """FastAPI dependency for the Supabase client."""
    if not getattr(request.app.state, "db_initialized", False):
        raise StorageError("connect to the database", "Database is not initialized")
    return request.app.state.supabase


# Type alias for dependency injection
Database = Annotated[Client, Depends(get_db)]
