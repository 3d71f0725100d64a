"""Apna Freelancer Backend API - FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from .config import get_settings
from .database import USERS_TABLE, init_database
from .errors import register_error_handlers
from .logging_config import get_logger, setup_logging
from .rate_limit import limiter, rate_limit_exceeded_handler
from .routes import admin_router, auth_router, catalog_router

logger = get_logger("apna.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    settings = get_settings()
    setup_logging("DEBUG" if settings.debug else settings.log_level)
    init_database(app, settings)
    logger.info(f"Starting Apna Freelancer Backend API (debug={settings.debug})")
    yield
    # Shutdown
    logger.info("Shutting down Apna Freelancer Backend API")


app = FastAPI(
    title="Apna Freelancer Backend API",
    description="Marketplace listings and admin moderation",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

register_error_handlers(app)

# CORS middleware
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(catalog_router)
app.include_router(admin_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "service": "apna-freelancer-backend",
        "version": "0.1.0",
        "status": "ok",
    }


@app.get("/health")
async def health(request: Request):
    """Detailed health check with actual database verification."""
    db_status = "disconnected"
    if getattr(request.app.state, "db_initialized", False):
        try:
            request.app.state.supabase.table(USERS_TABLE).select("id").limit(1).execute()
            db_status = "connected"
        except Exception as e:
            logger.warning(f"Health check query failed: {type(e).__name__}")
            db_status = f"error: {str(e)[:50]}"

    overall_status = "healthy" if db_status == "connected" else "degraded"

    return {
        "status": overall_status,
        "database": db_status,
    }
