"""Main FastAPI application."""

import logging
import re
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .api import (
    audit_router,
    auth_router,
    browse_router,
    locations_router,
    records_router,
    status_changes_router,
    users_router,
)
from .core.change_feed import ChangeFeed
from .core.config import ConfigurationError, Environment, settings
from .core.logging_config import setup_logging
from .core.seeder import seed_primordial_admin
from .database import DATABASE_URL, SessionLocal, engine, get_db, init_db, is_postgresql
from .exceptions import ProcTrackException
from .middleware.exception_handler import proctrack_exception_handler
from .middleware.request_context import RequestContextMiddleware
from .repositories import RecordRepository
from .services import audit_service
from .services.read_model import ReadModel, publish_all
from .services.transitions import PendingActionRegistry

# Setup logging first
setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def _mask_url(url: str) -> str:
    """Mask the password in a database URL for logging."""
    return re.sub(r'://([^:]+):([^@]+)@', r'://\1:***@', url)


def _validate_database_connection() -> None:
    """Fail fast with an actionable message when the database is unreachable."""
    masked = _mask_url(DATABASE_URL)
    logger.info(f"Connecting to database: {masked}")
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        if is_postgresql():
            hint = "Check that PostgreSQL is running and DATABASE_URL is correct."
        else:
            hint = "Check that the database directory exists and is writable."
        logger.critical(f"Database connection failed.\n  DATABASE_URL: {masked}\n  {hint}\n  Error: {e}")
        raise SystemExit(1) from e
    logger.info("Database connection verified")


def _warn_insecure_development_settings() -> None:
    if settings.jwt_secret_key == "dev-insecure-key-change-me":
        if settings.auth_enabled:
            logger.critical(
                "SECURITY: AUTH_ENABLED=true but JWT_SECRET_KEY is the default. "
                "Anyone can forge tokens. Generate a secure key: openssl rand -hex 32"
            )
        else:
            logger.warning("SECURITY: JWT_SECRET_KEY is the default. Set a secure key before enabling auth.")
    if not settings.auth_enabled:
        logger.warning(
            "SECURITY: Authentication is disabled (AUTH_ENABLED=false). "
            "Every request runs as an anonymous admin."
        )
    if settings.admin_initial_password == "Admin@1234":
        logger.warning("SECURITY: ADMIN_INITIAL_PASSWORD is the default. Change it after first login.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle for the ProcTrack API."""
    # --- Security validation ---
    logger.info(f"Environment: {settings.environment.value}")
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical(f"STARTUP BLOCKED: {e}")
        raise SystemExit(1) from e
    if settings.environment == Environment.DEVELOPMENT:
        _warn_insecure_development_settings()

    # --- Schema ---
    _validate_database_connection()
    init_db()

    db = SessionLocal()
    try:
        # --- Primordial admin ---
        try:
            seed_primordial_admin(db)
        except SQLAlchemyError as e:
            logger.error(f"Admin seeding failed (non-fatal): {e}")

        # --- Purge old audit logs ---
        purged = audit_service.purge_old_entries(db, days=settings.audit_retention_days)
        if purged > 0:
            logger.info(f"Purged {purged} audit log entries older than {settings.audit_retention_days} days")

        # --- Read model ---
        feed = ChangeFeed()
        read_model = ReadModel()
        detach = read_model.attach(feed)
        app.state.change_feed = feed
        app.state.read_model = read_model
        app.state.pending_actions = PendingActionRegistry(settings.pending_action_ttl_seconds)
        publish_all(db, feed)
        logger.info("Read model primed", extra={"records": len(read_model.records)})
    finally:
        db.close()

    yield  # App runs here

    detach()


app = FastAPI(
    title="ProcTrack API",
    description=(
        "REST API for tracking physical procurement records across shelves, "
        "cabinets and folders: stack positions, borrow/return, exports and "
        "user management.\n\n"
        "**Authentication:** When `AUTH_ENABLED=true`, every `/api` endpoint except "
        "login requires a `Bearer` token. When `AUTH_ENABLED=false` (default), "
        "requests run as an anonymous admin."
    ),
    version=VERSION,
    lifespan=lifespan,
)

# Middleware stack (outermost first; CORS wraps request context).
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)
app.add_middleware(RequestContextMiddleware)

app.add_exception_handler(ProcTrackException, proctrack_exception_handler)

logger.info(
    "ProcTrack API started | env=%s | db=%s | auth=%s | cors=%s",
    settings.environment.value,
    "PostgreSQL" if is_postgresql() else "SQLite",
    "enabled" if settings.auth_enabled else "disabled",
    ",".join(settings.get_cors_origins()),
)

app.include_router(auth_router)
app.include_router(locations_router)
app.include_router(records_router)
app.include_router(status_changes_router)
app.include_router(browse_router)
app.include_router(users_router)
app.include_router(audit_router)


@app.get("/")
def root():
    """Root endpoint."""
    return {"name": "ProcTrack API", "version": VERSION, "status": "running"}


_startup_time = time.monotonic()


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Database status, uptime and record count.

    Never raises: a database failure reports "degraded" so probes still get
    a 200.
    """
    db_status = "ok"
    record_count = 0
    try:
        db.execute(text("SELECT 1"))
        record_count = RecordRepository(db).count()
    except SQLAlchemyError as e:
        logger.warning(f"Health check database failure: {e}")
        db_status = "error"

    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "db": db_status,
        "uptime_seconds": round(time.monotonic() - _startup_time),
        "version": VERSION,
        "record_count": record_count,
    }
