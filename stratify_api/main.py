from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging

from .application.ports.email_sender import EmailSender
from .application.services.secret_hasher import SecretHasher
from .core.config import Settings, get_settings
from .database import build_engine, create_db_and_tables
from .exceptions import AuthError, auth_error_handler, http_exception_handler, validation_exception_handler
from .infrastructure.clock.system_clock import SystemClock
from .infrastructure.email.console_sender import ConsoleEmailSender
from .infrastructure.email.resend_sender import ResendEmailSender
from .middleware import SecurityMiddleware, LoggingMiddleware, ErrorHandlingMiddleware, RequestSizeLimitMiddleware
from .routers import auth_router, conversations_router

logger = logging.getLogger(__name__)


def build_email_sender(settings: Settings) -> EmailSender:
    backend = settings.EMAIL_BACKEND.lower()
    if backend == "console":
        if settings.is_production:
            logger.warning("Console email backend in production, codes will only be logged")
        return ConsoleEmailSender()
    if backend == "resend":
        if not settings.RESEND_API_KEY or not settings.RESEND_FROM_EMAIL:
            logger.warning("RESEND_API_KEY or RESEND_FROM_EMAIL missing, code delivery will fail")
        return ResendEmailSender(
            api_key=settings.RESEND_API_KEY,
            from_email=settings.RESEND_FROM_EMAIL,
            from_name=settings.RESEND_FROM_NAME,
            api_url=settings.RESEND_API_URL,
            ttl_minutes=settings.OTP_TTL_MINUTES,
            timeout_seconds=settings.RESEND_TIMEOUT_SECONDS,
        )
    raise ValueError(f"Unknown EMAIL_BACKEND: {settings.EMAIL_BACKEND}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {app.state.settings.APP_NAME}...")
    app.state.db_init_ok = True
    app.state.db_init_error = None
    try:
        create_db_and_tables(app.state.engine)
        logger.info("Database initialized successfully")
    except SQLAlchemyError as e:
        # Do not crash the app; report via health endpoint
        app.state.db_init_ok = False
        app.state.db_init_error = str(e)
        logger.exception("Database initialization failed")
    yield
    # Shutdown
    app.state.engine.dispose()
    logger.info(f"Shutting down {app.state.settings.APP_NAME}...")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT
    )

    # Refuses to start without AUTH_SECRET
    hasher = SecretHasher(settings.AUTH_SECRET)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url=("/docs" if settings.DOCS_ENABLED else None),
        redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
        openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
    )

    app.state.settings = settings
    app.state.hasher = hasher
    app.state.engine = build_engine(settings)
    app.state.email_sender = build_email_sender(settings)
    app.state.clock = SystemClock()

    # Exception handlers
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Add middleware
    app.add_middleware(ErrorHandlingMiddleware, debug=settings.DEBUG)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(SecurityMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.MAX_REQUEST_BYTES)

    # GZip compression
    app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MIN_SIZE)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router.router)
    app.include_router(conversations_router.router)

    @app.get("/health")
    def health_check():
        db_ok = getattr(app.state, "db_init_ok", True)
        try:
            with app.state.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.warning(f"Health check database probe failed: {e}")
            db_ok = False
        return {
            "status": "healthy" if db_ok else "degraded",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.ENVIRONMENT,
            "database": "ok" if db_ok else "unavailable",
            "database_error": getattr(app.state, "db_init_error", None),
            "auth_secret_configured": bool(settings.AUTH_SECRET),
            "email_backend": settings.EMAIL_BACKEND,
        }

    return app
