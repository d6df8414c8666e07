"""HRMS Leave — FastAPI Application Factory."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from hrms.common.exceptions import register_exception_handlers
from hrms.common.logging_config import configure_logging, log_requests
from hrms.common.rate_limit import limiter
from hrms.config import settings
from hrms.leave.router import router as leave_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="HRMS Leave",
        description="Leave applications, approval workflow and balance ledger",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request log
    app.middleware("http")(log_requests)

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    app.include_router(leave_router, prefix="/api/v1/leave", tags=["leave"])

    logger.info("HRMS Leave app created (environment=%s)", settings.ENVIRONMENT)
    return app


app = create_app()
