"""Leave Desk — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.auth.router import router as auth_router
from backend.common.exceptions import register_exception_handlers
from backend.common.log_config import configure_logging
from backend.common.rate_limit import limiter
from backend.config import settings
from backend.dashboard.router import router as dashboard_router
from backend.database import engine, get_db
from backend.leave.router import router as leave_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    configure_logging()
    logger.info("Leave Desk starting (%s)", settings.ENVIRONMENT)
    yield
    await engine.dispose()
    logger.info("Leave Desk stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Leave Desk",
        description="Leave requests, approvals, and the approved-leave calendar",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
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

    # Health check (no auth); reports whether the leave store answers
    @app.get("/api/v1/health", tags=["system"])
    async def health_check(db: AsyncSession = Depends(get_db)):
        try:
            await db.execute(text("SELECT 1"))
            store = "ok"
        except SQLAlchemyError as exc:
            logger.warning("Health check: leave store unreachable: %s", exc)
            await db.rollback()
            store = "unavailable"
        return {
            "status": "healthy" if store == "ok" else "degraded",
            "store": store,
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(leave_router, prefix="/api/v1/leave", tags=["leave"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["dashboard"])

    return app


app = create_app()
