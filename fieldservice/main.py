"""Field Service Core — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fieldservice.adapters.persistence.database import engine
from fieldservice.config import settings
from fieldservice.infrastructure.api.errors import register_error_handlers
from fieldservice.infrastructure.api.routes_attendance import router as attendance_router
from fieldservice.infrastructure.api.routes_health import router as health_router
from fieldservice.infrastructure.api.routes_tickets import router as tickets_router
from fieldservice.infrastructure.scheduler import create_scheduler

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except Exception as e:
        logger.warning("Database not available on startup: %s", e)

    scheduler = create_scheduler()
    scheduler.start()
    app.state.scheduler = scheduler
    yield
    scheduler.shutdown(wait=False)
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Field Service Core",
        description="Ticket lifecycle, engineer assignment and attendance tracking",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(health_router, prefix="/api")
    app.include_router(tickets_router, prefix="/api")
    app.include_router(attendance_router, prefix="/api")

    return app


app = create_app()
