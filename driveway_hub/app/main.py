"""
FastAPI Application Entry Point.

This is the main application file for the Driveway Hub Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from driveway_hub.app.core.config import settings
from driveway_hub.app.api.router import router as api_router
from driveway_hub.app.db.session import Base, build_engine, build_session_factory
from driveway_hub.app.core.exceptions import register_exception_handlers
from driveway_hub.app.core.observability import ObservabilityMiddleware, configure_logging
from driveway_hub.app.core.redis_client import build_redis, ping_redis
from driveway_hub.app.services.tesla.client import TeslaClient, build_http_client
from driveway_hub.app.services.tesla.service import TeslaService
from driveway_hub.app.simulation.driver import DemoSimulation

# Import models to ensure they are registered with Base
from driveway_hub.app.models.user import User
from driveway_hub.app.models.vehicle import Vehicle
from driveway_hub.app.models.driveway import Driveway
from driveway_hub.app.models.booking import Booking
from driveway_hub.app.models.notification import Notification
from driveway_hub.app.models.dlq import DeadLetterQueue

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Builds the engine and creates database tables.
    2. Opens the Redis client, the Tesla HTTP client and the demo simulation.
    3. Closes everything on shutdown.
    """
    engine = build_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    http_client = build_http_client(settings)
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.redis = build_redis(settings)
    app.state.tesla_service = TeslaService(TeslaClient(http_client, settings), settings)
    app.state.demo_simulation = DemoSimulation(tick_seconds=settings.demo_tick_seconds)

    if not await ping_redis(app.state.redis):
        logger.warning("Redis is unreachable; logout and token revocation will fail")
    logger.info("%s %s started (%s)", settings.app_name, settings.api_version, settings.environment)

    yield

    await app.state.demo_simulation.stop()
    await http_client.aclose()
    await app.state.redis.aclose()
    await engine.dispose()
    logger.info("%s stopped", settings.app_name)


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Driveway parking marketplace with Tesla vehicle integration",
    lifespan=lifespan,
)

# Register global exception handlers
register_exception_handlers(app)

app.add_middleware(ObservabilityMiddleware)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API router
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Driveway Hub Backend API",
        "docs": "/docs",
        "health": "/health",
    }
