"""
Discovery Simulator - Main FastAPI Application
"""

import asyncio
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .config import settings
from .api import chat_router, scenarios_router, sessions_router
from .api.deps import build_services
from .core import StateCleaner
from .core.logging_config import setup_logging
from .middleware import RequestLoggingMiddleware

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging(settings)

    services = build_services(settings)
    seeded = await services.scenarios.seed_defaults()
    app.state.services = services
    logger.info(f"Scenario catalogue ready ({seeded} seeded)")

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Storage path: {settings.local_storage_path}")
    logger.info(f"Log level: {settings.log_level.upper()}")
    logger.info(f"LLM provider: {settings.llm_provider} ({settings.llm_primary_model})")
    if services.rate_limiter is not None:
        logger.info(
            f"Rate limit: {settings.rate_limit_max_requests} requests / "
            f"{settings.rate_limit_window_seconds:g}s ({settings.rate_limit_backend})"
        )
    # Background sweep of expired sessions and rate limit entries
    cleaner = StateCleaner(services.registry, services.rate_limiter)
    cleanup_task = asyncio.create_task(cleaner.run_periodic_cleanup(settings.cleanup_interval_seconds))

    yield
    # Shutdown
    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass
    services.registry.close_all()
    logger.info(f"Shutting down {settings.app_name}")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Role-play practice for discovery interviews with simulated clients",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Retry-After"],
)

# Add request logging middleware (after CORS)
if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(chat_router)
app.include_router(scenarios_router)
app.include_router(sessions_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "message": "Welcome to Discovery Simulator - practise your discovery calls"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "storage": settings.storage_type,
        "llm_configured": settings.resolved_llm_api_key is not None,
        "version": settings.app_version
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "discovery.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
