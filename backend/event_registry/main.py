"""
Event Registration API - Main Application Entry Point

Events with a fixed capacity and user registrations against them:
- Capacity-safe registration under concurrent load (per-event row lock)
- Distinct, stable error codes for every rejection cause
- Redis caching of the upcoming-events listing
- Structured logging with request correlation and Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from event_registry.core.config import get_settings
from event_registry.core.logging import setup_logging, get_logger
from event_registry.core.metrics import metrics_endpoint
from event_registry.api.errors import register_exception_handlers
from event_registry.api.router import api_router
from event_registry.api.middleware import RequestLoggingMiddleware
from event_registry.db.session import Database
from event_registry.services.cache_service import UpcomingEventsCache

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: the database and cache live exactly as long as the app."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    database = Database.from_settings(settings)
    if settings.DB_CREATE_TABLES:
        await database.create_all()
    app.state.db = database

    cache = await UpcomingEventsCache.connect(settings)
    if cache.enabled:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")
    app.state.cache = cache

    try:
        yield
    finally:
        await cache.close()
        await database.dispose()
        logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Event registration API with capacity-safe concurrent registrations",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)
app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint for Docker and load balancers."""
    cache: UpcomingEventsCache = request.app.state.cache
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": await cache.stats(),
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
