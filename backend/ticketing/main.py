"""
Ticket Inventory API - Main Application Entry Point

A small ticket inventory service demonstrating:
- Oversell-proof purchases with a per-ticket exclusive lock held for one transaction
- Idempotent table bootstrap on startup
- Structured logging with request correlation
- Redis caching of ticket listings with invalidation on writes
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, status
from fastapi.responses import JSONResponse

from ticketing.api.deps import get_store
from ticketing.api.errors import register_exception_handlers
from ticketing.api.middleware import RequestLoggingMiddleware
from ticketing.api.router import api_router
from ticketing.core.config import get_settings
from ticketing.core.errors import StorageError
from ticketing.core.logging import get_logger, setup_logging
from ticketing.core.metrics import metrics_endpoint
from ticketing.db.session import create_engine, create_tables
from ticketing.services.cache_service import close_redis, get_cache_stats, get_redis
from ticketing.store import InventoryStore

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        lock_mode=settings.TICKET_LOCK_MODE,
    )

    engine = create_engine(settings.database_url, settings)
    store = InventoryStore(engine, lock_mode=settings.TICKET_LOCK_MODE)
    # Fail startup if the database is unreachable
    await store.ping()
    logger.info("database_ready")

    if settings.DB_CREATE_TABLES:
        await create_tables(engine)

    app.state.store = store

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    yield

    await close_redis()
    await store.close()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Ticket inventory API with allocation-safe purchases",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check(store: InventoryStore = Depends(get_store)):
    """Health check endpoint for Docker and load balancers."""
    try:
        await store.ping()
        database = "connected"
    except StorageError:
        database = "unreachable"

    body = {
        "status": "healthy" if database == "connected" else "degraded",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": database,
        "cache": await get_cache_stats(),
    }
    code = status.HTTP_200_OK if database == "connected" else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=body)


@app.get("/metrics", tags=["Health"], include_in_schema=False)
def metrics():
    return metrics_endpoint()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run(
        "ticketing.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
