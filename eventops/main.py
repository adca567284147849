"""
FastAPI application with database pool and realtime broadcast lifecycle.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from eventops.config import settings
from eventops.db.pool import db_pool
from eventops.infrastructure.observability.logging import get_logger, setup_logging
from eventops.middleware.request_context import RequestContextMiddleware
from eventops.models.domain.context import MissingContextError
from eventops.routes import clients, cues, events, health
from eventops.services.realtime import broadcaster

setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown with proper resource management."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    startup_tasks = []

    try:
        await db_pool.initialize()
        startup_tasks.append("database_pool")

        await broadcaster.initialize()
        startup_tasks.append("realtime")

        logger.info("All services initialized successfully", services=startup_tasks)

    except Exception as e:
        logger.error("Failed to initialize services", error=str(e), completed_tasks=startup_tasks)
        if "database_pool" in startup_tasks:
            await db_pool.close()
        raise

    yield

    logger.info("Application shutting down")

    shutdown_errors = []

    try:
        await broadcaster.close()
    except Exception as e:
        logger.error("Error closing realtime broadcaster", error=str(e))
        shutdown_errors.append(f"Redis: {e}")

    try:
        await db_pool.close()
    except Exception as e:
        logger.error("Error closing database pool", error=str(e))
        shutdown_errors.append(f"Database: {e}")

    if shutdown_errors:
        logger.warning("Some services had shutdown errors", errors=shutdown_errors)
    else:
        logger.info("All services closed successfully")


app = FastAPI(
    title="Event Operations",
    description="Event bookings, CRM reconciliation and run-of-show cues",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)

app.include_router(health.router)
app.include_router(events.router)
app.include_router(cues.router)
app.include_router(clients.router)


@app.exception_handler(MissingContextError)
async def missing_context_handler(request: Request, exc: MissingContextError):
    logger.warning("Missing service context", path=request.url.path, missing=exc.missing)
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
