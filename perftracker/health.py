"""Health check endpoints for monitoring and readiness probes."""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Response
from fastapi.responses import JSONResponse

from perftracker.context import AppContext
from perftracker.logging_config import get_logger

log = get_logger(__name__)


def create_app(ctx: AppContext, start_time: Optional[float] = None, close_on_shutdown: bool = False) -> FastAPI:
    """Build the probe app around an already constructed context."""
    started = time.time() if start_time is None else start_time

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if close_on_shutdown:
            log.info("Shutting down, draining background writes...")
            await ctx.close()

    app = FastAPI(title="Performance Tracker Health Check", lifespan=lifespan)

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """
        Basic health check endpoint.

        Returns:
            JSON with status, uptime and outstanding background writes
        """
        return JSONResponse({
            "status": "healthy",
            "uptime_seconds": int(time.time() - started),
            "pending_writes": ctx.background.pending,
            "service": "perftracker",
        })

    @app.get("/readiness")
    async def readiness_check() -> Response:
        """
        Readiness probe.

        Returns:
            200 if Redis and the database both answer
            503 otherwise
        """
        redis_ok = await ctx.cache.ping()
        db_ok = await ctx.store.ping()
        if redis_ok and db_ok:
            return Response(status_code=200, content="Ready")
        return Response(status_code=503, content=f"Not ready: redis={redis_ok} db={db_ok}")

    @app.get("/liveness")
    async def liveness_check() -> Response:
        """
        Kubernetes-style liveness probe.

        Returns:
            200 if service is alive
        """
        return Response(status_code=200, content="Alive")

    return app


if __name__ == "__main__":
    import uvicorn

    from perftracker.config import get_settings
    from perftracker.logging_config import setup_logging

    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    uvicorn.run(
        create_app(AppContext.create(settings), close_on_shutdown=True),
        host="0.0.0.0",
        port=8000,
    )
