"""FastAPI application entry point for segvote."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from segvote.api.middleware.logging_middleware import LoggingMiddleware
from segvote.api.middleware.metrics_middleware import MetricsMiddleware
from segvote.api.routes.health import router as health_router
from segvote.api.routes.metrics import router as metrics_router
from segvote.api.routes.vote import router as vote_router
from segvote.api.startup import (
    configure_logging,
    ensure_schema,
    record_service_startup,
    shutdown,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    await ensure_schema()
    record_service_startup()
    yield
    await shutdown()


app = FastAPI(
    title="segvote",
    description="Segment vote resolution and score adjustment",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(MetricsMiddleware)
app.add_middleware(LoggingMiddleware)

app.include_router(health_router)
app.include_router(metrics_router)
app.include_router(vote_router)
