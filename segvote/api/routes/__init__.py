"""API routes."""

from segvote.api.routes.health import router as health_router
from segvote.api.routes.metrics import router as metrics_router
from segvote.api.routes.vote import router as vote_router

__all__: list[str] = ["health_router", "metrics_router", "vote_router"]
