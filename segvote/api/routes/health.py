"""Health check endpoint."""

from fastapi import APIRouter, Depends

from segvote.api.dependencies.vote import get_vote_store
from segvote.api.models.health import HealthResponse
from segvote.application.ports.vote_store import VoteStoreProtocol
from segvote.infrastructure.stubs.vote_store_stub import VoteStoreStub

router = APIRouter(prefix="/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    store: VoteStoreProtocol = Depends(get_vote_store),
) -> HealthResponse:
    """Return health status and the kind of vote store in use."""
    vote_store = "memory" if isinstance(store, VoteStoreStub) else "sql"
    return HealthResponse(status="healthy", vote_store=vote_store)
