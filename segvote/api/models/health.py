"""Health check response models."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: Health status string (e.g., "healthy").
        vote_store: Which vote store backs the service ("sql" or "memory").
    """

    status: str
    vote_store: str
