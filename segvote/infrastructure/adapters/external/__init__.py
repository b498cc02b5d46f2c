"""External service adapters."""

from segvote.infrastructure.adapters.external.youtube_metadata_adapter import (
    YouTubeMetadataAdapter,
)

__all__ = ["YouTubeMetadataAdapter"]
