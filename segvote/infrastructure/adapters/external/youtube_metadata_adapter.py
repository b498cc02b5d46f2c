"""YouTube Data API v3 implementation of VideoMetadataProtocol.

Only the snippet (title, thumbnails) is requested. Failures are logged
and reported as None; metadata only decorates notifications.
"""

from __future__ import annotations

from typing import Any

import httpx
from structlog import get_logger

from segvote.application.ports.video_metadata import VideoMetadata

logger = get_logger(__name__)

YOUTUBE_VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"


class YouTubeMetadataAdapter:
    """Looks up video titles and thumbnails."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize adapter.

        Args:
            api_key: YouTube Data API key.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests).
        """
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def get_video(self, video_id: str) -> VideoMetadata | None:
        log = logger.bind(video_id=video_id)
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    YOUTUBE_VIDEOS_URL,
                    params={"part": "snippet", "id": video_id, "key": self._api_key},
                    timeout=self._timeout,
                )
                response.raise_for_status()
                data: dict[str, Any] = response.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning("youtube_lookup_failed", error=str(e))
            return None

        items = data.get("items") or []
        if not items:
            log.debug("youtube_video_not_found")
            return None

        snippet = items[0].get("snippet", {})
        maxres = snippet.get("thumbnails", {}).get("maxres")
        return VideoMetadata(
            video_id=video_id,
            title=snippet.get("title", ""),
            thumbnail_url=maxres["url"] if maxres else "",
        )
