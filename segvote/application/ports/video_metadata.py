"""Video metadata protocol.

Used only to enrich notifications with a title and thumbnail.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class VideoMetadata:
    """Display metadata of a video.

    Attributes:
        video_id: Platform video id.
        title: Video title.
        thumbnail_url: Highest resolution thumbnail, empty if none.
    """

    video_id: str
    title: str
    thumbnail_url: str = ""

    @property
    def watch_url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.video_id}"


class VideoMetadataProtocol(Protocol):
    """Lookup of video display metadata."""

    @abstractmethod
    async def get_video(self, video_id: str) -> VideoMetadata | None:
        """Get metadata for a video.

        Returns:
            VideoMetadata, or None when the video is unknown or the
            lookup failed.
        """
        ...
