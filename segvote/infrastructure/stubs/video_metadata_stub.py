"""In-memory stub for VideoMetadataProtocol."""

from __future__ import annotations

from segvote.application.ports.video_metadata import VideoMetadata


class VideoMetadataStub:
    """Video metadata lookup over a dict keyed by video id."""

    def __init__(self) -> None:
        self._videos: dict[str, VideoMetadata] = {}
        self.lookups: list[str] = []

    def add_video(self, video: VideoMetadata) -> None:
        self._videos[video.video_id] = video

    async def get_video(self, video_id: str) -> VideoMetadata | None:
        self.lookups.append(video_id)
        return self._videos.get(video_id)
