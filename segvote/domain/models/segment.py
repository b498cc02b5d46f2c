"""Segment domain model.

A segment is a submitted time range on a video, labeled with a category
and subject to community voting. The engine never deletes segments; it
only adjusts their counters, category and lock flag.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_SERVICE = "YouTube"


@dataclass(frozen=True, eq=True)
class Segment:
    """A labeled time range within a video.

    Attributes:
        segment_id: Unique identifier (the submission UUID).
        video_id: Platform video identifier.
        category: Current category of the segment.
        user_id: Pseudonymous identifier of the submitter.
        votes: Signed score counter.
        incorrect_votes: Signed "completely incorrect" report counter.
        views: View counter (display only).
        locked: Moderator-endorsed; resists non-VIP erosion.
        hashed_video_id: Hash of the video id used by prefix lookups.
        service: Video platform the segment belongs to.
        time_submitted: Submission time, epoch milliseconds.
        start_time: Segment start, seconds.
        end_time: Segment end, seconds.
    """

    segment_id: str
    video_id: str
    category: str
    user_id: str
    votes: int = 0
    incorrect_votes: int = 1
    views: int = 0
    locked: bool = False
    hashed_video_id: str = ""
    service: str = DEFAULT_SERVICE
    time_submitted: int = 0
    start_time: float = 0.0
    end_time: float = field(default=0.0)

    def is_suppressed(self, threshold: int) -> bool:
        """Return True when the score has fallen to the hiding threshold."""
        return self.votes <= threshold
