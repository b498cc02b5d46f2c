"""Category classification and category-vote records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

POI_PREFIX = "poi_"


class CategoryActionType(Enum):
    """How clients act on a category.

    Only skippable categories can be reached through a category vote;
    point-of-interest categories mark a single moment and are never
    interchangeable with a skippable range.
    """

    SKIPPABLE = "skippable"
    POI = "poi"


def category_kind(category: str) -> CategoryActionType:
    """Classify a category by name."""
    if category.startswith(POI_PREFIX):
        return CategoryActionType.POI
    return CategoryActionType.SKIPPABLE


@dataclass(frozen=True)
class CategoryBallot:
    """A voter's active category vote on a segment.

    Attributes:
        segment_id: Segment voted on.
        user_id: Pseudonymous user id of the voter.
        category: Category the voter currently supports.
        hashed_ip: Hashed network address, "unknown" for seeded ballots.
        time_submitted: Epoch milliseconds of the last change.
    """

    segment_id: str
    user_id: str
    category: str
    hashed_ip: str
    time_submitted: int
