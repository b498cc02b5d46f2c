"""Vote notification dispatcher.

Best-effort, fire-and-forget delivery of vote events to external
integrations after the vote response has been sent:

- Custom webhooks receive a "vote.up" / "vote.down" event carrying the
  voter's author status, video, submission and before/after score.
- Downvotes are also posted as a Discord embed to the report channel
  (plain votes) or the incorrect-report channel (incorrect votes).

Delivery runs in background tasks. Every failure is logged and
swallowed; nothing here can fail or delay a vote.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
from structlog import get_logger

from segvote.application.ports.video_metadata import (
    VideoMetadata,
    VideoMetadataProtocol,
)
from segvote.application.ports.vote_store import SubmissionStats, VoteStoreProtocol
from segvote.config.vote_config import VoteConfig
from segvote.domain.events import SegmentVoteEvent
from segvote.domain.models import Segment, VoteFamily
from segvote.infrastructure.monitoring.metrics import get_metrics_collector

logger = get_logger(__name__)

# Discord embed color of report messages
REPORT_EMBED_COLOR = 10813440

# Seconds of lead-in before the segment start in report links
REPORT_LINK_LEAD_SECONDS = 2


def format_timestamp(total_seconds: float) -> str:
    """Format seconds as [h:]m:ss.sss for display."""
    hours = int(total_seconds // 3600)
    minutes = int(total_seconds // 60) % 60
    seconds = total_seconds % 60

    seconds_display = f"{seconds:.3f}"
    if seconds < 10:
        seconds_display = "0" + seconds_display
    minutes_display = str(minutes)
    if hours and minutes < 10:
        minutes_display = "0" + minutes_display

    prefix = f"{hours}:" if hours else ""
    return f"{prefix}{minutes_display}:{seconds_display}"


def get_vote_author_raw(
    submission_count: int,
    is_vip: bool,
    is_own_submission: bool,
) -> str:
    """Machine-readable voter status: self, vip, new or other."""
    if is_own_submission:
        return "self"
    if is_vip:
        return "vip"
    if submission_count == 0:
        return "new"
    return "other"


def get_vote_author(
    submission_count: int,
    is_vip: bool,
    is_own_submission: bool,
) -> str:
    """Display label of a report's author, empty for regular users."""
    if submission_count == 0:
        return "Report by New User"
    if is_own_submission:
        return "Report by Submitter"
    if is_vip:
        return "Report by VIP User"
    return ""


class VoteNotificationService:
    """Dispatches vote events to custom webhooks and Discord.

    Deliveries are scheduled with asyncio.create_task and tracked so
    drain() can await them on shutdown.
    """

    def __init__(
        self,
        store: VoteStoreProtocol,
        config: VoteConfig,
        video_metadata: VideoMetadataProtocol | None = None,
        max_retries: int = 3,
        retry_backoff_seconds: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            store: Vote store, read for submission details.
            config: Vote configuration (webhook URLs, timeout).
            video_metadata: Video metadata lookup. Without one, no
                notification is sent.
            max_retries: Delivery attempts per webhook.
            retry_backoff_seconds: Base of the exponential backoff.
            transport: Optional httpx transport (tests).
        """
        self._store = store
        self._config = config
        self._video_metadata = video_metadata
        self._max_retries = max_retries
        self._retry_backoff_seconds = retry_backoff_seconds
        self._transport = transport
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def dispatch(self, event: SegmentVoteEvent) -> None:
        """Schedule delivery of event and return immediately."""
        try:
            task = asyncio.get_running_loop().create_task(self._deliver_safely(event))
        except RuntimeError:
            logger.warning(
                "vote_notification_not_scheduled",
                segment_id=event.segment_id,
                reason="no running event loop",
            )
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for all scheduled deliveries."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _deliver_safely(self, event: SegmentVoteEvent) -> None:
        try:
            await self.deliver(event)
        except Exception as e:
            logger.warning(
                "vote_notification_failed",
                segment_id=event.segment_id,
                event_type=event.event_type,
                error=str(e),
            )

    async def deliver(self, event: SegmentVoteEvent) -> None:
        """Build and send every notification for one vote event.

        Skips silently when the segment is gone, no metadata lookup is
        configured, or the lookup fails.
        """
        log = logger.bind(segment_id=event.segment_id, event_type=event.event_type)

        async with self._store.unit_of_work() as repo:
            segment = await repo.get_segment(event.segment_id)
            if segment is None:
                log.debug("vote_notification_skipped", reason="segment_missing")
                return
            voter_submissions = await repo.count_submissions(event.voter_user_id)
            owner_stats = await repo.get_submission_stats(
                segment.user_id, self._config.suppressed_vote_threshold
            )
            owner_name = await repo.get_user_name(segment.user_id)

        if self._video_metadata is None:
            log.debug("vote_notification_skipped", reason="no_metadata_source")
            return
        video = await self._video_metadata.get_video(segment.video_id)
        if video is None:
            log.debug("vote_notification_skipped", reason="video_not_found")
            return

        async with httpx.AsyncClient(transport=self._transport) as client:
            payload = self.build_webhook_payload(
                event, segment, video, voter_submissions, owner_stats, owner_name
            )
            await asyncio.gather(
                *(
                    self._post(client, url, payload, "webhook", {"Event-Type": event.event_type})
                    for url in self._config.webhook_urls
                )
            )

            report_url = self._report_webhook_url(event.family)
            if report_url is not None and not event.is_upvote:
                embed = self.build_report_embed(
                    event, segment, video, voter_submissions, owner_stats, owner_name
                )
                await self._post(client, report_url, embed, "discord")

    def _report_webhook_url(self, family: VoteFamily) -> str | None:
        if family is VoteFamily.INCORRECT:
            return self._config.discord_incorrect_report_webhook_url
        return self._config.discord_report_webhook_url

    @staticmethod
    def build_webhook_payload(
        event: SegmentVoteEvent,
        segment: Segment,
        video: VideoMetadata,
        voter_submissions: int,
        owner_stats: SubmissionStats,
        owner_name: str | None,
    ) -> dict[str, Any]:
        """Custom webhook body for a vote event."""
        return {
            "user": {
                "status": get_vote_author_raw(
                    voter_submissions, event.is_vip, event.is_own_submission
                ),
            },
            "video": {
                "id": segment.video_id,
                "title": video.title,
                "url": video.watch_url,
                "thumbnail": video.thumbnail_url,
            },
            "submission": {
                "UUID": segment.segment_id,
                "views": event.views,
                "category": event.category,
                "startTime": segment.start_time,
                "endTime": segment.end_time,
                "user": {
                    "UUID": segment.user_id,
                    "username": owner_name,
                    "submissions": {
                        "total": owner_stats.total,
                        "ignored": owner_stats.ignored,
                    },
                },
            },
            "votes": {
                "before": event.votes_before,
                "after": event.votes_after,
            },
        }

    @staticmethod
    def build_report_embed(
        event: SegmentVoteEvent,
        segment: Segment,
        video: VideoMetadata,
        voter_submissions: int,
        owner_stats: SubmissionStats,
        owner_name: str | None,
    ) -> dict[str, Any]:
        """Discord message reporting a downvote."""
        link_time = round(segment.start_time) - REPORT_LINK_LEAD_SECONDS
        description = (
            f"**{event.votes_before} Votes Prior | {event.votes_after} Votes Now | "
            f"{event.views} Views**\n\n"
            f"**Submission ID:** {segment.segment_id}\n"
            f"**Category:** {segment.category}\n\n"
            f"**Submitted by:** {owner_name}\n {segment.user_id}\n\n"
            f"**Total User Submissions:** {owner_stats.total}\n"
            f"**Ignored User Submissions:** {owner_stats.ignored}\n\n"
            f"**Timestamp:** {format_timestamp(segment.start_time)} to "
            f"{format_timestamp(segment.end_time)}"
        )
        author = event.message or get_vote_author(
            voter_submissions, event.is_vip, event.is_own_submission
        )
        return {
            "embeds": [
                {
                    "title": video.title,
                    "url": f"{video.watch_url}&t={link_time}",
                    "description": description,
                    "color": REPORT_EMBED_COLOR,
                    "author": {"name": author},
                    "thumbnail": {"url": video.thumbnail_url},
                }
            ]
        }

    async def _post(
        self,
        client: httpx.AsyncClient,
        url: str,
        payload: dict[str, Any],
        channel: str,
        extra_headers: dict[str, str] | None = None,
    ) -> bool:
        """POST payload as JSON with retry.

        Returns:
            True if delivered, False once retries are exhausted.
        """
        headers = {"Content-Type": "application/json", **(extra_headers or {})}
        for attempt in range(self._max_retries):
            try:
                response = await client.post(
                    url,
                    json=payload,
                    headers=headers,
                    timeout=self._config.webhook_timeout_seconds,
                )
                if response.status_code < 400:
                    logger.debug(
                        "vote_webhook_delivered",
                        channel=channel,
                        status_code=response.status_code,
                        attempt=attempt + 1,
                    )
                    return True
                logger.warning(
                    "vote_webhook_delivery_failed",
                    channel=channel,
                    status_code=response.status_code,
                    body=response.text[:200],
                    attempt=attempt + 1,
                )
            except httpx.HTTPError as e:
                logger.warning(
                    "vote_webhook_delivery_error",
                    channel=channel,
                    error=str(e),
                    attempt=attempt + 1,
                )

            if attempt < self._max_retries - 1:
                await asyncio.sleep(self._retry_backoff_seconds * 2**attempt)

        logger.error(
            "vote_webhook_delivery_exhausted",
            channel=channel,
            max_retries=self._max_retries,
        )
        get_metrics_collector().increment_notification_failures(channel)
        return False
