"""Vote engine configuration.

Every tunable the vote engine reads lives on one frozen value object that
is injected into the services, never read from module state.

Environment Variables (Categories):
- SEGVOTE_CATEGORY_LIST: Comma separated category names
  (default: sponsor,selfpromo,interaction,intro,outro,preview,music_offtopic,poi_highlight)

Environment Variables (Moderation):
- SEGVOTE_SUPPRESSED_VOTE_THRESHOLD: Score at or below which a segment is hidden (default: -2)
- SEGVOTE_MAX_ACTIVE_WARNINGS: Active warnings that suspend voting (default: 1)
- SEGVOTE_HOURS_AFTER_WARNING_EXPIRES: Warning lifetime in hours (default: 24)

Environment Variables (Identity):
- SEGVOTE_GLOBAL_SALT: Salt appended to client addresses before hashing (default: "")
- SEGVOTE_HASH_ITERATIONS: SHA-256 rounds for pseudonymous ids (default: 5000)
- SEGVOTE_BEHIND_PROXY: "X-Forwarded-For", "Cloudflare" or empty (default: "")

Environment Variables (Weights):
- SEGVOTE_VIP_CATEGORY_WEIGHT: Category vote weight of a VIP (default: 500)
- SEGVOTE_VIP_BASELINE_WEIGHT: Incumbent category baseline for VIP owners (default: 10000)
- SEGVOTE_DEFAULT_BASELINE_WEIGHT: Incumbent category baseline otherwise (default: 1)
- SEGVOTE_MIN_CATEGORY_MARGIN: Minimum tally margin to recategorize (default: 2)

Environment Variables (Notifications):
- SEGVOTE_WEBHOOK_URLS: Comma separated custom webhook URLs (default: none)
- SEGVOTE_DISCORD_REPORT_WEBHOOK_URL: Discord webhook for downvotes (default: none)
- SEGVOTE_DISCORD_INCORRECT_REPORT_WEBHOOK_URL: Discord webhook for incorrect reports
- SEGVOTE_YOUTUBE_API_KEY: YouTube Data API key, notifications are skipped without it
- SEGVOTE_WEBHOOK_TIMEOUT_SECONDS: Per-request webhook timeout (default: 10.0)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_CATEGORY_LIST: tuple[str, ...] = (
    "sponsor",
    "selfpromo",
    "interaction",
    "intro",
    "outro",
    "preview",
    "music_offtopic",
    "poi_highlight",
)

FORWARDED_FOR_PROXY = "X-Forwarded-For"
CLOUDFLARE_PROXY = "Cloudflare"
_SUPPORTED_PROXIES = ("", FORWARDED_FOR_PROXY, CLOUDFLARE_PROXY)


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_str_env(key: str, default: str | None) -> str | None:
    value = os.environ.get(key)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _get_list_env(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """Get comma separated environment variable as a tuple.

    Empty items are dropped; an unset or blank variable yields the default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


@dataclass(frozen=True)
class VoteConfig:
    """Configuration for vote resolution and score adjustment.

    Attributes:
        category_list: Categories a segment may be voted into.
        suppressed_vote_threshold: Score at or below which a segment is
            hidden and plain votes from regular users stop counting.
        max_active_warnings: Number of active warnings that suspends voting.
        hours_after_warning_expires: How long a warning stays active.
        global_salt: Salt mixed into hashed client addresses.
        hash_iterations: SHA-256 rounds used for every pseudonymous id.
        vip_category_weight: Category vote weight of a VIP.
        vip_baseline_weight: Implicit tally of the incumbent category when
            the segment owner is a VIP.
        default_baseline_weight: Implicit tally of the incumbent category
            otherwise.
        min_category_margin: Floor of the margin a challenger category needs.
        behind_proxy: Which proxy header carries the client address.
        webhook_urls: Custom webhook endpoints receiving vote events.
        discord_report_webhook_url: Discord webhook for plain downvotes.
        discord_incorrect_report_webhook_url: Discord webhook for incorrect
            report downvotes.
        youtube_api_key: Key for video metadata lookups.
        webhook_timeout_seconds: Timeout of a single webhook request.
    """

    category_list: tuple[str, ...] = DEFAULT_CATEGORY_LIST
    suppressed_vote_threshold: int = -2
    max_active_warnings: int = 1
    hours_after_warning_expires: int = 24
    global_salt: str = ""
    hash_iterations: int = 5000
    vip_category_weight: int = 500
    vip_baseline_weight: int = 10_000
    default_baseline_weight: int = 1
    min_category_margin: int = 2
    behind_proxy: str = ""
    webhook_urls: tuple[str, ...] = ()
    discord_report_webhook_url: str | None = None
    discord_incorrect_report_webhook_url: str | None = None
    youtube_api_key: str | None = None
    webhook_timeout_seconds: float = 10.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.category_list:
            raise ValueError("category_list must not be empty")
        if self.max_active_warnings < 1:
            raise ValueError(
                f"max_active_warnings must be positive, got {self.max_active_warnings}"
            )
        if self.hours_after_warning_expires < 0:
            raise ValueError(
                "hours_after_warning_expires must be non-negative, "
                f"got {self.hours_after_warning_expires}"
            )
        if self.hash_iterations < 1:
            raise ValueError(
                f"hash_iterations must be positive, got {self.hash_iterations}"
            )
        for name in (
            "vip_category_weight",
            "vip_baseline_weight",
            "default_baseline_weight",
        ):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.min_category_margin < 0:
            raise ValueError(
                f"min_category_margin must be non-negative, got {self.min_category_margin}"
            )
        if self.behind_proxy not in _SUPPORTED_PROXIES:
            raise ValueError(
                f"behind_proxy must be one of {_SUPPORTED_PROXIES}, got {self.behind_proxy!r}"
            )
        if self.webhook_timeout_seconds <= 0:
            raise ValueError(
                "webhook_timeout_seconds must be positive, "
                f"got {self.webhook_timeout_seconds}"
            )

    @classmethod
    def from_environment(cls) -> VoteConfig:
        """Create config from SEGVOTE_* environment variables with defaults.

        Returns:
            VoteConfig with values from environment or defaults.
        """
        return cls(
            category_list=_get_list_env("SEGVOTE_CATEGORY_LIST", DEFAULT_CATEGORY_LIST),
            suppressed_vote_threshold=_get_int_env("SEGVOTE_SUPPRESSED_VOTE_THRESHOLD", -2),
            max_active_warnings=_get_int_env("SEGVOTE_MAX_ACTIVE_WARNINGS", 1),
            hours_after_warning_expires=_get_int_env(
                "SEGVOTE_HOURS_AFTER_WARNING_EXPIRES", 24
            ),
            global_salt=_get_str_env("SEGVOTE_GLOBAL_SALT", "") or "",
            hash_iterations=_get_int_env("SEGVOTE_HASH_ITERATIONS", 5000),
            vip_category_weight=_get_int_env("SEGVOTE_VIP_CATEGORY_WEIGHT", 500),
            vip_baseline_weight=_get_int_env("SEGVOTE_VIP_BASELINE_WEIGHT", 10_000),
            default_baseline_weight=_get_int_env("SEGVOTE_DEFAULT_BASELINE_WEIGHT", 1),
            min_category_margin=_get_int_env("SEGVOTE_MIN_CATEGORY_MARGIN", 2),
            behind_proxy=_get_str_env("SEGVOTE_BEHIND_PROXY", "") or "",
            webhook_urls=_get_list_env("SEGVOTE_WEBHOOK_URLS", ()),
            discord_report_webhook_url=_get_str_env(
                "SEGVOTE_DISCORD_REPORT_WEBHOOK_URL", None
            ),
            discord_incorrect_report_webhook_url=_get_str_env(
                "SEGVOTE_DISCORD_INCORRECT_REPORT_WEBHOOK_URL", None
            ),
            youtube_api_key=_get_str_env("SEGVOTE_YOUTUBE_API_KEY", None),
            webhook_timeout_seconds=_get_float_env(
                "SEGVOTE_WEBHOOK_TIMEOUT_SECONDS", 10.0
            ),
        )


# Default production config
DEFAULT_VOTE_CONFIG = VoteConfig()

# Testing config: cheap hashing, fixed salt
TEST_VOTE_CONFIG = VoteConfig(
    global_salt="test-salt",
    hash_iterations=1,
    webhook_timeout_seconds=1.0,
)
