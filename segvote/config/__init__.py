"""Configuration module for segvote.

Available Configurations:
- VoteConfig: Vote resolution, moderation and notification settings
"""

from segvote.config.vote_config import (
    CLOUDFLARE_PROXY,
    DEFAULT_CATEGORY_LIST,
    DEFAULT_VOTE_CONFIG,
    FORWARDED_FOR_PROXY,
    TEST_VOTE_CONFIG,
    VoteConfig,
)

__all__ = [
    "VoteConfig",
    "CLOUDFLARE_PROXY",
    "DEFAULT_CATEGORY_LIST",
    "DEFAULT_VOTE_CONFIG",
    "FORWARDED_FOR_PROXY",
    "TEST_VOTE_CONFIG",
]
