"""Relational schema of the vote store.

Declared once with SQLAlchemy Core so development databases and tests
can create_all(). Queries in the adapters are written as text() SQL
against these tables. Flags are stored as 0/1 integers.
"""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Column,
    Float,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
)

metadata = MetaData()

segments = Table(
    "segments",
    metadata,
    Column("segment_id", String(128), primary_key=True),
    Column("video_id", String(64), nullable=False, index=True),
    Column("hashed_video_id", String(128), nullable=False, default=""),
    Column("service", String(32), nullable=False, default="YouTube"),
    Column("category", String(64), nullable=False),
    Column("user_id", String(128), nullable=False, index=True),
    Column("votes", Integer, nullable=False, default=0),
    Column("incorrect_votes", Integer, nullable=False, default=1),
    Column("views", Integer, nullable=False, default=0),
    Column("locked", Integer, nullable=False, default=0),
    Column("time_submitted", BigInteger, nullable=False, default=0),
    Column("start_time", Float, nullable=False, default=0.0),
    Column("end_time", Float, nullable=False, default=0.0),
)

votes = Table(
    "votes",
    metadata,
    Column("segment_id", String(128), nullable=False),
    Column("voter_id", String(128), nullable=False),
    Column("hashed_ip", String(128), nullable=False),
    Column("vote_type", Integer, nullable=False),
    PrimaryKeyConstraint("segment_id", "voter_id"),
)

category_votes = Table(
    "category_votes",
    metadata,
    Column("segment_id", String(128), nullable=False),
    Column("category", String(64), nullable=False),
    Column("votes", Integer, nullable=False, default=0),
    PrimaryKeyConstraint("segment_id", "category"),
)

category_vote_ballots = Table(
    "category_vote_ballots",
    metadata,
    Column("segment_id", String(128), nullable=False),
    Column("user_id", String(128), nullable=False),
    Column("hashed_ip", String(128), nullable=False),
    Column("category", String(64), nullable=False),
    Column("time_submitted", BigInteger, nullable=False),
    PrimaryKeyConstraint("segment_id", "user_id"),
)

warnings = Table(
    "warnings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(128), nullable=False, index=True),
    Column("issuer_user_id", String(128), nullable=False),
    Column("issue_time", BigInteger, nullable=False),
    Column("enabled", Integer, nullable=False, default=1),
    Column("reason", String(1024), nullable=False, default=""),
)

vip_users = Table(
    "vip_users",
    metadata,
    Column("user_id", String(128), primary_key=True),
)

shadow_banned_users = Table(
    "shadow_banned_users",
    metadata,
    Column("user_id", String(128), primary_key=True),
)

lock_categories = Table(
    "lock_categories",
    metadata,
    Column("video_id", String(64), nullable=False),
    Column("category", String(64), nullable=False),
    Column("service", String(32), nullable=False, default="YouTube"),
    Column("user_id", String(128), nullable=False),
    PrimaryKeyConstraint("video_id", "category", "service"),
)

user_names = Table(
    "user_names",
    metadata,
    Column("user_id", String(128), primary_key=True),
    Column("user_name", String(128), nullable=False),
)
