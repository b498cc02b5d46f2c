"""
Pytest configuration and shared fixtures for segvote tests.

Testing Standards:
- Async tests run under pytest-asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async function mocking
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

import pytest

from segvote.application.services import (
    CategoryConsensusService,
    EligibilityGateService,
    IdentityService,
    ScoreAdjustmentService,
    VoteLedgerService,
    VoteSubmissionService,
)
from segvote.config import TEST_VOTE_CONFIG, VoteConfig
from segvote.infrastructure.monitoring.metrics import reset_metrics_collector
from segvote.infrastructure.stubs import (
    CacheInvalidatorStub,
    NotificationDispatcherStub,
    PrivilegeRegistryStub,
    VoteStoreStub,
)


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from segvote import __version__

    return __version__


@pytest.fixture(autouse=True)
def reset_metrics() -> None:
    """Give every test a fresh metrics collector."""
    reset_metrics_collector()


@pytest.fixture
def vote_config() -> VoteConfig:
    return TEST_VOTE_CONFIG


@pytest.fixture
def store() -> VoteStoreStub:
    return VoteStoreStub()


@pytest.fixture
def privileges() -> PrivilegeRegistryStub:
    return PrivilegeRegistryStub()


@pytest.fixture
def cache() -> CacheInvalidatorStub:
    return CacheInvalidatorStub()


@pytest.fixture
def dispatcher() -> NotificationDispatcherStub:
    return NotificationDispatcherStub()


@pytest.fixture
def submission_service(
    store: VoteStoreStub,
    privileges: PrivilegeRegistryStub,
    cache: CacheInvalidatorStub,
    dispatcher: NotificationDispatcherStub,
    vote_config: VoteConfig,
) -> VoteSubmissionService:
    """Fully wired submission service over in-memory stubs."""
    return VoteSubmissionService(
        store=store,
        identity_service=IdentityService(privileges, vote_config),
        eligibility_gate=EligibilityGateService(vote_config),
        ledger=VoteLedgerService(),
        score_adjustment=ScoreAdjustmentService(cache),
        category_consensus=CategoryConsensusService(vote_config, privileges, cache),
        dispatcher=dispatcher,
    )
