"""Unit tests for the vote API routes.

The application runs without its lifespan; the submission service is
replaced through dependency overrides with one wired over stubs.
"""

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from segvote.api.dependencies.vote import get_vote_config, get_vote_submission_service
from segvote.api.main import app
from segvote.api.routes.vote import INTERNAL_ERROR_MESSAGE
from segvote.application.ports.vote_submission import MODERATION_LOCKED_MESSAGE
from segvote.application.services import VoteSubmissionService
from segvote.config import FORWARDED_FOR_PROXY, TEST_VOTE_CONFIG, VoteConfig
from segvote.infrastructure.stubs import NotificationDispatcherStub, VoteStoreStub
from tests.helpers.vote_factories import (
    SEGMENT_ID,
    hashed_ip_of,
    make_segment,
    voter_id_of,
)

LEGACY_PATH = "/api/voteOnSponsorTime"
VOTES_PATH = f"/v1/segments/{SEGMENT_ID}/votes"


@pytest.fixture
def client(submission_service: VoteSubmissionService) -> Iterator[TestClient]:
    app.dependency_overrides[get_vote_submission_service] = lambda: submission_service
    app.dependency_overrides[get_vote_config] = lambda: TEST_VOTE_CONFIG
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def failing_client() -> Iterator[TestClient]:
    service = MagicMock()
    service.submit_vote = AsyncMock(side_effect=RuntimeError("database down"))
    app.dependency_overrides[get_vote_submission_service] = lambda: service
    app.dependency_overrides[get_vote_config] = lambda: TEST_VOTE_CONFIG
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def voter_store(store: VoteStoreStub) -> VoteStoreStub:
    """Store holding seg-1 and a past submission by alice."""
    store.add_segment(make_segment())
    store.add_segment(make_segment(segment_id="own-alice", owner="alice"))
    return store


class TestLegacyVoteRoute:
    """Tests for the query-string vote endpoint."""

    def test_vote_accepted(self, client: TestClient, voter_store: VoteStoreStub) -> None:
        response = client.post(LEGACY_PATH, params={"UUID": SEGMENT_ID, "userID": "alice", "type": "1"})

        assert response.status_code == 200
        assert response.text == ""
        segment = voter_store.get_segment(SEGMENT_ID)
        assert segment is not None
        assert segment.votes == 1

    def test_get_is_accepted(self, client: TestClient, voter_store: VoteStoreStub) -> None:
        response = client.get(LEGACY_PATH, params={"UUID": SEGMENT_ID, "userID": "alice", "type": "0"})

        assert response.status_code == 200
        segment = voter_store.get_segment(SEGMENT_ID)
        assert segment is not None
        assert segment.votes == -1

    def test_category_vote(self, client: TestClient, voter_store: VoteStoreStub) -> None:
        response = client.post(
            LEGACY_PATH, params={"UUID": SEGMENT_ID, "userID": "alice", "category": "intro"}
        )

        assert response.status_code == 200
        assert voter_store.get_category_tally(SEGMENT_ID, "intro") == 1

    def test_missing_segment(self, client: TestClient) -> None:
        response = client.post(LEGACY_PATH, params={"UUID": "nope", "userID": "alice", "type": "1"})

        assert response.status_code == 400
        assert response.text == "Submission doesn't exist."

    @pytest.mark.parametrize(
        "params",
        [
            {"userID": "alice", "type": "1"},
            {"UUID": SEGMENT_ID, "type": "1"},
            {"UUID": SEGMENT_ID, "userID": "alice"},
            {"UUID": SEGMENT_ID, "userID": "alice", "type": "up"},
            {"UUID": SEGMENT_ID, "userID": "alice", "type": "3"},
        ],
    )
    def test_malformed_requests(
        self, client: TestClient, voter_store: VoteStoreStub, params: dict[str, str]
    ) -> None:
        response = client.post(LEGACY_PATH, params=params)

        assert response.status_code == 400
        assert voter_store.write_count == 0

    def test_locked_segment(self, client: TestClient, store: VoteStoreStub) -> None:
        store.add_segment(make_segment(locked=True))

        response = client.post(LEGACY_PATH, params={"UUID": SEGMENT_ID, "userID": "alice", "type": "0"})

        assert response.status_code == 403
        assert response.text == MODERATION_LOCKED_MESSAGE

    def test_suppressed_upvote(self, client: TestClient, store: VoteStoreStub) -> None:
        store.add_segment(make_segment(votes=-5))

        response = client.post(LEGACY_PATH, params={"UUID": SEGMENT_ID, "userID": "alice", "type": "1"})

        assert response.status_code == 403
        assert "too many downvotes" in response.text

    def test_internal_error(self, failing_client: TestClient) -> None:
        response = failing_client.post(
            LEGACY_PATH, params={"UUID": SEGMENT_ID, "userID": "alice", "type": "1"}
        )

        assert response.status_code == 500
        assert response.json() == {"error": INTERNAL_ERROR_MESSAGE}

    def test_notification_dispatched_after_response(
        self,
        client: TestClient,
        voter_store: VoteStoreStub,
        dispatcher: NotificationDispatcherStub,
    ) -> None:
        client.post(LEGACY_PATH, params={"UUID": SEGMENT_ID, "userID": "alice", "type": "0"})

        assert len(dispatcher.events) == 1
        assert dispatcher.events[0].votes_after == -1

    def test_forwarded_for_address_is_hashed(
        self, client: TestClient, voter_store: VoteStoreStub
    ) -> None:
        app.dependency_overrides[get_vote_config] = lambda: VoteConfig(
            global_salt="test-salt", hash_iterations=1, behind_proxy=FORWARDED_FOR_PROXY
        )

        client.post(
            LEGACY_PATH,
            params={"UUID": SEGMENT_ID, "userID": "alice", "type": "1"},
            headers={"X-Forwarded-For": "198.51.100.9, 10.0.0.1"},
        )

        record = voter_store.get_vote_record(SEGMENT_ID, voter_id_of("alice"))
        assert record is not None
        assert record.hashed_ip == hashed_ip_of("198.51.100.9")

    def test_socket_address_without_proxy(
        self, client: TestClient, voter_store: VoteStoreStub
    ) -> None:
        client.post(
            LEGACY_PATH,
            params={"UUID": SEGMENT_ID, "userID": "alice", "type": "1"},
            headers={"X-Forwarded-For": "198.51.100.9"},
        )

        record = voter_store.get_vote_record(SEGMENT_ID, voter_id_of("alice"))
        assert record is not None
        assert record.hashed_ip == hashed_ip_of("testclient")


class TestSegmentVotesRoute:
    """Tests for the JSON vote endpoint."""

    def test_vote_response(self, client: TestClient, voter_store: VoteStoreStub) -> None:
        response = client.post(VOTES_PATH, json={"user_id": "alice", "type": 1})

        assert response.status_code == 200
        assert response.json() == {
            "segment_id": SEGMENT_ID,
            "status": "applied",
            "counted": True,
            "message": None,
            "delta": 1,
            "votes_before": 0,
            "votes_after": 1,
            "category": None,
            "category_changed": False,
        }

    def test_repeat_vote(self, client: TestClient, voter_store: VoteStoreStub) -> None:
        client.post(VOTES_PATH, json={"user_id": "alice", "type": 1})

        response = client.post(VOTES_PATH, json={"user_id": "alice", "type": 1})

        assert response.json()["status"] == "no_change"
        assert response.json()["counted"] is False

    def test_category_vote(self, client: TestClient, voter_store: VoteStoreStub) -> None:
        response = client.post(VOTES_PATH, json={"user_id": "alice", "category": "outro"})

        body = response.json()
        assert response.status_code == 200
        assert body["category"] == "outro"
        assert body["category_changed"] is False

    def test_locked_segment_is_acknowledged(
        self, client: TestClient, store: VoteStoreStub
    ) -> None:
        store.add_segment(make_segment(locked=True))

        response = client.post(VOTES_PATH, json={"user_id": "alice", "type": 0})

        assert response.status_code == 403
        assert response.json()["status"] == "moderation_locked"
        assert response.json()["message"] == MODERATION_LOCKED_MESSAGE
        assert response.json()["counted"] is False

    def test_missing_segment_problem_details(self, client: TestClient) -> None:
        response = client.post("/v1/segments/nope/votes", json={"user_id": "alice", "type": 1})

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["type"] == "urn:segvote:vote:segment-not-found"
        assert detail["status"] == 400
        assert detail["segment_id"] == "nope"
        assert detail["instance"] == "/v1/segments/nope/votes"

    def test_unknown_vote_type(self, client: TestClient, voter_store: VoteStoreStub) -> None:
        response = client.post(VOTES_PATH, json={"user_id": "alice", "type": 7})

        assert response.status_code == 400
        assert response.json()["detail"]["vote_type"] == 7

    def test_poi_category_is_rejected(
        self, client: TestClient, voter_store: VoteStoreStub
    ) -> None:
        response = client.post(VOTES_PATH, json={"user_id": "alice", "category": "poi_highlight"})

        assert response.status_code == 400
        assert response.json()["detail"]["type"] == "urn:segvote:vote:category-not-votable"

    def test_body_requires_type_or_category(self, client: TestClient) -> None:
        response = client.post(VOTES_PATH, json={"user_id": "alice"})

        assert response.status_code == 422

    def test_internal_error(self, failing_client: TestClient) -> None:
        response = failing_client.post(VOTES_PATH, json={"user_id": "alice", "type": 1})

        assert response.status_code == 500
        assert response.json()["detail"]["type"] == "urn:segvote:vote:internal-error"
