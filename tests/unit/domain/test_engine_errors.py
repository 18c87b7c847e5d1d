"""Unit tests for domain errors and their problem documents."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

from electoral_engine.domain.errors import (
    AlreadyVotedError,
    ChallengeNotFoundError,
    DeadlineExpiredError,
    DependencyUnavailableError,
    ElectionNotFinishedError,
    ElectionNotOpenError,
    InvalidTransitionError,
    NotFoundError,
    SlateNotFoundError,
)
from electoral_engine.domain.exceptions import ElectoralEngineError
from electoral_engine.domain.models import ChallengeEvent, ChallengeStatus
from tests.helpers.builders import FRIDAY


class TestProblemDocuments:
    """Tests for to_rfc7807_dict()."""

    def test_invalid_transition_document(self) -> None:
        error = InvalidTransitionError(
            challenge_id=7,
            current_status=ChallengeStatus.ARCHIVED,
            event=ChallengeEvent.FILE_APPEAL,
            guard="status_accepts_event",
        )

        doc = error.to_rfc7807_dict()

        assert doc["status"] == 409
        assert doc["type"] == error.problem_type
        assert doc["challenge_id"] == 7
        assert doc["current_status"] == "archived"
        assert doc["event"] == "file_appeal"
        assert doc["guard"] == "status_accepts_event"
        assert "archived" in doc["detail"]

    def test_deadline_expired_document(self) -> None:
        attempted = FRIDAY + timedelta(microseconds=1)
        doc = DeadlineExpiredError(
            challenge_id=1, phase="defense", window_end=FRIDAY, attempted_at=attempted
        ).to_rfc7807_dict()

        assert doc["phase"] == "defense"
        assert doc["window_end"] == FRIDAY.isoformat()
        assert doc["attempted_at"] == attempted.isoformat()

    def test_already_voted_carries_existing_ballot(self) -> None:
        ballot_id = uuid4()
        doc = AlreadyVotedError(
            election_id=1, voter_id=2, existing_ballot_id=ballot_id, cast_at=FRIDAY
        ).to_rfc7807_dict()

        assert doc["existing_ballot_id"] == str(ballot_id)
        assert doc["cast_at"] == FRIDAY.isoformat()

    def test_dependency_unavailable_is_503(self) -> None:
        error = DependencyUnavailableError("business_calendar", "is_business_day")
        assert error.http_status == 503


class TestErrorHierarchy:
    """Tests for class relationships callers rely on."""

    def test_all_errors_share_base(self) -> None:
        assert isinstance(ChallengeNotFoundError(challenge_id=1), ElectoralEngineError)
        assert isinstance(SlateNotFoundError(1, 2), NotFoundError)

    def test_not_finished_is_not_open(self) -> None:
        error = ElectionNotFinishedError(1, "active")
        assert isinstance(error, ElectionNotOpenError)
        assert error.problem_type != ElectionNotOpenError.problem_type
