"""Unit tests for the Challenge aggregate and its state machine.

Tests cover:
- Transition matrix and status helpers
- Defense window boundaries (closed interval at window_end)
- Ruling, appeal and archive guards
- Deadline expiry and the single extension
- Append-only documents with tombstone removal
- Aggregate invariants checked at construction
"""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from electoral_engine.domain.errors import (
    DeadlineExpiredError,
    DeadlineNotFoundError,
    DocumentNotFoundError,
    InvalidTransitionError,
    NotExtendableError,
)
from electoral_engine.domain.models import (
    AppellantRole,
    ChallengeEvent,
    ChallengeStatus,
    ChallengeType,
    DeadlinePhase,
    DeadlineStatus,
    DocumentKind,
    DocumentRef,
    RulingOutcome,
    TargetRef,
    format_protocol_number,
)
from tests.helpers.builders import (
    FILER_ID,
    FRIDAY,
    JUDGE_ID,
    RAPPORTEUR_ID,
    awaiting_defense,
    deadline,
    defense_submitted,
    ruled,
)


def _document(document_id: int) -> DocumentRef:
    return DocumentRef(
        id=document_id,
        kind=DocumentKind.OTHER,
        name=f"annex-{document_id}.pdf",
        storage_handle=f"store://annex-{document_id}",
        size_bytes=1024,
        mime_type="application/pdf",
        added_at=FRIDAY,
        added_by=FILER_ID,
    )


class TestTransitionMatrix:
    """Tests for the status/event table."""

    def test_archived_accepts_nothing(self) -> None:
        assert ChallengeStatus.ARCHIVED.valid_events() == frozenset()

    def test_ruled_statuses_accept_appeal_and_archive(self) -> None:
        for status in (ChallengeStatus.UPHELD, ChallengeStatus.DENIED):
            assert status.valid_events() == {
                ChallengeEvent.FILE_APPEAL,
                ChallengeEvent.ARCHIVE,
            }
            assert status.is_ruled()

    def test_ruling_outcome_maps_to_status(self) -> None:
        assert RulingOutcome.UPHELD.to_status() == ChallengeStatus.UPHELD
        assert RulingOutcome.DENIED.to_status() == ChallengeStatus.DENIED

    def test_protocol_number_format(self) -> None:
        assert format_protocol_number(42, FRIDAY) == "IMP-2026-000042"


class TestOpenDefenseWindow:
    """Tests for FILED -> AWAITING_DEFENSE."""

    def test_filed_challenge_awaits_defense_at_version_one(self) -> None:
        challenge = awaiting_defense()

        assert challenge.status == ChallengeStatus.AWAITING_DEFENSE
        assert challenge.version == 1
        defense = challenge.active_deadline(DeadlinePhase.DEFENSE)
        assert defense is not None
        assert defense.id == 1
        assert defense.extendable

    def test_cannot_open_twice(self) -> None:
        challenge = awaiting_defense()
        with pytest.raises(InvalidTransitionError) as exc_info:
            challenge.open_defense_window(
                deadline(9, DeadlinePhase.DEFENSE, FRIDAY, FRIDAY + timedelta(days=1)),
                FRIDAY,
            )
        assert exc_info.value.guard == "status_accepts_event"


class TestSubmitDefense:
    """Tests for AWAITING_DEFENSE -> DEFENSE_SUBMITTED."""

    def test_defense_meets_deadline_and_opens_judgment(self) -> None:
        challenge = defense_submitted()

        assert challenge.status == ChallengeStatus.DEFENSE_SUBMITTED
        assert challenge.defense == "The registration was reinstated"
        assert challenge.defense_submitted_at == FRIDAY
        assert challenge.version == 2
        defense = challenge.deadline_by_id(1)
        assert defense is not None
        assert defense.status == DeadlineStatus.MET
        assert defense.closed_at == FRIDAY
        judgment = challenge.active_deadline(DeadlinePhase.JUDGMENT)
        assert judgment is not None
        assert judgment.id == 3

    def test_defense_accepted_exactly_at_window_end(self) -> None:
        challenge = awaiting_defense()
        window_end = challenge.active_deadline(DeadlinePhase.DEFENSE).window_end

        updated = challenge.submit_defense(
            "On time",
            window_end,
            deadline(3, DeadlinePhase.JUDGMENT, window_end, window_end + timedelta(days=14)),
        )

        assert updated.status == ChallengeStatus.DEFENSE_SUBMITTED

    def test_defense_rejected_one_microsecond_late(self) -> None:
        challenge = awaiting_defense()
        late = challenge.active_deadline(DeadlinePhase.DEFENSE).window_end + timedelta(
            microseconds=1
        )

        with pytest.raises(DeadlineExpiredError) as exc_info:
            challenge.submit_defense(
                "Too late",
                late,
                deadline(3, DeadlinePhase.JUDGMENT, late, late + timedelta(days=14)),
            )

        assert exc_info.value.phase == "defense"
        assert exc_info.value.attempted_at == late

    def test_defense_documents_appended_in_same_write(self) -> None:
        challenge = awaiting_defense()
        updated = challenge.submit_defense(
            "With annexes",
            FRIDAY,
            deadline(3, DeadlinePhase.JUDGMENT, FRIDAY, FRIDAY + timedelta(days=14)),
            documents=(_document(1), _document(2)),
        )

        assert [d.id for d in updated.documents] == [1, 2]
        assert updated.version == challenge.version + 1

    def test_second_defense_rejected(self) -> None:
        challenge = defense_submitted()
        with pytest.raises(InvalidTransitionError):
            challenge.submit_defense(
                "Again",
                FRIDAY,
                deadline(5, DeadlinePhase.JUDGMENT, FRIDAY, FRIDAY + timedelta(days=1)),
            )

    def test_defense_after_sweep_expired_window_is_expired(self) -> None:
        later = FRIDAY + timedelta(days=8)
        expired = awaiting_defense().expire_deadline(1, later)

        with pytest.raises(DeadlineExpiredError) as exc_info:
            expired.submit_defense(
                "Too late",
                later,
                deadline(3, DeadlinePhase.JUDGMENT, later, later + timedelta(days=14)),
            )

        assert exc_info.value.phase == "defense"
        assert exc_info.value.challenge_id == expired.id

    def test_defense_after_waiver_is_expired(self) -> None:
        later = FRIDAY + timedelta(days=8)
        waived = (
            awaiting_defense()
            .expire_deadline(1, later)
            .waive_defense(
                1, later, deadline(3, DeadlinePhase.JUDGMENT, later, later + timedelta(days=14))
            )
        )

        with pytest.raises(DeadlineExpiredError):
            waived.submit_defense(
                "Too late",
                later,
                deadline(4, DeadlinePhase.JUDGMENT, later, later + timedelta(days=14)),
            )

    def test_judgment_deadline_must_match_instance(self) -> None:
        challenge = awaiting_defense()
        with pytest.raises(ValueError, match="judgment deadline"):
            challenge.submit_defense(
                "Defense",
                FRIDAY,
                deadline(
                    3,
                    DeadlinePhase.JUDGMENT,
                    FRIDAY,
                    FRIDAY + timedelta(days=14),
                    instance=2,
                ),
            )


class TestWaiveDefense:
    """Tests for the system transition after the defense window expired."""

    def test_expired_defense_is_waived(self) -> None:
        later = FRIDAY + timedelta(days=8)
        expired = awaiting_defense().expire_deadline(1, later)

        assert expired.version == 2
        assert [d.id for d in expired.pending_expiry_followups()] == [1]

        waived = expired.waive_defense(
            1, later, deadline(3, DeadlinePhase.JUDGMENT, later, later + timedelta(days=14))
        )

        assert waived.status == ChallengeStatus.DEFENSE_SUBMITTED
        assert waived.defense is None
        assert waived.version == 3
        assert waived.pending_expiry_followups() == ()

    def test_waive_requires_expired_defense_deadline(self) -> None:
        challenge = awaiting_defense()
        with pytest.raises(InvalidTransitionError) as exc_info:
            challenge.waive_defense(
                1,
                FRIDAY,
                deadline(3, DeadlinePhase.JUDGMENT, FRIDAY, FRIDAY + timedelta(days=1)),
            )
        assert exc_info.value.guard == "defense_deadline_expired"


class TestRulingAndJudgment:
    """Tests for begin_judgment and render_ruling."""

    def test_begin_judgment_assigns_rapporteur(self) -> None:
        challenge = defense_submitted().begin_judgment(RAPPORTEUR_ID, FRIDAY)

        assert challenge.status == ChallengeStatus.UNDER_JUDGMENT
        assert challenge.rapporteur_id == RAPPORTEUR_ID
        assert challenge.version == 3

    def test_begin_judgment_requires_defense_phase_closed(self) -> None:
        with pytest.raises(InvalidTransitionError) as exc_info:
            awaiting_defense().begin_judgment(RAPPORTEUR_ID, FRIDAY)
        assert exc_info.value.event == ChallengeEvent.BEGIN_JUDGMENT

    def test_ruling_meets_judgment_deadline_and_opens_appeal(self) -> None:
        challenge = ruled()

        assert challenge.status == ChallengeStatus.DENIED
        assert challenge.version == 3
        ruling = challenge.ruling
        assert ruling is not None
        assert ruling.instance == 1
        assert ruling.judge_ref == JUDGE_ID
        assert not ruling.late
        assert challenge.deadline_by_id(3).status == DeadlineStatus.MET
        assert challenge.active_deadline(DeadlinePhase.APPEAL).id == 4

    def test_late_ruling_is_accepted_and_flagged(self) -> None:
        later = FRIDAY + timedelta(days=2)
        challenge = defense_submitted(judgment_window=timedelta(days=1)).render_ruling(
            outcome=RulingOutcome.UPHELD,
            reasoning="Late but valid",
            judge_ref=JUDGE_ID,
            appealable=False,
            now=later,
            appeal_deadline=None,
        )

        assert challenge.status == ChallengeStatus.UPHELD
        assert challenge.ruling.late
        assert challenge.deadline_by_id(3).status == DeadlineStatus.EXPIRED

    def test_appealable_requires_appeal_deadline(self) -> None:
        with pytest.raises(ValueError, match="appeal deadline"):
            defense_submitted().render_ruling(
                outcome=RulingOutcome.DENIED,
                reasoning="Denied",
                judge_ref=JUDGE_ID,
                appealable=True,
                now=FRIDAY,
                appeal_deadline=None,
            )

    def test_second_ruling_same_instance_rejected(self) -> None:
        with pytest.raises(InvalidTransitionError):
            ruled().render_ruling(
                outcome=RulingOutcome.UPHELD,
                reasoning="Changed my mind",
                judge_ref=JUDGE_ID,
                appealable=False,
                now=FRIDAY,
                appeal_deadline=None,
            )

    def test_non_appealable_ruling_is_terminal(self) -> None:
        assert ruled(appealable=False).is_terminal
        assert not ruled().is_terminal


class TestFileAppeal:
    """Tests for UPHELD|DENIED -> UNDER_JUDGMENT at the next instance."""

    def test_appeal_moves_to_next_instance(self) -> None:
        now = FRIDAY + timedelta(days=1)
        challenge = ruled().file_appeal(
            appellant_id=FILER_ID,
            appellant_role=AppellantRole.FILER,
            reasoning="The certificate is forged",
            now=now,
            judgment_deadline=deadline(
                5, DeadlinePhase.JUDGMENT, now, now + timedelta(days=14), instance=2
            ),
        )

        assert challenge.status == ChallengeStatus.UNDER_JUDGMENT
        assert challenge.instance == 2
        assert challenge.rapporteur_id is None
        assert challenge.ruling is None
        assert len(challenge.rulings) == 1
        assert challenge.appeals[0].from_instance == 1
        assert challenge.deadline_by_id(4).status == DeadlineStatus.MET
        assert challenge.current_deadline(DeadlinePhase.JUDGMENT).id == 5

    def test_appeal_after_window_rejected(self) -> None:
        now = FRIDAY + timedelta(days=6)
        with pytest.raises(DeadlineExpiredError) as exc_info:
            ruled().file_appeal(
                appellant_id=FILER_ID,
                appellant_role=AppellantRole.FILER,
                reasoning="Too late",
                now=now,
                judgment_deadline=deadline(
                    5, DeadlinePhase.JUDGMENT, now, now + timedelta(days=14), instance=2
                ),
            )
        assert exc_info.value.phase == "appeal"

    def test_non_appealable_ruling_cannot_be_appealed(self) -> None:
        with pytest.raises(InvalidTransitionError) as exc_info:
            ruled(appealable=False).file_appeal(
                appellant_id=FILER_ID,
                appellant_role=AppellantRole.FILER,
                reasoning="No",
                now=FRIDAY,
                judgment_deadline=deadline(
                    5, DeadlinePhase.JUDGMENT, FRIDAY, FRIDAY, instance=2
                ),
            )
        assert exc_info.value.guard == "ruling_appealable"

    def test_judgment_deadline_must_be_next_instance(self) -> None:
        with pytest.raises(ValueError, match="next instance"):
            ruled().file_appeal(
                appellant_id=FILER_ID,
                appellant_role=AppellantRole.FILER,
                reasoning="Wrong deadline",
                now=FRIDAY,
                judgment_deadline=deadline(5, DeadlinePhase.JUDGMENT, FRIDAY, FRIDAY),
            )


class TestArchive:
    """Tests for UPHELD|DENIED -> ARCHIVED."""

    def test_archive_blocked_while_appeal_window_open(self) -> None:
        with pytest.raises(InvalidTransitionError) as exc_info:
            ruled().archive(FRIDAY + timedelta(days=1))
        assert exc_info.value.guard == "appeal_window_elapsed"

    def test_archive_after_appeal_window_expires_deadline(self) -> None:
        now = FRIDAY + timedelta(days=6)
        archived = ruled().archive(now)

        assert archived.status == ChallengeStatus.ARCHIVED
        assert archived.archived_at == now
        assert archived.deadline_by_id(4).status == DeadlineStatus.EXPIRED
        assert archived.is_terminal

    def test_non_appealable_ruling_archives_immediately(self) -> None:
        assert ruled(appealable=False).archive(FRIDAY).status == ChallengeStatus.ARCHIVED

    def test_archived_rejects_custody_events(self) -> None:
        archived = ruled(appealable=False).archive(FRIDAY)
        with pytest.raises(InvalidTransitionError) as exc_info:
            archived.attach_document(_document(1), FRIDAY)
        assert exc_info.value.guard == "challenge_not_archived"


class TestDeadlineOperations:
    """Tests for expiry and extension of deadlines owned by the challenge."""

    def test_expire_requires_overdue(self) -> None:
        with pytest.raises(ValueError, match="not overdue"):
            awaiting_defense().expire_deadline(1, FRIDAY)

    def test_expire_unknown_deadline(self) -> None:
        with pytest.raises(DeadlineNotFoundError):
            awaiting_defense().expire_deadline(99, FRIDAY + timedelta(days=30))

    def test_extension_is_single_use(self) -> None:
        new_end = FRIDAY + timedelta(days=10)
        extended = awaiting_defense().extend_deadline(1, new_end, FRIDAY)

        defense = extended.deadline_by_id(1)
        assert defense.window_end == new_end
        assert defense.extended
        with pytest.raises(NotExtendableError) as exc_info:
            extended.extend_deadline(1, new_end + timedelta(days=1), FRIDAY)
        assert exc_info.value.reason == "already_extended"

    def test_appeal_phase_not_extendable(self) -> None:
        with pytest.raises(NotExtendableError) as exc_info:
            ruled().check_extendable(4, FRIDAY)
        assert exc_info.value.reason == "phase_not_extendable"

    def test_met_deadline_not_extendable(self) -> None:
        with pytest.raises(NotExtendableError) as exc_info:
            defense_submitted().check_extendable(1, FRIDAY)
        assert exc_info.value.reason == "deadline_met"

    def test_overdue_deadline_not_extendable(self) -> None:
        with pytest.raises(DeadlineExpiredError):
            awaiting_defense().check_extendable(1, FRIDAY + timedelta(days=8))


class TestDocuments:
    """Tests for append-only documents."""

    def test_attach_requires_next_sequential_id(self) -> None:
        challenge = awaiting_defense().attach_document(_document(1), FRIDAY)

        assert challenge.next_document_id() == 2
        with pytest.raises(ValueError, match="document id must be 2"):
            challenge.attach_document(_document(3), FRIDAY)

    def test_remove_is_a_tombstone(self) -> None:
        challenge = awaiting_defense().attach_document(_document(1), FRIDAY)
        removed = challenge.remove_document(1, FILER_ID, FRIDAY)

        assert len(removed.documents) == 1
        assert removed.documents[0].is_removed
        assert removed.documents[0].removed_by == FILER_ID
        assert removed.visible_documents() == ()

    def test_remove_twice_is_noop(self) -> None:
        removed = (
            awaiting_defense()
            .attach_document(_document(1), FRIDAY)
            .remove_document(1, FILER_ID, FRIDAY)
        )
        assert removed.remove_document(1, FILER_ID, FRIDAY) is removed

    def test_remove_unknown_document(self) -> None:
        with pytest.raises(DocumentNotFoundError):
            awaiting_defense().remove_document(7, FILER_ID, FRIDAY)


class TestAggregateInvariants:
    """Tests for checks run on every constructed challenge."""

    def test_updated_at_never_moves_backwards(self) -> None:
        challenge = awaiting_defense()
        earlier = FRIDAY - timedelta(hours=1)

        updated = challenge.attach_document(_document(1), earlier)

        assert updated.updated_at == FRIDAY
        assert updated.version == challenge.version + 1

    def test_record_request_keeps_version(self) -> None:
        challenge = awaiting_defense()
        recorded = challenge.record_request("submit_defense:abc")

        assert recorded.version == challenge.version
        assert recorded.has_applied("submit_defense:abc")
        assert challenge.record_request(None) is challenge

    def test_target_kind_must_match_type(self) -> None:
        with pytest.raises(ValueError, match="does not match"):
            replace(awaiting_defense(), target=TargetRef(ChallengeType.MEMBER, 77))

    def test_single_active_deadline_per_phase(self) -> None:
        challenge = awaiting_defense()
        second = deadline(9, DeadlinePhase.DEFENSE, FRIDAY, FRIDAY + timedelta(days=1))
        with pytest.raises(ValueError, match="one active deadline per phase"):
            replace(challenge, deadlines=challenge.deadlines + (second,))

    def test_blank_grounds_rejected(self) -> None:
        with pytest.raises(ValueError, match="grounds"):
            replace(awaiting_defense(), grounds="   ")
