"""Unit tests for the Deadline model."""

from __future__ import annotations

from datetime import timedelta

import pytest

from electoral_engine.domain.models import (
    EXTENDABLE_PHASES,
    Deadline,
    DeadlinePhase,
    DeadlineStatus,
)
from tests.helpers.builders import FRIDAY, deadline

END = FRIDAY + timedelta(days=7)


class TestDeadlineWindow:
    """Tests for the closed window [window_start, window_end]."""

    def test_open_at_window_end(self) -> None:
        d = deadline(1, DeadlinePhase.DEFENSE, FRIDAY, END)
        assert d.is_open_at(END)
        assert not d.is_overdue(END)

    def test_overdue_one_microsecond_after(self) -> None:
        d = deadline(1, DeadlinePhase.DEFENSE, FRIDAY, END)
        moment = END + timedelta(microseconds=1)
        assert not d.is_open_at(moment)
        assert d.is_overdue(moment)

    def test_closed_deadline_is_neither_open_nor_overdue(self) -> None:
        met = deadline(1, DeadlinePhase.DEFENSE, FRIDAY, END).mark_met(FRIDAY)
        assert not met.is_open_at(FRIDAY)
        assert not met.is_overdue(END + timedelta(days=1))


class TestDeadlineLifecycle:
    """Tests for ACTIVE -> MET | EXPIRED."""

    def test_mark_met_sets_closed_at(self) -> None:
        met = deadline(1, DeadlinePhase.DEFENSE, FRIDAY, END).mark_met(FRIDAY)
        assert met.status == DeadlineStatus.MET
        assert met.closed_at == FRIDAY

    def test_terminal_status_cannot_change(self) -> None:
        expired = deadline(1, DeadlinePhase.APPEAL, FRIDAY, END).mark_expired(END)
        with pytest.raises(ValueError, match="not active"):
            expired.mark_met(END)
        with pytest.raises(ValueError, match="not active"):
            expired.mark_expired(END)

    def test_terminal_status_requires_closed_at(self) -> None:
        with pytest.raises(ValueError, match="requires closed_at"):
            Deadline(
                id=1,
                phase=DeadlinePhase.DEFENSE,
                window_start=FRIDAY,
                window_end=END,
                status=DeadlineStatus.MET,
            )

    def test_status_transition_table(self) -> None:
        assert DeadlineStatus.ACTIVE.can_transition_to(DeadlineStatus.MET)
        assert DeadlineStatus.ACTIVE.can_transition_to(DeadlineStatus.EXPIRED)
        assert not DeadlineStatus.MET.can_transition_to(DeadlineStatus.EXPIRED)
        assert DeadlineStatus.EXPIRED.is_terminal()


class TestDeadlineValidation:
    """Tests for construction checks."""

    def test_window_must_be_timezone_aware(self) -> None:
        with pytest.raises(ValueError, match="timezone-aware"):
            Deadline(
                id=1,
                phase=DeadlinePhase.DEFENSE,
                window_start=FRIDAY.replace(tzinfo=None),
                window_end=END.replace(tzinfo=None),
            )

    def test_window_end_not_before_start(self) -> None:
        with pytest.raises(ValueError, match="must not precede"):
            deadline(1, DeadlinePhase.DEFENSE, END, FRIDAY)

    def test_non_extendable_cannot_be_extended(self) -> None:
        with pytest.raises(ValueError, match="cannot be extended"):
            Deadline(
                id=1,
                phase=DeadlinePhase.APPEAL,
                window_start=FRIDAY,
                window_end=END,
                extended=True,
            )

    def test_extension_must_move_forward(self) -> None:
        d = deadline(1, DeadlinePhase.JUDGMENT, FRIDAY, END)
        with pytest.raises(ValueError, match="forward"):
            d.with_extension(END)

    def test_extendable_phases(self) -> None:
        assert EXTENDABLE_PHASES == {DeadlinePhase.DEFENSE, DeadlinePhase.JUDGMENT}
