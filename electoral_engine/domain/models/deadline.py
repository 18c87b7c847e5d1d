"""Deadline (prazo) domain model.

A Deadline is a bounded window in which the action required by a phase
of a challenge must occur. Deadlines are owned exclusively by their
challenge and are never shared.

Lifecycle:
    ACTIVE -> MET      (phase action recorded at or before window_end)
    ACTIVE -> EXPIRED  (sweep observed now > window_end with no action)
    MET, EXPIRED       (terminal)

An ACTIVE deadline may be extended once, if its phase is extendable and
only before it expires.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class DeadlinePhase(str, Enum):
    """Phase of a challenge a deadline belongs to."""

    FILING = "filing"
    """Window in which challenges may be filed for the election."""

    DEFENSE = "defense"
    """Window in which the challenged party may submit a defense."""

    JUDGMENT = "judgment"
    """Window in which the commission should render a ruling."""

    APPEAL = "appeal"
    """Window after a ruling in which a party may appeal."""


class DeadlineStatus(str, Enum):
    """Status of a deadline."""

    ACTIVE = "active"
    MET = "met"
    EXPIRED = "expired"

    def is_terminal(self) -> bool:
        """Check if this is a terminal status.

        Returns:
            True if MET or EXPIRED, False otherwise.
        """
        return self in (DeadlineStatus.MET, DeadlineStatus.EXPIRED)

    def can_transition_to(self, target: DeadlineStatus) -> bool:
        """Check if transition to target status is valid.

        Args:
            target: The target status.

        Returns:
            True if the transition is valid, False otherwise.
        """
        if self is DeadlineStatus.ACTIVE:
            return target in (DeadlineStatus.MET, DeadlineStatus.EXPIRED)
        return False


# Phases whose deadlines may be extended once
EXTENDABLE_PHASES: frozenset[DeadlinePhase] = frozenset(
    {DeadlinePhase.DEFENSE, DeadlinePhase.JUDGMENT}
)


@dataclass(frozen=True, eq=True)
class Deadline:
    """A phase deadline on a challenge.

    Attributes:
        id: Unique deadline identifier (repository-assigned).
        phase: The phase this deadline governs.
        window_start: When the window opened (UTC).
        window_end: Last instant at which the action is accepted (UTC).
        instance: Adjudication tier the deadline belongs to.
        status: Current status.
        extendable: Whether the deadline may be extended once.
        extended: Whether the single extension has been used.
        closed_at: When the deadline was met or expired (UTC, nullable).
    """

    id: int
    phase: DeadlinePhase
    window_start: datetime
    window_end: datetime
    instance: int = field(default=1)
    status: DeadlineStatus = field(default=DeadlineStatus.ACTIVE)
    extendable: bool = field(default=False)
    extended: bool = field(default=False)
    closed_at: datetime | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate deadline fields.

        Raises:
            ValueError: If any field validation fails.
        """
        if self.window_start.tzinfo is None or self.window_end.tzinfo is None:
            raise ValueError("deadline window must be timezone-aware (UTC)")
        if self.window_end < self.window_start:
            raise ValueError("window_end must not precede window_start")
        if self.instance < 1:
            raise ValueError(f"instance must be >= 1, got {self.instance}")
        if self.extended and not self.extendable:
            raise ValueError("a non-extendable deadline cannot be extended")
        if self.status.is_terminal() and self.closed_at is None:
            raise ValueError(f"{self.status.value} deadline requires closed_at")

    @property
    def is_active(self) -> bool:
        """Whether the deadline is still waiting for its action."""
        return self.status == DeadlineStatus.ACTIVE

    def is_open_at(self, moment: datetime) -> bool:
        """Whether an action at `moment` falls inside the window.

        The window is closed on both ends: an action exactly at window_end
        is accepted.
        """
        return self.is_active and moment <= self.window_end

    def is_overdue(self, moment: datetime) -> bool:
        """Whether the deadline is active but its window has passed."""
        return self.is_active and moment > self.window_end

    def mark_met(self, at: datetime) -> Deadline:
        """Return a copy marked MET.

        Raises:
            ValueError: If the deadline is not active.
        """
        if not self.status.can_transition_to(DeadlineStatus.MET):
            raise ValueError(f"deadline {self.id} is {self.status.value}, not active")
        return replace(self, status=DeadlineStatus.MET, closed_at=at)

    def mark_expired(self, at: datetime) -> Deadline:
        """Return a copy marked EXPIRED.

        Raises:
            ValueError: If the deadline is not active.
        """
        if not self.status.can_transition_to(DeadlineStatus.EXPIRED):
            raise ValueError(f"deadline {self.id} is {self.status.value}, not active")
        return replace(self, status=DeadlineStatus.EXPIRED, closed_at=at)

    def with_extension(self, new_window_end: datetime) -> Deadline:
        """Return a copy with the window pushed to new_window_end.

        Callers check extendability first; this only enforces shape.

        Raises:
            ValueError: If the new end does not move the window forward.
        """
        if new_window_end <= self.window_end:
            raise ValueError("extension must move window_end forward")
        return replace(self, window_end=new_window_end, extended=True)
