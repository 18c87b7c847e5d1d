"""Deadline event payloads.

DeadlineExpiredEvent is emitted exactly once per deadline, by the sweep
that won the compare-and-swap marking it expired. Internal subscribers
(the lifecycle service) react to it with system transitions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar

DEADLINE_EXPIRED_EVENT_TYPE: str = "deadline.expired"
DEADLINE_EXTENDED_EVENT_TYPE: str = "deadline.extended"


@dataclass(frozen=True, eq=True)
class DeadlineExpiredEvent:
    """Payload for an expired deadline.

    Attributes:
        challenge_id: Owning challenge.
        deadline_id: The deadline that expired.
        phase: Deadline phase value.
        instance: Adjudication instance of the deadline.
        window_end: The instant the window closed.
        expired_at: When the sweep observed the expiry (UTC).
    """

    event_type: ClassVar[str] = DEADLINE_EXPIRED_EVENT_TYPE

    challenge_id: int
    deadline_id: int
    phase: str
    instance: int
    window_end: datetime
    expired_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "challenge_id": self.challenge_id,
            "deadline_id": self.deadline_id,
            "phase": self.phase,
            "instance": self.instance,
            "window_end": self.window_end.isoformat(),
            "expired_at": self.expired_at.isoformat(),
        }


@dataclass(frozen=True, eq=True)
class DeadlineExtendedEvent:
    """Payload for a deadline pushed forward by its single extension."""

    event_type: ClassVar[str] = DEADLINE_EXTENDED_EVENT_TYPE

    challenge_id: int
    deadline_id: int
    phase: str
    previous_window_end: datetime
    new_window_end: datetime
    occurred_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "challenge_id": self.challenge_id,
            "deadline_id": self.deadline_id,
            "phase": self.phase,
            "previous_window_end": self.previous_window_end.isoformat(),
            "new_window_end": self.new_window_end.isoformat(),
            "occurred_at": self.occurred_at.isoformat(),
        }
