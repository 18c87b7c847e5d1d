"""Deadline errors: expired windows and refused extensions."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from electoral_engine.domain.exceptions import ElectoralEngineError


class DeadlineExpiredError(ElectoralEngineError):
    """Raised when an action arrives after its window closed.

    Only raised when no waiver rule applies to the phase.

    Attributes:
        challenge_id: The challenge the action targeted (None for filings).
        phase: Deadline phase value (defense, appeal, ...).
        window_end: The last instant the action was accepted.
        attempted_at: When the action was attempted.
    """

    problem_type = "urn:electoral-engine:deadline:expired"
    title = "Deadline Expired"
    http_status = 409

    def __init__(
        self,
        challenge_id: int | None,
        phase: str,
        window_end: datetime,
        attempted_at: datetime,
    ) -> None:
        self.challenge_id = challenge_id
        self.phase = phase
        self.window_end = window_end
        self.attempted_at = attempted_at
        super().__init__(
            f"The {phase} window closed at {window_end.isoformat()}; "
            f"action attempted at {attempted_at.isoformat()}"
        )

    def problem_extensions(self) -> dict[str, Any]:
        return {
            "challenge_id": self.challenge_id,
            "phase": self.phase,
            "window_end": self.window_end.isoformat(),
            "attempted_at": self.attempted_at.isoformat(),
        }


class NotExtendableError(ElectoralEngineError):
    """Raised when a deadline cannot be extended.

    Reasons: the phase is not extendable, the deadline was already extended
    once, or it is no longer active.
    """

    problem_type = "urn:electoral-engine:deadline:not-extendable"
    title = "Deadline Not Extendable"
    http_status = 409

    def __init__(self, deadline_id: int, reason: str) -> None:
        self.deadline_id = deadline_id
        self.reason = reason
        super().__init__(f"Deadline {deadline_id} cannot be extended: {reason}")

    def problem_extensions(self) -> dict[str, Any]:
        return {"deadline_id": self.deadline_id, "reason": self.reason}
