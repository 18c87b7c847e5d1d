"""Errors for the challenge state machine.

InvalidTransitionError is raised whenever a transition is requested from a
status that does not allow it, or when one of the transition's guards is
violated. It is never silently ignored.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from electoral_engine.domain.exceptions import ElectoralEngineError

if TYPE_CHECKING:
    from electoral_engine.domain.models.challenge import (
        ChallengeEvent,
        ChallengeStatus,
    )


class InvalidTransitionError(ElectoralEngineError):
    """Raised when a transition is illegal in the current state.

    Attributes:
        challenge_id: The challenge the transition was requested on.
        current_status: Status of the challenge when the request was evaluated.
        event: The requested transition event.
        guard: Name of the violated guard.
    """

    problem_type = "urn:electoral-engine:challenge:invalid-transition"
    title = "Invalid Transition"
    http_status = 409

    def __init__(
        self,
        challenge_id: int,
        current_status: ChallengeStatus,
        event: ChallengeEvent,
        guard: str,
    ) -> None:
        self.challenge_id = challenge_id
        self.current_status = current_status
        self.event = event
        self.guard = guard
        super().__init__(
            f"Cannot apply '{event.value}' to challenge {challenge_id} "
            f"in status '{current_status.value}': guard '{guard}' violated"
        )

    def problem_extensions(self) -> dict[str, Any]:
        return {
            "challenge_id": self.challenge_id,
            "current_status": self.current_status.value,
            "event": self.event.value,
            "guard": self.guard,
        }


class ChallengeValidationError(ElectoralEngineError):
    """Raised when a filing or request payload is semantically invalid.

    Shape validation is done by the request models; this error covers rules
    that need the election or target context, e.g. a target that belongs to
    a different election.
    """

    problem_type = "urn:electoral-engine:challenge:validation"
    title = "Challenge Validation Failed"
    http_status = 422

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)

    def problem_extensions(self) -> dict[str, Any]:
        return {"field": self.field}
