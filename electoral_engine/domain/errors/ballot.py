"""Ballot gate errors.

A denied vote always leaves the ballot store untouched; these errors are
raised before or instead of the insert.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from electoral_engine.domain.exceptions import ElectoralEngineError


class AlreadyVotedError(ElectoralEngineError):
    """Raised when (election_id, voter_id) already has a ballot.

    Carries the existing ballot so a client retrying after a timeout can
    recover its receipt.

    Attributes:
        election_id: The election.
        voter_id: The voter.
        existing_ballot_id: Id of the ballot already stored (if known).
        cast_at: When the existing ballot was cast (if known).
    """

    problem_type = "urn:electoral-engine:ballot:already-voted"
    title = "Already Voted"
    http_status = 409

    def __init__(
        self,
        election_id: int,
        voter_id: int,
        existing_ballot_id: UUID | None = None,
        cast_at: datetime | None = None,
    ) -> None:
        self.election_id = election_id
        self.voter_id = voter_id
        self.existing_ballot_id = existing_ballot_id
        self.cast_at = cast_at
        super().__init__(
            f"Voter {voter_id} has already cast a ballot in election {election_id}"
        )

    def problem_extensions(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "election_id": self.election_id,
            "voter_id": self.voter_id,
        }
        if self.existing_ballot_id is not None:
            result["existing_ballot_id"] = str(self.existing_ballot_id)
        if self.cast_at is not None:
            result["cast_at"] = self.cast_at.isoformat()
        return result


class ElectionNotOpenError(ElectoralEngineError):
    """Raised when a ballot targets an election that is not active."""

    problem_type = "urn:electoral-engine:election:not-open"
    title = "Election Not Open"
    http_status = 409

    def __init__(
        self, election_id: int, status: str, message: str | None = None
    ) -> None:
        self.election_id = election_id
        self.status = status
        super().__init__(
            message
            or f"Election {election_id} is not open for voting (status: {status})"
        )

    def problem_extensions(self) -> dict[str, Any]:
        return {"election_id": self.election_id, "status": self.status}


class ElectionNotFinishedError(ElectionNotOpenError):
    """Raised when results are requested before the election finished."""

    problem_type = "urn:electoral-engine:election:not-finished"
    title = "Election Not Finished"

    def __init__(self, election_id: int, status: str) -> None:
        super().__init__(
            election_id,
            status,
            f"Election {election_id} has not finished (status: {status})",
        )


class VoterNotEligibleError(ElectoralEngineError):
    """Raised when the eligibility roll refuses the voter.

    The roll's answer is final for the attempt; the reason is passed
    through verbatim.
    """

    problem_type = "urn:electoral-engine:ballot:not-eligible"
    title = "Voter Not Eligible"
    http_status = 403

    def __init__(self, election_id: int, voter_id: int, reason: str | None) -> None:
        self.election_id = election_id
        self.voter_id = voter_id
        self.reason = reason
        super().__init__(
            f"Voter {voter_id} is not eligible for election {election_id}"
            + (f": {reason}" if reason else "")
        )

    def problem_extensions(self) -> dict[str, Any]:
        return {
            "election_id": self.election_id,
            "voter_id": self.voter_id,
            "reason": self.reason,
        }
