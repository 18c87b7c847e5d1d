"""Ballot event payloads.

The cast event deliberately omits the chosen slate: subscribers learn
that a voter voted, never how.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar
from uuid import UUID

BALLOT_CAST_EVENT_TYPE: str = "ballot.cast"


@dataclass(frozen=True, eq=True)
class BallotCastEvent:
    """Payload for an accepted ballot.

    Attributes:
        ballot_id: The stored ballot.
        election_id: The election.
        voter_id: The voter.
        cast_at: When the ballot was accepted (UTC).
    """

    event_type: ClassVar[str] = BALLOT_CAST_EVENT_TYPE

    ballot_id: UUID
    election_id: int
    voter_id: int
    cast_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "ballot_id": str(self.ballot_id),
            "election_id": self.election_id,
            "voter_id": self.voter_id,
            "cast_at": self.cast_at.isoformat(),
        }
