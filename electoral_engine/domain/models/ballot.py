"""Ballot domain model.

A Ballot records that a voter cast a vote for a slate in an election.
The pair (election_id, voter_id) is unique; the ballot store enforces it
atomically.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


def compute_receipt_code(ballot_id: UUID, election_id: int, cast_at: datetime) -> str:
    """Derive the voter-facing receipt code for a ballot.

    The code proves a ballot was recorded without revealing the chosen
    slate.

    Returns:
        Upper-case hex string of 16 characters.
    """
    material = f"{ballot_id}:{election_id}:{cast_at.isoformat()}".encode()
    return hashlib.sha256(material).hexdigest()[:16].upper()


@dataclass(frozen=True, eq=True)
class Ballot:
    """A cast ballot.

    Attributes:
        ballot_id: Unique ballot identifier.
        election_id: The election.
        voter_id: The voter (unique per election).
        slate_id: The chosen slate.
        cast_at: When the ballot was accepted (UTC).
        receipt_code: Code returned to the voter.
    """

    ballot_id: UUID
    election_id: int
    voter_id: int
    slate_id: int
    cast_at: datetime
    receipt_code: str = field(default="")

    def __post_init__(self) -> None:
        if self.cast_at.tzinfo is None:
            raise ValueError("cast_at must be timezone-aware (UTC)")
        if not self.receipt_code:
            object.__setattr__(
                self,
                "receipt_code",
                compute_receipt_code(self.ballot_id, self.election_id, self.cast_at),
            )

    @property
    def key(self) -> tuple[int, int]:
        """Uniqueness key (election_id, voter_id)."""
        return (self.election_id, self.voter_id)
