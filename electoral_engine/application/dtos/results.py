"""Result objects returned by the engine's services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, eq=True)
class DeadlineSweepResult:
    """Outcome of one deadline sweep.

    Attributes:
        expired: Deadlines this pass marked EXPIRED.
        skipped: Candidates found already met or expired on re-read.
        failed: Expiry writes or subscriber deliveries that failed; they
            are retried on the next pass.
        reconciled: Follow-up transitions re-delivered for deadlines that
            expired in an earlier pass.
        duration_seconds: Wall time spent in the sweep.
    """

    expired: int = 0
    skipped: int = 0
    failed: int = 0
    reconciled: int = 0
    duration_seconds: float = 0.0

    @property
    def examined(self) -> int:
        return self.expired + self.skipped + self.failed

    @property
    def had_failures(self) -> bool:
        return self.failed > 0


@dataclass(frozen=True, eq=True)
class BallotReceipt:
    """Proof returned to the voter after a ballot is stored."""

    ballot_id: UUID
    election_id: int
    cast_at: datetime
    receipt_code: str


@dataclass(frozen=True, eq=True)
class EligibilityResult:
    """Read-only answer to "may this voter vote now?".

    Attributes:
        election_id: The election.
        voter_id: The voter.
        can_vote: True only if a ballot would be accepted right now.
        already_voted: Whether a ballot is already stored.
        reason: Why the voter cannot vote (None when can_vote).
    """

    election_id: int
    voter_id: int
    can_vote: bool
    already_voted: bool
    reason: str | None = field(default=None)


@dataclass(frozen=True, eq=True)
class VotingStatus:
    """Whether a voter has voted, with the receipt when they have."""

    election_id: int
    voter_id: int
    has_voted: bool
    ballot_id: UUID | None = field(default=None)
    cast_at: datetime | None = field(default=None)
    receipt_code: str | None = field(default=None)


@dataclass(frozen=True, eq=True)
class TallyResult:
    """Ballot counts per slate for a finished election.

    Slates without ballots are reported with zero.
    """

    election_id: int
    counts: dict[int, int]
    total_ballots: int

    def winner(self) -> int | None:
        """Slate with the most ballots, or None on a tie or no ballots."""
        if not self.counts or self.total_ballots == 0:
            return None
        best = max(self.counts.values())
        leaders = [slate for slate, count in self.counts.items() if count == best]
        return leaders[0] if len(leaders) == 1 else None


@dataclass(frozen=True, eq=True)
class ChallengeStatistics:
    """Challenge counts per status and per type."""

    election_id: int | None
    total: int
    by_status: dict[str, int]
    by_type: dict[str, int]
