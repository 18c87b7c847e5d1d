"""Read-only views of externally owned election data.

Elections, slates and challenge targets are owned by other systems. The
engine only consumes snapshots of them through its ports and never
mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from electoral_engine.domain.models.challenge import TargetRef


class ElectionStatus(str, Enum):
    """Election status as reported by the election registry."""

    PLANNED = "planned"
    ACTIVE = "active"
    FINISHED = "finished"

    def is_votable(self) -> bool:
        return self is ElectionStatus.ACTIVE


@dataclass(frozen=True, eq=True)
class ElectionView:
    """Snapshot of an election.

    Attributes:
        id: Election identifier.
        status: Current status. Only ACTIVE accepts ballots.
        slate_ids: Slates registered in the election.
        challenge_filing_starts_at: Start of the challenge filing window.
        challenge_filing_ends_at: End of the challenge filing window.
    """

    id: int
    status: ElectionStatus
    slate_ids: frozenset[int] = field(default=frozenset())
    challenge_filing_starts_at: datetime | None = field(default=None)
    challenge_filing_ends_at: datetime | None = field(default=None)

    def __post_init__(self) -> None:
        if (
            self.challenge_filing_starts_at is not None
            and self.challenge_filing_ends_at is not None
            and self.challenge_filing_ends_at < self.challenge_filing_starts_at
        ):
            raise ValueError("challenge filing window ends before it starts")

    @property
    def is_votable(self) -> bool:
        return self.status.is_votable()

    def has_slate(self, slate_id: int) -> bool:
        return slate_id in self.slate_ids


@dataclass(frozen=True, eq=True)
class TargetView:
    """Snapshot of a challenged entity (slate, member or document).

    Attributes:
        ref: The tagged reference that resolved to this view.
        election_id: Election the entity belongs to.
        responsible_party_id: Party answering for the entity (the slate's
            representative, the member, or the document's owner).
    """

    ref: TargetRef
    election_id: int
    responsible_party_id: int
