"""Eligibility roll port.

The roll decides whether a voter may vote (registration, dues, standing).
Its answer is authoritative for the attempt; the gate does not second-guess
it or cache it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True, eq=True)
class EligibilityDecision:
    """The roll's answer for one voter.

    Attributes:
        eligible: Whether the voter may vote.
        reason: Why not, when not eligible.
    """

    eligible: bool
    reason: str | None = field(default=None)


class EligibilityRollProtocol(Protocol):
    """Protocol for the external eligibility roll."""

    async def check(self, election_id: int, voter_id: int) -> EligibilityDecision:
        """Decide whether the voter is on the roll for the election."""
        ...
