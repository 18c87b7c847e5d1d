"""In-memory eligibility roll stub.

Every voter is eligible unless denied with `deny()`.
"""

from __future__ import annotations

from electoral_engine.application.ports.eligibility_roll import (
    EligibilityDecision,
    EligibilityRollProtocol,
)


class EligibilityRollStub(EligibilityRollProtocol):
    """Configurable eligibility roll.

    Attributes:
        calls: Number of checks performed.
    """

    def __init__(self) -> None:
        self._denied: dict[tuple[int, int], str] = {}
        self._failure: Exception | None = None
        self.calls = 0

    async def check(self, election_id: int, voter_id: int) -> EligibilityDecision:
        self.calls += 1
        if self._failure is not None:
            raise self._failure
        reason = self._denied.get((election_id, voter_id))
        if reason is not None:
            return EligibilityDecision(eligible=False, reason=reason)
        return EligibilityDecision(eligible=True)

    # Test helpers

    def deny(self, election_id: int, voter_id: int, reason: str) -> None:
        self._denied[(election_id, voter_id)] = reason

    def fail_with(self, error: Exception | None) -> None:
        self._failure = error
