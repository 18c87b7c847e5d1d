"""Ballot repository port.

The store enforces uniqueness of (election_id, voter_id) atomically. The
gate never relies on a read-then-write check for exactly-once voting.
"""

from __future__ import annotations

from typing import Protocol

from electoral_engine.domain.models.ballot import Ballot


class BallotRepositoryProtocol(Protocol):
    """Protocol for ballot storage operations."""

    async def insert(self, ballot: Ballot) -> Ballot:
        """Atomically insert a ballot keyed by (election_id, voter_id).

        Args:
            ballot: The ballot to store.

        Returns:
            The stored ballot.

        Raises:
            AlreadyVotedError: If the key already has a ballot. The error
                carries the existing ballot's id and cast time.
        """
        ...

    async def get(self, election_id: int, voter_id: int) -> Ballot | None:
        """Retrieve the voter's ballot for the election, or None."""
        ...

    async def count_by_slate(self, election_id: int) -> dict[int, int]:
        """Count ballots per slate for an election."""
        ...
