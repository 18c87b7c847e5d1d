"""In-memory ballot repository stub.

Inserts are serialized per (election_id, voter_id) key only, so ballots of
different voters never wait on each other.
"""

from __future__ import annotations

import asyncio
from collections import Counter

from electoral_engine.application.ports.ballot_repository import (
    BallotRepositoryProtocol,
)
from electoral_engine.domain.errors import AlreadyVotedError
from electoral_engine.domain.models.ballot import Ballot


class BallotRepositoryStub(BallotRepositoryProtocol):
    """In-memory implementation of BallotRepositoryProtocol.

    Attributes:
        _ballots: Ballots keyed by (election_id, voter_id).
        _locks: Insert locks for keys that have no ballot yet. A key's lock
            is dropped once its ballot is stored.
    """

    def __init__(self) -> None:
        self._ballots: dict[tuple[int, int], Ballot] = {}
        self._locks: dict[tuple[int, int], asyncio.Lock] = {}

    async def insert(self, ballot: Ballot) -> Ballot:
        """Insert a ballot unless its key already has one.

        Raises:
            AlreadyVotedError: The key already has a ballot.
        """
        self._raise_if_voted(ballot)
        lock = self._locks.setdefault(ballot.key, asyncio.Lock())
        async with lock:
            # Yield inside the critical section like a real round-trip
            await asyncio.sleep(0)
            self._raise_if_voted(ballot)
            self._ballots[ballot.key] = ballot
            # The stored ballot now rejects every later insert for the key
            self._locks.pop(ballot.key, None)
            return ballot

    def _raise_if_voted(self, ballot: Ballot) -> None:
        existing = self._ballots.get(ballot.key)
        if existing is not None:
            raise AlreadyVotedError(
                election_id=ballot.election_id,
                voter_id=ballot.voter_id,
                existing_ballot_id=existing.ballot_id,
                cast_at=existing.cast_at,
            )

    async def get(self, election_id: int, voter_id: int) -> Ballot | None:
        return self._ballots.get((election_id, voter_id))

    async def count_by_slate(self, election_id: int) -> dict[int, int]:
        counts: Counter[int] = Counter(
            b.slate_id for b in self._ballots.values() if b.election_id == election_id
        )
        return dict(counts)

    # Test helpers

    def all_ballots(self) -> list[Ballot]:
        return list(self._ballots.values())

    def clear(self) -> None:
        self._ballots.clear()
        self._locks.clear()
