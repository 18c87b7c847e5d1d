"""In-memory challenge repository stub.

Implements ChallengeRepositoryProtocol for development wiring and tests.
It is NOT suitable for production use.

Compare-and-swap writes are serialized per challenge with an asyncio.Lock;
writes to different challenges never share a lock.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from datetime import datetime

from electoral_engine.application.dtos.requests import ChallengeListOptions
from electoral_engine.application.ports.challenge_repository import (
    ChallengeRepositoryProtocol,
)
from electoral_engine.domain.errors import (
    ChallengeNotFoundError,
    ConcurrencyConflictError,
)
from electoral_engine.domain.models.challenge import (
    Challenge,
    ChallengeStatus,
    ChallengeType,
)


class ChallengeRepositoryStub(ChallengeRepositoryProtocol):
    """In-memory implementation of ChallengeRepositoryProtocol.

    Attributes:
        _challenges: Challenges by id.
        _by_protocol: Unique index protocol number -> id.
        _locks: One CAS lock per challenge id.
    """

    def __init__(self) -> None:
        """Initialize the stub with empty storage."""
        self._challenges: dict[int, Challenge] = {}
        self._by_protocol: dict[str, int] = {}
        self._locks: dict[int, asyncio.Lock] = {}
        self._add_lock = asyncio.Lock()
        self._challenge_seq = 0
        self._deadline_seq = 0
        self.save_calls = 0

    async def next_challenge_id(self) -> int:
        self._challenge_seq += 1
        return self._challenge_seq

    async def next_deadline_id(self) -> int:
        self._deadline_seq += 1
        return self._deadline_seq

    async def add(self, challenge: Challenge) -> Challenge:
        """Store a new challenge, or return the one that owns its filing key.

        Raises:
            ValueError: If the id or protocol number is already taken.
        """
        async with self._add_lock:
            for existing in self._challenges.values():
                if existing.applied_requests & challenge.applied_requests:
                    return existing
            if challenge.id in self._challenges:
                raise ValueError(f"Challenge already exists: {challenge.id}")
            if challenge.protocol_number in self._by_protocol:
                raise ValueError(
                    f"Protocol number already exists: {challenge.protocol_number}"
                )
            self._challenges[challenge.id] = challenge
            self._by_protocol[challenge.protocol_number] = challenge.id
            return challenge

    async def get(self, challenge_id: int) -> Challenge | None:
        # Yield like a real store so concurrent callers interleave
        await asyncio.sleep(0)
        return self._challenges.get(challenge_id)

    async def get_by_protocol(self, protocol_number: str) -> Challenge | None:
        challenge_id = self._by_protocol.get(protocol_number)
        if challenge_id is None:
            return None
        return self._challenges.get(challenge_id)

    async def find_by_request_key(self, request_key: str) -> Challenge | None:
        for challenge in self._challenges.values():
            if challenge.has_applied(request_key):
                return challenge
        return None

    async def save(self, challenge: Challenge, expected_version: int) -> Challenge:
        """Compare-and-swap write.

        Raises:
            ChallengeNotFoundError: Unknown challenge.
            ConcurrencyConflictError: Stored version differs from expected.
        """
        lock = self._locks.setdefault(challenge.id, asyncio.Lock())
        async with lock:
            stored = self._challenges.get(challenge.id)
            if stored is None:
                raise ChallengeNotFoundError(challenge_id=challenge.id)
            if stored.version != expected_version:
                raise ConcurrencyConflictError(
                    challenge_id=challenge.id,
                    expected_version=expected_version,
                    actual_version=stored.version,
                )
            if challenge.protocol_number != stored.protocol_number:
                raise ValueError("protocol number is immutable")
            self._challenges[challenge.id] = challenge
            self.save_calls += 1
            return challenge

    async def list_challenges(
        self, options: ChallengeListOptions
    ) -> tuple[list[Challenge], int]:
        matching = [c for c in self._challenges.values() if _matches(c, options)]
        matching.sort(key=lambda c: (c.created_at, c.id), reverse=True)
        total = len(matching)
        return matching[options.offset : options.offset + options.limit], total

    async def list_due_for_expiry(
        self, now: datetime, limit: int
    ) -> list[Challenge]:
        due = [
            c
            for c in self._challenges.values()
            if any(d.is_overdue(now) for d in c.deadlines)
        ]
        due.sort(key=lambda c: c.id)
        return due[:limit]

    async def list_pending_followups(self, limit: int) -> list[Challenge]:
        pending = [
            c for c in self._challenges.values() if c.pending_expiry_followups()
        ]
        pending.sort(key=lambda c: c.id)
        return pending[:limit]

    async def count_by_status_and_type(
        self, election_id: int | None
    ) -> dict[tuple[ChallengeStatus, ChallengeType], int]:
        counts: Counter[tuple[ChallengeStatus, ChallengeType]] = Counter(
            (c.status, c.type)
            for c in self._challenges.values()
            if election_id is None or c.election_id == election_id
        )
        return dict(counts)

    # Test helpers

    def put(self, challenge: Challenge) -> None:
        """Store a challenge directly, bypassing CAS (test setup only)."""
        self._challenges[challenge.id] = challenge
        self._by_protocol[challenge.protocol_number] = challenge.id
        self._challenge_seq = max(self._challenge_seq, challenge.id)
        self._deadline_seq = max(
            self._deadline_seq, max((d.id for d in challenge.deadlines), default=0)
        )

    def clear(self) -> None:
        self._challenges.clear()
        self._by_protocol.clear()
        self._locks.clear()
        self._challenge_seq = 0
        self._deadline_seq = 0
        self.save_calls = 0

    def __len__(self) -> int:
        return len(self._challenges)


def _matches(challenge: Challenge, options: ChallengeListOptions) -> bool:
    if options.election_id is not None and challenge.election_id != options.election_id:
        return False
    if options.status is not None and challenge.status != options.status:
        return False
    if options.type is not None and challenge.type != options.type:
        return False
    if options.filer_id is not None and challenge.filer.id != options.filer_id:
        return False
    if options.target_kind is not None and challenge.target.kind != options.target_kind:
        return False
    if (
        options.protocol_number is not None
        and challenge.protocol_number != options.protocol_number
    ):
        return False
    if options.filed_from is not None and challenge.created_at < options.filed_from:
        return False
    if options.filed_to is not None and challenge.created_at > options.filed_to:
        return False
    return True
