"""Challenge repository port.

Defines the persistence contract for challenges and the deadlines they
own. Every write after creation is an optimistic compare-and-swap on the
challenge version.

Logical layout:
- challenges by id, with a unique index on protocol number
- deadlines by id, indexed by (challenge_id, phase)
- idempotency keys by challenge
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from electoral_engine.application.dtos.requests import ChallengeListOptions
from electoral_engine.domain.models.challenge import (
    Challenge,
    ChallengeStatus,
    ChallengeType,
)


class ChallengeRepositoryProtocol(Protocol):
    """Protocol for challenge storage operations.

    Implementations may use a relational store, in-memory storage, or
    other backends. Repositories raise on integrity errors; they never
    log-and-continue.
    """

    async def next_challenge_id(self) -> int:
        """Reserve the next challenge id. Gaps are allowed."""
        ...

    async def next_deadline_id(self) -> int:
        """Reserve the next deadline id. Gaps are allowed."""
        ...

    async def add(self, challenge: Challenge) -> Challenge:
        """Store a newly filed challenge.

        If another challenge already carries one of the new challenge's
        idempotency keys, nothing is written and that challenge is
        returned instead.

        Args:
            challenge: The challenge to store.

        Returns:
            The stored challenge (the new one, or the replayed original).

        Raises:
            ValueError: If the id or protocol number already exists.
        """
        ...

    async def get(self, challenge_id: int) -> Challenge | None:
        """Retrieve a challenge by id, or None."""
        ...

    async def get_by_protocol(self, protocol_number: str) -> Challenge | None:
        """Retrieve a challenge by protocol number, or None."""
        ...

    async def find_by_request_key(self, request_key: str) -> Challenge | None:
        """Find the challenge an idempotency key was applied to, or None."""
        ...

    async def save(self, challenge: Challenge, expected_version: int) -> Challenge:
        """Compare-and-swap write of a modified challenge.

        The write succeeds only if the stored version equals
        `expected_version`. Status, deadlines, rulings and idempotency keys
        are written together.

        Args:
            challenge: The new state (its version is expected_version + 1).
            expected_version: The version the writer read.

        Returns:
            The stored challenge.

        Raises:
            ChallengeNotFoundError: If the challenge does not exist.
            ConcurrencyConflictError: If the stored version differs.
        """
        ...

    async def list_challenges(
        self, options: ChallengeListOptions
    ) -> tuple[list[Challenge], int]:
        """List challenges matching the options, newest first.

        Returns:
            Tuple of (page of challenges, total count matching).
        """
        ...

    async def list_due_for_expiry(
        self, now: datetime, limit: int
    ) -> list[Challenge]:
        """Challenges holding an active deadline with window_end < now."""
        ...

    async def list_pending_followups(self, limit: int) -> list[Challenge]:
        """Challenges with an expired deadline whose follow-up is pending.

        See Challenge.pending_expiry_followups().
        """
        ...

    async def count_by_status_and_type(
        self, election_id: int | None
    ) -> dict[tuple[ChallengeStatus, ChallengeType], int]:
        """Count challenges grouped by (status, type)."""
        ...
