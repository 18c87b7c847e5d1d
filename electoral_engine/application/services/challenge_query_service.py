"""Read-only queries over challenges and their deadlines."""

from __future__ import annotations

from electoral_engine.application.dtos.requests import ChallengeListOptions
from electoral_engine.application.dtos.results import ChallengeStatistics
from electoral_engine.application.ports.challenge_repository import (
    ChallengeRepositoryProtocol,
)
from electoral_engine.application.services.base import LoggingMixin
from electoral_engine.domain.errors import ChallengeNotFoundError
from electoral_engine.domain.models.challenge import (
    Challenge,
    ChallengeStatus,
    ChallengeType,
)
from electoral_engine.domain.models.deadline import Deadline


class ChallengeQueryService(LoggingMixin):
    """Looks up, lists and counts challenges. Never writes."""

    def __init__(self, repository: ChallengeRepositoryProtocol) -> None:
        self._repository = repository
        self._init_logger()

    async def get_challenge(self, challenge_id: int) -> Challenge:
        """Get a challenge by id.

        Raises:
            ChallengeNotFoundError: Unknown id.
        """
        challenge = await self._repository.get(challenge_id)
        if challenge is None:
            raise ChallengeNotFoundError(challenge_id=challenge_id)
        return challenge

    async def get_by_protocol(self, protocol_number: str) -> Challenge:
        """Get a challenge by protocol number.

        Raises:
            ChallengeNotFoundError: Unknown protocol number.
        """
        challenge = await self._repository.get_by_protocol(protocol_number)
        if challenge is None:
            raise ChallengeNotFoundError(protocol_number=protocol_number)
        return challenge

    async def list_challenges(
        self, options: ChallengeListOptions | None = None
    ) -> tuple[list[Challenge], int]:
        """List challenges, newest first.

        Returns:
            Tuple of (page of challenges, total count matching).
        """
        options = options or ChallengeListOptions()
        items, total = await self._repository.list_challenges(options)
        self._log_operation("list_challenges").debug(
            "challenges_listed",
            returned=len(items),
            total=total,
            limit=options.limit,
            offset=options.offset,
        )
        return items, total

    async def list_deadlines(self, challenge_id: int) -> list[Deadline]:
        """All deadlines of a challenge, in the order they were opened."""
        challenge = await self.get_challenge(challenge_id)
        return list(challenge.deadlines)

    async def get_statistics(self, election_id: int | None = None) -> ChallengeStatistics:
        """Count challenges per status and per type.

        Every status and type appears in the result, with zero when absent.
        """
        counts = await self._repository.count_by_status_and_type(election_id)
        by_status = {status.value: 0 for status in ChallengeStatus}
        by_type = {kind.value: 0 for kind in ChallengeType}
        for (status, kind), count in counts.items():
            by_status[status.value] += count
            by_type[kind.value] += count
        return ChallengeStatistics(
            election_id=election_id,
            total=sum(counts.values()),
            by_status=by_status,
            by_type=by_type,
        )
