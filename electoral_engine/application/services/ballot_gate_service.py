"""Eligibility and ballot gate.

A ballot is stored only after every check passed, in this order:

1. The election exists and is ACTIVE.
2. The slate runs in the election.
3. The eligibility roll accepts the voter (its answer is final).
4. The ballot store inserts (election_id, voter_id) atomically.

Exactly-once voting rests on step 4 alone: two concurrent requests for
the same voter both pass steps 1-3 and the store lets one of them in.
A denied vote never leaves a ballot behind.
"""

from __future__ import annotations

from uuid import uuid4

from electoral_engine.application.dtos.requests import CastBallotRequest
from electoral_engine.application.dtos.results import (
    BallotReceipt,
    EligibilityResult,
    TallyResult,
    VotingStatus,
)
from electoral_engine.application.ports.ballot_repository import (
    BallotRepositoryProtocol,
)
from electoral_engine.application.ports.election_registry import (
    ElectionRegistryProtocol,
)
from electoral_engine.application.ports.eligibility_roll import (
    EligibilityDecision,
    EligibilityRollProtocol,
)
from electoral_engine.application.ports.event_publisher import EventPublisherProtocol
from electoral_engine.application.ports.time_authority import TimeAuthorityProtocol
from electoral_engine.application.services.base import LoggingMixin, call_dependency
from electoral_engine.domain.errors import (
    AlreadyVotedError,
    ElectionNotFinishedError,
    ElectionNotFoundError,
    ElectionNotOpenError,
    SlateNotFoundError,
    VoterNotEligibleError,
)
from electoral_engine.domain.events.ballot import BallotCastEvent
from electoral_engine.domain.exceptions import ElectoralEngineError
from electoral_engine.domain.models.ballot import Ballot
from electoral_engine.domain.models.election import ElectionStatus, ElectionView
from electoral_engine.infrastructure.monitoring.metrics import EngineMetrics

# Rejection reasons used in metrics and eligibility answers
REASON_ELECTION_NOT_FOUND = "election_not_found"
REASON_ELECTION_NOT_OPEN = "election_not_open"
REASON_SLATE_NOT_FOUND = "slate_not_found"
REASON_NOT_ELIGIBLE = "not_eligible"
REASON_ALREADY_VOTED = "already_voted"


class BallotGateService(LoggingMixin):
    """Decides whether a voter may vote and stores at most one ballot each."""

    def __init__(
        self,
        ballots: BallotRepositoryProtocol,
        election_registry: ElectionRegistryProtocol,
        eligibility_roll: EligibilityRollProtocol,
        publisher: EventPublisherProtocol,
        time_authority: TimeAuthorityProtocol,
        metrics: EngineMetrics | None = None,
    ) -> None:
        self._ballots = ballots
        self._elections = election_registry
        self._roll = eligibility_roll
        self._publisher = publisher
        self._time = time_authority
        self._metrics = metrics if metrics is not None else EngineMetrics()
        self._init_logger()

    async def cast_ballot(self, request: CastBallotRequest) -> BallotReceipt:
        """Cast a ballot.

        Returns:
            The receipt of the stored ballot.

        Raises:
            ElectionNotFoundError: Unknown election.
            ElectionNotOpenError: Election not ACTIVE.
            SlateNotFoundError: Slate not running in the election.
            VoterNotEligibleError: The roll refused the voter.
            AlreadyVotedError: A ballot already exists for the voter.
            DependencyUnavailableError: A collaborator failed.
        """
        log = self._log_operation(
            "cast_ballot",
            election_id=request.election_id,
            voter_id=request.voter_id,
        )
        try:
            election = await self._require_election(request.election_id)
            if not election.is_votable:
                raise ElectionNotOpenError(election.id, election.status.value)
            if not election.has_slate(request.slate_id):
                raise SlateNotFoundError(election.id, request.slate_id)
            decision = await self._check_roll(election.id, request.voter_id)
            if not decision.eligible:
                raise VoterNotEligibleError(
                    election.id, request.voter_id, decision.reason
                )
            ballot = await self._ballots.insert(
                Ballot(
                    ballot_id=uuid4(),
                    election_id=election.id,
                    voter_id=request.voter_id,
                    slate_id=request.slate_id,
                    cast_at=self._time.now(),
                )
            )
        except ElectoralEngineError as e:
            reason = _rejection_reason(e)
            self._metrics.record_ballot_rejected(reason)
            log.warning("ballot_rejected", reason=reason, detail=str(e))
            raise

        self._metrics.record_ballot_cast()
        log.info("ballot_cast", ballot_id=str(ballot.ballot_id))
        await call_dependency(
            "event_publisher",
            "publish",
            self._publisher.publish(
                BallotCastEvent(
                    ballot_id=ballot.ballot_id,
                    election_id=ballot.election_id,
                    voter_id=ballot.voter_id,
                    cast_at=ballot.cast_at,
                )
            ),
        )
        return BallotReceipt(
            ballot_id=ballot.ballot_id,
            election_id=ballot.election_id,
            cast_at=ballot.cast_at,
            receipt_code=ballot.receipt_code,
        )

    async def check_eligibility(
        self, election_id: int, voter_id: int
    ) -> EligibilityResult:
        """Answer whether a ballot from the voter would be accepted now.

        Read-only: nothing is stored.

        Raises:
            ElectionNotFoundError: Unknown election.
        """
        election = await self._require_election(election_id)
        existing = await self._ballots.get(election_id, voter_id)
        if existing is not None:
            return EligibilityResult(
                election_id, voter_id, False, True, REASON_ALREADY_VOTED
            )
        if not election.is_votable:
            return EligibilityResult(
                election_id, voter_id, False, False, REASON_ELECTION_NOT_OPEN
            )
        decision = await self._check_roll(election_id, voter_id)
        if not decision.eligible:
            return EligibilityResult(
                election_id,
                voter_id,
                False,
                False,
                decision.reason or REASON_NOT_ELIGIBLE,
            )
        return EligibilityResult(election_id, voter_id, True, False)

    async def get_voting_status(self, election_id: int, voter_id: int) -> VotingStatus:
        """Whether the voter has voted, with the receipt if so."""
        await self._require_election(election_id)
        ballot = await self._ballots.get(election_id, voter_id)
        if ballot is None:
            return VotingStatus(election_id, voter_id, has_voted=False)
        return VotingStatus(
            election_id,
            voter_id,
            has_voted=True,
            ballot_id=ballot.ballot_id,
            cast_at=ballot.cast_at,
            receipt_code=ballot.receipt_code,
        )

    async def tally(self, election_id: int) -> TallyResult:
        """Count ballots per slate of a finished election.

        Raises:
            ElectionNotFoundError: Unknown election.
            ElectionNotFinishedError: The election has not finished.
        """
        election = await self._require_election(election_id)
        if election.status != ElectionStatus.FINISHED:
            raise ElectionNotFinishedError(election_id, election.status.value)
        counts = {slate_id: 0 for slate_id in sorted(election.slate_ids)}
        for slate_id, count in (await self._ballots.count_by_slate(election_id)).items():
            counts[slate_id] = counts.get(slate_id, 0) + count
        total = sum(counts.values())
        self._log_operation("tally", election_id=election_id).info(
            "election_tallied", total_ballots=total
        )
        return TallyResult(election_id=election_id, counts=counts, total_ballots=total)

    async def _require_election(self, election_id: int) -> ElectionView:
        election = await call_dependency(
            "election_registry",
            "get_election",
            self._elections.get_election(election_id),
        )
        if election is None:
            raise ElectionNotFoundError(election_id)
        return election

    async def _check_roll(self, election_id: int, voter_id: int) -> EligibilityDecision:
        return await call_dependency(
            "eligibility_roll", "check", self._roll.check(election_id, voter_id)
        )


def _rejection_reason(error: ElectoralEngineError) -> str:
    if isinstance(error, ElectionNotFoundError):
        return REASON_ELECTION_NOT_FOUND
    if isinstance(error, ElectionNotOpenError):
        return REASON_ELECTION_NOT_OPEN
    if isinstance(error, SlateNotFoundError):
        return REASON_SLATE_NOT_FOUND
    if isinstance(error, VoterNotEligibleError):
        return REASON_NOT_ELIGIBLE
    if isinstance(error, AlreadyVotedError):
        return REASON_ALREADY_VOTED
    return "dependency_unavailable"
