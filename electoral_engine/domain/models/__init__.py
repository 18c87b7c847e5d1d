"""Domain models for challenges, deadlines, ballots and election views."""

from electoral_engine.domain.models.ballot import Ballot, compute_receipt_code
from electoral_engine.domain.models.challenge import (
    TRANSITION_MATRIX,
    Appeal,
    AppellantRole,
    Challenge,
    ChallengeEvent,
    ChallengeStatus,
    ChallengeType,
    DocumentKind,
    DocumentRef,
    Party,
    PartyKind,
    Ruling,
    RulingOutcome,
    TargetRef,
    format_protocol_number,
)
from electoral_engine.domain.models.deadline import (
    EXTENDABLE_PHASES,
    Deadline,
    DeadlinePhase,
    DeadlineStatus,
)
from electoral_engine.domain.models.election import (
    ElectionStatus,
    ElectionView,
    TargetView,
)

__all__: list[str] = [
    "Appeal",
    "AppellantRole",
    "Ballot",
    "Challenge",
    "ChallengeEvent",
    "ChallengeStatus",
    "ChallengeType",
    "Deadline",
    "DeadlinePhase",
    "DeadlineStatus",
    "DocumentKind",
    "DocumentRef",
    "EXTENDABLE_PHASES",
    "ElectionStatus",
    "ElectionView",
    "Party",
    "PartyKind",
    "Ruling",
    "RulingOutcome",
    "TRANSITION_MATRIX",
    "TargetRef",
    "TargetView",
    "compute_receipt_code",
    "format_protocol_number",
]
