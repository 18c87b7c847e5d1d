"""Domain events published after committed writes."""

from electoral_engine.domain.events.ballot import (
    BALLOT_CAST_EVENT_TYPE,
    BallotCastEvent,
)
from electoral_engine.domain.events.challenge import (
    CHALLENGE_FILED_EVENT_TYPE,
    CHALLENGE_TRANSITIONED_EVENT_TYPE,
    DOCUMENT_ATTACHED_EVENT_TYPE,
    DOCUMENT_REMOVED_EVENT_TYPE,
    ChallengeFiledEvent,
    ChallengeTransitionedEvent,
    DocumentAttachedEvent,
    DocumentRemovedEvent,
)
from electoral_engine.domain.events.deadline import (
    DEADLINE_EXPIRED_EVENT_TYPE,
    DEADLINE_EXTENDED_EVENT_TYPE,
    DeadlineExpiredEvent,
    DeadlineExtendedEvent,
)

DomainEvent = (
    BallotCastEvent
    | ChallengeFiledEvent
    | ChallengeTransitionedEvent
    | DeadlineExpiredEvent
    | DeadlineExtendedEvent
    | DocumentAttachedEvent
    | DocumentRemovedEvent
)

__all__: list[str] = [
    "BALLOT_CAST_EVENT_TYPE",
    "CHALLENGE_FILED_EVENT_TYPE",
    "CHALLENGE_TRANSITIONED_EVENT_TYPE",
    "DEADLINE_EXPIRED_EVENT_TYPE",
    "DEADLINE_EXTENDED_EVENT_TYPE",
    "DOCUMENT_ATTACHED_EVENT_TYPE",
    "DOCUMENT_REMOVED_EVENT_TYPE",
    "BallotCastEvent",
    "ChallengeFiledEvent",
    "ChallengeTransitionedEvent",
    "DeadlineExpiredEvent",
    "DeadlineExtendedEvent",
    "DocumentAttachedEvent",
    "DocumentRemovedEvent",
    "DomainEvent",
]
