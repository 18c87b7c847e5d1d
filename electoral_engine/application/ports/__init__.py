"""Ports: the interfaces the engine depends on.

Concrete adapters live in electoral_engine.infrastructure.
"""

from electoral_engine.application.ports.ballot_repository import (
    BallotRepositoryProtocol,
)
from electoral_engine.application.ports.business_calendar import (
    BusinessCalendarProtocol,
)
from electoral_engine.application.ports.challenge_repository import (
    ChallengeRepositoryProtocol,
)
from electoral_engine.application.ports.election_registry import (
    ElectionRegistryProtocol,
)
from electoral_engine.application.ports.eligibility_roll import (
    EligibilityDecision,
    EligibilityRollProtocol,
)
from electoral_engine.application.ports.event_publisher import EventPublisherProtocol
from electoral_engine.application.ports.target_directory import (
    TargetDirectoryProtocol,
)
from electoral_engine.application.ports.time_authority import TimeAuthorityProtocol

__all__: list[str] = [
    "BallotRepositoryProtocol",
    "BusinessCalendarProtocol",
    "ChallengeRepositoryProtocol",
    "ElectionRegistryProtocol",
    "EligibilityDecision",
    "EligibilityRollProtocol",
    "EventPublisherProtocol",
    "TargetDirectoryProtocol",
    "TimeAuthorityProtocol",
]
