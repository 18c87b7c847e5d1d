"""In-memory stub implementations of the engine's ports.

For development wiring and tests only.
"""

from electoral_engine.infrastructure.stubs.ballot_repository_stub import (
    BallotRepositoryStub,
)
from electoral_engine.infrastructure.stubs.business_calendar_stub import (
    WeekendHolidayCalendar,
)
from electoral_engine.infrastructure.stubs.challenge_repository_stub import (
    ChallengeRepositoryStub,
)
from electoral_engine.infrastructure.stubs.election_registry_stub import (
    ElectionRegistryStub,
    TargetDirectoryStub,
)
from electoral_engine.infrastructure.stubs.eligibility_roll_stub import (
    EligibilityRollStub,
)
from electoral_engine.infrastructure.stubs.event_publisher_stub import (
    EventPublisherStub,
)

__all__: list[str] = [
    "BallotRepositoryStub",
    "ChallengeRepositoryStub",
    "ElectionRegistryStub",
    "EligibilityRollStub",
    "EventPublisherStub",
    "TargetDirectoryStub",
    "WeekendHolidayCalendar",
]
