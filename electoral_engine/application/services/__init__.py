"""Application services."""

from electoral_engine.application.services.ballot_gate_service import (
    BallotGateService,
)
from electoral_engine.application.services.challenge_lifecycle_service import (
    ChallengeLifecycleService,
    TransitionOutcome,
)
from electoral_engine.application.services.challenge_query_service import (
    ChallengeQueryService,
)
from electoral_engine.application.services.deadline_engine_service import (
    DeadlineEngineService,
)
from electoral_engine.application.services.time_authority_service import (
    SystemTimeAuthority,
)

__all__: list[str] = [
    "BallotGateService",
    "ChallengeLifecycleService",
    "ChallengeQueryService",
    "DeadlineEngineService",
    "SystemTimeAuthority",
    "TransitionOutcome",
]
