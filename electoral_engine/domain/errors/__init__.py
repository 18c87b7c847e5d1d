"""Domain errors for the electoral engine.

All exceptions inherit from ElectoralEngineError.
"""

from electoral_engine.domain.errors.ballot import (
    AlreadyVotedError,
    ElectionNotFinishedError,
    ElectionNotOpenError,
    VoterNotEligibleError,
)
from electoral_engine.domain.errors.concurrent_modification import (
    ConcurrencyConflictError,
)
from electoral_engine.domain.errors.deadline import (
    DeadlineExpiredError,
    NotExtendableError,
)
from electoral_engine.domain.errors.dependency import DependencyUnavailableError
from electoral_engine.domain.errors.not_found import (
    ChallengeNotFoundError,
    DeadlineNotFoundError,
    DocumentNotFoundError,
    ElectionNotFoundError,
    NotFoundError,
    SlateNotFoundError,
    TargetNotFoundError,
)
from electoral_engine.domain.errors.state_transition import (
    ChallengeValidationError,
    InvalidTransitionError,
)

__all__: list[str] = [
    "AlreadyVotedError",
    "ChallengeNotFoundError",
    "ChallengeValidationError",
    "ConcurrencyConflictError",
    "DeadlineExpiredError",
    "DeadlineNotFoundError",
    "DependencyUnavailableError",
    "DocumentNotFoundError",
    "ElectionNotFinishedError",
    "ElectionNotFoundError",
    "ElectionNotOpenError",
    "InvalidTransitionError",
    "NotExtendableError",
    "NotFoundError",
    "SlateNotFoundError",
    "TargetNotFoundError",
    "VoterNotEligibleError",
]
