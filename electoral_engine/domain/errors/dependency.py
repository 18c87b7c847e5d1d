"""Error raised when an external collaborator call fails."""

from __future__ import annotations

from typing import Any

from electoral_engine.domain.exceptions import ElectoralEngineError


class DependencyUnavailableError(ElectoralEngineError):
    """Raised when an injected collaborator (calendar, roll, registry) fails.

    The original exception is chained as __cause__. This error is always
    propagated; callers decide whether to retry.

    Attributes:
        dependency: Name of the collaborator.
        operation: The call that failed.
    """

    problem_type = "urn:electoral-engine:dependency-unavailable"
    title = "Dependency Unavailable"
    http_status = 503

    def __init__(self, dependency: str, operation: str, reason: str = "") -> None:
        self.dependency = dependency
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"Dependency '{dependency}' failed during {operation}"
            + (f": {reason}" if reason else "")
        )

    def problem_extensions(self) -> dict[str, Any]:
        return {"dependency": self.dependency, "operation": self.operation}
