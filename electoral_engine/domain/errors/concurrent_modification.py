"""Concurrent modification error for optimistic compare-and-swap writes.

Raised by repositories when the stored version no longer matches the version
the writer read. The lifecycle service retries the whole read-decide-write
a bounded number of times before letting this error reach the caller, who
should then retry the whole operation.
"""

from __future__ import annotations

from typing import Any

from electoral_engine.domain.exceptions import ElectoralEngineError


class ConcurrencyConflictError(ElectoralEngineError):
    """Raised when a CAS write loses against a concurrent writer.

    Attributes:
        challenge_id: The challenge being modified.
        expected_version: The version the writer read.
        actual_version: The version found in storage (if known).
        operation: Name of the operation that failed.
    """

    problem_type = "urn:electoral-engine:challenge:concurrency-conflict"
    title = "Concurrency Conflict"
    http_status = 409

    def __init__(
        self,
        challenge_id: int,
        expected_version: int,
        actual_version: int | None = None,
        operation: str = "transition",
    ) -> None:
        self.challenge_id = challenge_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        self.operation = operation
        super().__init__(
            f"Concurrent modification detected for challenge {challenge_id} "
            f"during {operation}. Expected version {expected_version}, "
            f"found {actual_version}."
        )

    def problem_extensions(self) -> dict[str, Any]:
        return {
            "challenge_id": self.challenge_id,
            "expected_version": self.expected_version,
            "actual_version": self.actual_version,
            "operation": self.operation,
        }
