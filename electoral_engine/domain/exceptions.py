"""Base exception classes for the electoral engine domain layer."""

from __future__ import annotations

from typing import Any


class ElectoralEngineError(Exception):
    """Base exception for all domain errors.

    All domain-specific exceptions MUST inherit from this class so the
    API layer can map the whole taxonomy with a single handler.

    Subclasses override the class attributes below to describe their
    RFC 7807 problem type.

    Attributes:
        problem_type: URN identifying the problem type.
        title: Short human-readable summary of the problem type.
        http_status: Suggested HTTP status for the API layer.
    """

    problem_type: str = "urn:electoral-engine:error"
    title: str = "Electoral Engine Error"
    http_status: int = 500

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)

    def problem_extensions(self) -> dict[str, Any]:
        """Return extension members for the problem document."""
        return {}

    def to_rfc7807_dict(self) -> dict[str, Any]:
        """Serialize to RFC 7807 problem details format.

        Returns:
            Dictionary conforming to RFC 7807 with error-specific extensions.
        """
        result: dict[str, Any] = {
            "type": self.problem_type,
            "title": self.title,
            "status": self.http_status,
            "detail": str(self),
        }
        result.update(self.problem_extensions())
        return result
