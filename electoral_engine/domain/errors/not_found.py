"""Not-found errors for challenges, deadlines, elections and their parts.

Every lookup against an unknown identifier raises a subclass of
NotFoundError so the API layer can answer 404 uniformly.
"""

from __future__ import annotations

from typing import Any

from electoral_engine.domain.exceptions import ElectoralEngineError


class NotFoundError(ElectoralEngineError):
    """Base error for unknown challenge/deadline/election references."""

    problem_type = "urn:electoral-engine:not-found"
    title = "Not Found"
    http_status = 404


class ChallengeNotFoundError(NotFoundError):
    """Raised when a challenge id or protocol number does not exist.

    Attributes:
        challenge_id: The numeric id that was looked up (if any).
        protocol_number: The protocol number that was looked up (if any).
    """

    problem_type = "urn:electoral-engine:challenge:not-found"
    title = "Challenge Not Found"

    def __init__(
        self,
        challenge_id: int | None = None,
        protocol_number: str | None = None,
    ) -> None:
        self.challenge_id = challenge_id
        self.protocol_number = protocol_number
        reference = (
            f"id {challenge_id}"
            if challenge_id is not None
            else f"protocol {protocol_number}"
        )
        super().__init__(f"Challenge not found: {reference}")

    def problem_extensions(self) -> dict[str, Any]:
        return {
            "challenge_id": self.challenge_id,
            "protocol_number": self.protocol_number,
        }


class DeadlineNotFoundError(NotFoundError):
    """Raised when a deadline id does not exist."""

    problem_type = "urn:electoral-engine:deadline:not-found"
    title = "Deadline Not Found"

    def __init__(self, deadline_id: int) -> None:
        self.deadline_id = deadline_id
        super().__init__(f"Deadline not found: {deadline_id}")

    def problem_extensions(self) -> dict[str, Any]:
        return {"deadline_id": self.deadline_id}


class DocumentNotFoundError(NotFoundError):
    """Raised when a document reference is not attached to the challenge."""

    problem_type = "urn:electoral-engine:document:not-found"
    title = "Document Not Found"

    def __init__(self, challenge_id: int, document_id: int) -> None:
        self.challenge_id = challenge_id
        self.document_id = document_id
        super().__init__(
            f"Document {document_id} not found on challenge {challenge_id}"
        )

    def problem_extensions(self) -> dict[str, Any]:
        return {"challenge_id": self.challenge_id, "document_id": self.document_id}


class ElectionNotFoundError(NotFoundError):
    """Raised when the election registry has no such election."""

    problem_type = "urn:electoral-engine:election:not-found"
    title = "Election Not Found"

    def __init__(self, election_id: int) -> None:
        self.election_id = election_id
        super().__init__(f"Election not found: {election_id}")

    def problem_extensions(self) -> dict[str, Any]:
        return {"election_id": self.election_id}


class SlateNotFoundError(NotFoundError):
    """Raised when a ballot names a slate that is not running in the election."""

    problem_type = "urn:electoral-engine:slate:not-found"
    title = "Slate Not Found"

    def __init__(self, election_id: int, slate_id: int) -> None:
        self.election_id = election_id
        self.slate_id = slate_id
        super().__init__(f"Slate {slate_id} is not running in election {election_id}")

    def problem_extensions(self) -> dict[str, Any]:
        return {"election_id": self.election_id, "slate_id": self.slate_id}


class TargetNotFoundError(NotFoundError):
    """Raised when the challenged slate, member or document cannot be resolved."""

    problem_type = "urn:electoral-engine:target:not-found"
    title = "Challenge Target Not Found"

    def __init__(self, kind: str, target_id: int) -> None:
        self.kind = kind
        self.target_id = target_id
        super().__init__(f"Challenge target not found: {kind} {target_id}")

    def problem_extensions(self) -> dict[str, Any]:
        return {"target_kind": self.kind, "target_id": self.target_id}
