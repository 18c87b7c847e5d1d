"""Challenge event payloads.

This module defines the events raised by the challenge lifecycle:
- ChallengeFiledEvent: When a challenge is filed and its protocol issued
- ChallengeTransitionedEvent: When a challenge changes status
- DocumentAttachedEvent: When a document reference is added to the case file
- DocumentRemovedEvent: When a document reference is tombstoned

Events are published only after the write that produced them committed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

# Event type constants for challenge events
CHALLENGE_FILED_EVENT_TYPE: str = "challenge.filed"
CHALLENGE_TRANSITIONED_EVENT_TYPE: str = "challenge.transitioned"
DOCUMENT_ATTACHED_EVENT_TYPE: str = "challenge.document.attached"
DOCUMENT_REMOVED_EVENT_TYPE: str = "challenge.document.removed"


@dataclass(frozen=True, eq=True)
class ChallengeFiledEvent:
    """Payload for a newly filed challenge.

    Attributes:
        challenge_id: Repository-assigned id.
        protocol_number: Issued protocol number.
        election_id: Election the challenge belongs to.
        challenge_type: chapa, member or document.
        target_id: Id of the challenged entity.
        filer_id: Id of the filing party.
        filed_at: Filing timestamp (UTC).
    """

    event_type: ClassVar[str] = CHALLENGE_FILED_EVENT_TYPE

    challenge_id: int
    protocol_number: str
    election_id: int
    challenge_type: str
    target_id: int
    filer_id: int
    filed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert payload to dict for publishing.

        Returns:
            Dict representation with ISO 8601 timestamps.
        """
        return {
            "challenge_id": self.challenge_id,
            "protocol_number": self.protocol_number,
            "election_id": self.election_id,
            "challenge_type": self.challenge_type,
            "target_id": self.target_id,
            "filer_id": self.filer_id,
            "filed_at": self.filed_at.isoformat(),
        }


@dataclass(frozen=True, eq=True)
class ChallengeTransitionedEvent:
    """Payload for a status change.

    Attributes:
        challenge_id: The challenge.
        event: Name of the transition event that was applied.
        from_status: Status before the transition.
        to_status: Status after the transition.
        instance: Adjudication instance after the transition.
        version: Challenge version after the transition.
        occurred_at: When the transition was applied (UTC).
        actor_id: Who requested it (None for system transitions).
    """

    event_type: ClassVar[str] = CHALLENGE_TRANSITIONED_EVENT_TYPE

    challenge_id: int
    event: str
    from_status: str
    to_status: str
    instance: int
    version: int
    occurred_at: datetime
    actor_id: int | None = field(default=None)

    @property
    def is_system(self) -> bool:
        """Whether the transition was triggered by the deadline engine."""
        return self.actor_id is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "challenge_id": self.challenge_id,
            "event": self.event,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "instance": self.instance,
            "version": self.version,
            "occurred_at": self.occurred_at.isoformat(),
            "actor_id": self.actor_id,
        }


@dataclass(frozen=True, eq=True)
class DocumentAttachedEvent:
    """Payload for a document reference added to a challenge."""

    event_type: ClassVar[str] = DOCUMENT_ATTACHED_EVENT_TYPE

    challenge_id: int
    document_id: int
    kind: str
    storage_handle: str
    added_by: int
    occurred_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "challenge_id": self.challenge_id,
            "document_id": self.document_id,
            "kind": self.kind,
            "storage_handle": self.storage_handle,
            "added_by": self.added_by,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True, eq=True)
class DocumentRemovedEvent:
    """Payload for a tombstoned document reference."""

    event_type: ClassVar[str] = DOCUMENT_REMOVED_EVENT_TYPE

    challenge_id: int
    document_id: int
    removed_by: int
    occurred_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "challenge_id": self.challenge_id,
            "document_id": self.document_id,
            "removed_by": self.removed_by,
            "occurred_at": self.occurred_at.isoformat(),
        }
