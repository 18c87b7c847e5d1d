"""Event publisher port.

Events are handed to the publisher only after the write that produced them
has committed. Delivery to notification channels is the publisher's job.
"""

from __future__ import annotations

from typing import Protocol

from electoral_engine.domain.events import DomainEvent


class EventPublisherProtocol(Protocol):
    """Protocol for publishing domain events to external consumers."""

    async def publish(self, event: DomainEvent) -> None:
        """Publish a committed event.

        Raises:
            Exception: Any delivery failure; callers wrap it as
                DependencyUnavailableError.
        """
        ...
