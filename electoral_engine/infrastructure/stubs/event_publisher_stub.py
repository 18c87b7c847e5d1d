"""Event publisher stub that records published events."""

from __future__ import annotations

from electoral_engine.application.ports.event_publisher import EventPublisherProtocol
from electoral_engine.domain.events import DomainEvent


class EventPublisherStub(EventPublisherProtocol):
    """Records every published event for inspection.

    Attributes:
        published_events: Events in publication order.
    """

    def __init__(self) -> None:
        self.published_events: list[DomainEvent] = []
        self._failure: Exception | None = None

    async def publish(self, event: DomainEvent) -> None:
        if self._failure is not None:
            raise self._failure
        self.published_events.append(event)

    # Test helpers

    def events_of(self, event_type: str) -> list[DomainEvent]:
        return [e for e in self.published_events if e.event_type == event_type]

    def fail_with(self, error: Exception | None) -> None:
        self._failure = error

    def clear(self) -> None:
        self.published_events.clear()
