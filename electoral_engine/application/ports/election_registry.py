"""Election registry port: read-only access to election status and slates."""

from __future__ import annotations

from typing import Protocol

from electoral_engine.domain.models.election import ElectionView


class ElectionRegistryProtocol(Protocol):
    """Protocol for looking up elections owned by another system."""

    async def get_election(self, election_id: int) -> ElectionView | None:
        """Return a snapshot of the election, or None if unknown."""
        ...
