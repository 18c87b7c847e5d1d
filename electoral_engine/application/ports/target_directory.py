"""Target directory port: resolves challenged slates, members and documents."""

from __future__ import annotations

from typing import Protocol

from electoral_engine.domain.models.challenge import TargetRef
from electoral_engine.domain.models.election import TargetView


class TargetDirectoryProtocol(Protocol):
    """Protocol for resolving a TargetRef by its kind."""

    async def resolve(self, ref: TargetRef) -> TargetView | None:
        """Return the challenged entity, or None if it does not exist."""
        ...
