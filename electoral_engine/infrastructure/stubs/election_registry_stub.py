"""In-memory election registry and target directory stubs."""

from __future__ import annotations

from dataclasses import replace

from electoral_engine.application.ports.election_registry import (
    ElectionRegistryProtocol,
)
from electoral_engine.application.ports.target_directory import (
    TargetDirectoryProtocol,
)
from electoral_engine.domain.models.challenge import TargetRef
from electoral_engine.domain.models.election import (
    ElectionStatus,
    ElectionView,
    TargetView,
)


class ElectionRegistryStub(ElectionRegistryProtocol):
    """Serves elections registered with `add_election`."""

    def __init__(self) -> None:
        self._elections: dict[int, ElectionView] = {}
        self._failure: Exception | None = None

    async def get_election(self, election_id: int) -> ElectionView | None:
        if self._failure is not None:
            raise self._failure
        return self._elections.get(election_id)

    # Test helpers

    def add_election(self, election: ElectionView) -> None:
        self._elections[election.id] = election

    def set_status(self, election_id: int, status: ElectionStatus) -> None:
        self._elections[election_id] = replace(
            self._elections[election_id], status=status
        )

    def fail_with(self, error: Exception | None) -> None:
        self._failure = error


class TargetDirectoryStub(TargetDirectoryProtocol):
    """Resolves targets registered with `add_target`."""

    def __init__(self) -> None:
        self._targets: dict[TargetRef, TargetView] = {}

    async def resolve(self, ref: TargetRef) -> TargetView | None:
        return self._targets.get(ref)

    # Test helpers

    def add_target(self, target: TargetView) -> None:
        self._targets[target.ref] = target
