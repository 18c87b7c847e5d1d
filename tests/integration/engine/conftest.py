"""Fixtures for end-to-end engine scenarios.

Scenarios run against a container built by the composition root, with
in-memory ports and a clock frozen on Friday 2026-01-16.
"""

from __future__ import annotations

from datetime import date

import pytest
from prometheus_client import CollectorRegistry

from electoral_engine.bootstrap import EngineContainer, build_container
from electoral_engine.config.engine_config import (
    TEST_LIFECYCLE_CONFIG,
    DeadlinePolicyConfig,
)
from electoral_engine.infrastructure.stubs import (
    ChallengeRepositoryStub,
    ElectionRegistryStub,
    EventPublisherStub,
    TargetDirectoryStub,
    WeekendHolidayCalendar,
)
from tests.helpers import FakeTimeAuthority
from tests.helpers.builders import FRIDAY, election, targets


@pytest.fixture
def clock() -> FakeTimeAuthority:
    return FakeTimeAuthority(frozen_at=FRIDAY)


@pytest.fixture
def policy() -> DeadlinePolicyConfig:
    return DeadlinePolicyConfig()


@pytest.fixture
def holidays() -> list[date]:
    return []


@pytest.fixture
def bus() -> EventPublisherStub:
    return EventPublisherStub()


@pytest.fixture
def store() -> ChallengeRepositoryStub:
    return ChallengeRepositoryStub()


@pytest.fixture
def engine(
    clock: FakeTimeAuthority,
    policy: DeadlinePolicyConfig,
    holidays: list[date],
    bus: EventPublisherStub,
    store: ChallengeRepositoryStub,
) -> EngineContainer:
    elections = ElectionRegistryStub()
    elections.add_election(election())
    directory = TargetDirectoryStub()
    for target in targets():
        directory.add_target(target)
    return build_container(
        repository=store,
        election_registry=elections,
        target_directory=directory,
        calendar=WeekendHolidayCalendar(holidays),
        publisher=bus,
        time_authority=clock,
        policy=policy,
        config=TEST_LIFECYCLE_CONFIG,
        registry=CollectorRegistry(),
    )
