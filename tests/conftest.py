"""
Pytest configuration and shared fixtures for the electoral engine tests.

Testing Standards:
- All async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Services are wired to the in-memory stubs and a FakeTimeAuthority
- Each test gets its own CollectorRegistry so metric values never leak
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

from __future__ import annotations

import pytest
from prometheus_client import CollectorRegistry

from electoral_engine.application.services import (
    BallotGateService,
    ChallengeLifecycleService,
    ChallengeQueryService,
    DeadlineEngineService,
)
from electoral_engine.config.engine_config import (
    TEST_DEADLINE_POLICY_CONFIG,
    TEST_LIFECYCLE_CONFIG,
)
from electoral_engine.infrastructure.monitoring.metrics import EngineMetrics
from electoral_engine.infrastructure.stubs import (
    BallotRepositoryStub,
    ChallengeRepositoryStub,
    ElectionRegistryStub,
    EligibilityRollStub,
    EventPublisherStub,
    TargetDirectoryStub,
    WeekendHolidayCalendar,
)
from tests.helpers import FakeTimeAuthority
from tests.helpers.builders import FRIDAY, election, targets


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from electoral_engine import __version__

    return __version__


@pytest.fixture
def fake_time() -> FakeTimeAuthority:
    """Clock frozen on Friday 2026-01-16 10:00 UTC."""
    return FakeTimeAuthority(frozen_at=FRIDAY)


@pytest.fixture
def metrics() -> EngineMetrics:
    return EngineMetrics(CollectorRegistry())


@pytest.fixture
def repository() -> ChallengeRepositoryStub:
    return ChallengeRepositoryStub()


@pytest.fixture
def ballots() -> BallotRepositoryStub:
    return BallotRepositoryStub()


@pytest.fixture
def elections() -> ElectionRegistryStub:
    """Registry holding the default ACTIVE election."""
    registry = ElectionRegistryStub()
    registry.add_election(election())
    return registry


@pytest.fixture
def target_directory() -> TargetDirectoryStub:
    directory = TargetDirectoryStub()
    for target in targets():
        directory.add_target(target)
    return directory


@pytest.fixture
def roll() -> EligibilityRollStub:
    return EligibilityRollStub()


@pytest.fixture
def calendar() -> WeekendHolidayCalendar:
    return WeekendHolidayCalendar()


@pytest.fixture
def publisher() -> EventPublisherStub:
    return EventPublisherStub()


@pytest.fixture
def deadline_engine(
    repository: ChallengeRepositoryStub,
    calendar: WeekendHolidayCalendar,
    fake_time: FakeTimeAuthority,
    publisher: EventPublisherStub,
    metrics: EngineMetrics,
) -> DeadlineEngineService:
    return DeadlineEngineService(
        repository=repository,
        calendar=calendar,
        time_authority=fake_time,
        publisher=publisher,
        policy=TEST_DEADLINE_POLICY_CONFIG,
        config=TEST_LIFECYCLE_CONFIG,
        metrics=metrics,
    )


@pytest.fixture
def lifecycle(
    repository: ChallengeRepositoryStub,
    deadline_engine: DeadlineEngineService,
    elections: ElectionRegistryStub,
    target_directory: TargetDirectoryStub,
    publisher: EventPublisherStub,
    fake_time: FakeTimeAuthority,
    metrics: EngineMetrics,
) -> ChallengeLifecycleService:
    """Lifecycle service subscribed to the deadline engine."""
    service = ChallengeLifecycleService(
        repository=repository,
        deadline_engine=deadline_engine,
        election_registry=elections,
        target_directory=target_directory,
        publisher=publisher,
        time_authority=fake_time,
        config=TEST_LIFECYCLE_CONFIG,
        metrics=metrics,
    )
    deadline_engine.subscribe(service.on_deadline_expired)
    return service


@pytest.fixture
def queries(repository: ChallengeRepositoryStub) -> ChallengeQueryService:
    return ChallengeQueryService(repository)


@pytest.fixture
def ballot_gate(
    ballots: BallotRepositoryStub,
    elections: ElectionRegistryStub,
    roll: EligibilityRollStub,
    publisher: EventPublisherStub,
    fake_time: FakeTimeAuthority,
    metrics: EngineMetrics,
) -> BallotGateService:
    return BallotGateService(
        ballots=ballots,
        election_registry=elections,
        eligibility_roll=roll,
        publisher=publisher,
        time_authority=fake_time,
        metrics=metrics,
    )
