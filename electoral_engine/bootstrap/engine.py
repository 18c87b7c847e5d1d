"""Composition root for the electoral engine.

Wires the services to their ports. Any collaborator left unspecified is
replaced by its in-memory stub, which is what development and the test
suite use; production passes real adapters for every port.

Usage:
    container = build_container(repository=postgres_repo, calendar=calendar)
    await container.lifecycle.file_challenge(request)
    asyncio.create_task(container.sweep_worker.run())
"""

from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry
from structlog import get_logger

from electoral_engine.application.ports.ballot_repository import (
    BallotRepositoryProtocol,
)
from electoral_engine.application.ports.business_calendar import (
    BusinessCalendarProtocol,
)
from electoral_engine.application.ports.challenge_repository import (
    ChallengeRepositoryProtocol,
)
from electoral_engine.application.ports.election_registry import (
    ElectionRegistryProtocol,
)
from electoral_engine.application.ports.eligibility_roll import (
    EligibilityRollProtocol,
)
from electoral_engine.application.ports.event_publisher import EventPublisherProtocol
from electoral_engine.application.ports.target_directory import (
    TargetDirectoryProtocol,
)
from electoral_engine.application.ports.time_authority import TimeAuthorityProtocol
from electoral_engine.application.services.ballot_gate_service import (
    BallotGateService,
)
from electoral_engine.application.services.challenge_lifecycle_service import (
    ChallengeLifecycleService,
)
from electoral_engine.application.services.challenge_query_service import (
    ChallengeQueryService,
)
from electoral_engine.application.services.deadline_engine_service import (
    DeadlineEngineService,
)
from electoral_engine.application.services.time_authority_service import (
    SystemTimeAuthority,
)
from electoral_engine.config.engine_config import DeadlinePolicyConfig, LifecycleConfig
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
from electoral_engine.workers.deadline_sweep_worker import DeadlineSweepWorker

logger = get_logger(__name__)

_STUB_TYPES = (
    BallotRepositoryStub,
    ChallengeRepositoryStub,
    ElectionRegistryStub,
    EligibilityRollStub,
    EventPublisherStub,
    TargetDirectoryStub,
    WeekendHolidayCalendar,
)


@dataclass(frozen=True)
class EngineContainer:
    """All wired services of one engine instance."""

    lifecycle: ChallengeLifecycleService
    queries: ChallengeQueryService
    deadline_engine: DeadlineEngineService
    ballot_gate: BallotGateService
    sweep_worker: DeadlineSweepWorker
    metrics: EngineMetrics
    policy: DeadlinePolicyConfig
    config: LifecycleConfig


def build_container(
    *,
    repository: ChallengeRepositoryProtocol | None = None,
    ballots: BallotRepositoryProtocol | None = None,
    election_registry: ElectionRegistryProtocol | None = None,
    eligibility_roll: EligibilityRollProtocol | None = None,
    calendar: BusinessCalendarProtocol | None = None,
    target_directory: TargetDirectoryProtocol | None = None,
    publisher: EventPublisherProtocol | None = None,
    time_authority: TimeAuthorityProtocol | None = None,
    policy: DeadlinePolicyConfig | None = None,
    config: LifecycleConfig | None = None,
    registry: CollectorRegistry | None = None,
) -> EngineContainer:
    """Wire every service, filling unspecified ports with stubs.

    The lifecycle service is subscribed to the deadline engine so expired
    defense and appeal deadlines drive their system transitions.
    """
    # Stubs are sized containers, so an empty one is falsy: test against None.
    stubbed = [
        name
        for name, port in (
            ("repository", repository),
            ("ballots", ballots),
            ("election_registry", election_registry),
            ("eligibility_roll", eligibility_roll),
            ("calendar", calendar),
            ("target_directory", target_directory),
            ("publisher", publisher),
        )
        if port is None or isinstance(port, _STUB_TYPES)
    ]

    if policy is None:
        policy = DeadlinePolicyConfig.from_environment()
    if config is None:
        config = LifecycleConfig.from_environment()
    metrics = EngineMetrics(registry)
    if time_authority is None:
        time_authority = SystemTimeAuthority()
    if repository is None:
        repository = ChallengeRepositoryStub()
    if ballots is None:
        ballots = BallotRepositoryStub()
    if election_registry is None:
        election_registry = ElectionRegistryStub()
    if eligibility_roll is None:
        eligibility_roll = EligibilityRollStub()
    if calendar is None:
        calendar = WeekendHolidayCalendar(policy.holidays)
    if target_directory is None:
        target_directory = TargetDirectoryStub()
    if publisher is None:
        publisher = EventPublisherStub()

    deadline_engine = DeadlineEngineService(
        repository=repository,
        calendar=calendar,
        time_authority=time_authority,
        publisher=publisher,
        policy=policy,
        config=config,
        metrics=metrics,
    )
    lifecycle = ChallengeLifecycleService(
        repository=repository,
        deadline_engine=deadline_engine,
        election_registry=election_registry,
        target_directory=target_directory,
        publisher=publisher,
        time_authority=time_authority,
        config=config,
        metrics=metrics,
    )
    deadline_engine.subscribe(lifecycle.on_deadline_expired)

    container = EngineContainer(
        lifecycle=lifecycle,
        queries=ChallengeQueryService(repository),
        deadline_engine=deadline_engine,
        ballot_gate=BallotGateService(
            ballots=ballots,
            election_registry=election_registry,
            eligibility_roll=eligibility_roll,
            publisher=publisher,
            time_authority=time_authority,
            metrics=metrics,
        ),
        sweep_worker=DeadlineSweepWorker(deadline_engine, config),
        metrics=metrics,
        policy=policy,
        config=config,
    )
    if stubbed:
        logger.warning(
            "engine_using_stubs",
            ports=stubbed,
            message="In-memory stubs are not suitable for production",
        )
    return container


_container: EngineContainer | None = None


def get_container() -> EngineContainer:
    """Get the process-wide container, building it on first use."""
    global _container
    if _container is None:
        _container = build_container()
    return _container


def set_container(container: EngineContainer) -> None:
    """Set a custom container (testing/override)."""
    global _container
    _container = container


def reset_container() -> None:
    """Reset the container singleton (testing cleanup)."""
    global _container
    _container = None
