"""Unit tests for the engine composition root."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import timedelta

import pytest
from prometheus_client import CollectorRegistry

from electoral_engine.application.dtos.requests import CastBallotRequest
from electoral_engine.bootstrap import (
    EngineContainer,
    build_container,
    get_container,
    reset_container,
    set_container,
)
from electoral_engine.config.engine_config import (
    TEST_DEADLINE_POLICY_CONFIG,
    TEST_LIFECYCLE_CONFIG,
)
from electoral_engine.domain.events import CHALLENGE_FILED_EVENT_TYPE
from electoral_engine.domain.models import ChallengeStatus
from electoral_engine.infrastructure.stubs import (
    BallotRepositoryStub,
    ChallengeRepositoryStub,
    ElectionRegistryStub,
    EventPublisherStub,
    TargetDirectoryStub,
)
from tests.helpers import FakeTimeAuthority
from tests.helpers.builders import (
    ELECTION_ID,
    FRIDAY,
    SLATE_A,
    election,
    file_challenge_request,
    targets,
)


@pytest.fixture(autouse=True)
def clean_container() -> Iterator[None]:
    reset_container()
    yield
    reset_container()


def _container(**overrides: object) -> EngineContainer:
    elections = ElectionRegistryStub()
    elections.add_election(election())
    directory = TargetDirectoryStub()
    for target in targets():
        directory.add_target(target)
    values: dict[str, object] = {
        "election_registry": elections,
        "target_directory": directory,
        "time_authority": FakeTimeAuthority(frozen_at=FRIDAY),
        "policy": TEST_DEADLINE_POLICY_CONFIG,
        "config": TEST_LIFECYCLE_CONFIG,
        "registry": CollectorRegistry(),
    }
    values.update(overrides)
    return build_container(**values)  # type: ignore[arg-type]


class TestBuildContainer:
    @pytest.mark.asyncio
    async def test_services_share_the_repository(self) -> None:
        repository = ChallengeRepositoryStub()
        container = _container(repository=repository)

        filed = await container.lifecycle.file_challenge(file_challenge_request())

        assert (await container.queries.get_challenge(filed.id)) == filed
        assert len(repository) == 1

    @pytest.mark.asyncio
    async def test_injected_ports_are_used_even_when_empty(self) -> None:
        repository = ChallengeRepositoryStub()
        ballots = BallotRepositoryStub()
        publisher = EventPublisherStub()
        assert not repository

        container = _container(
            repository=repository, ballots=ballots, publisher=publisher
        )
        await container.lifecycle.file_challenge(file_challenge_request())
        await container.ballot_gate.cast_ballot(
            CastBallotRequest(election_id=ELECTION_ID, voter_id=1, slate_id=SLATE_A)
        )

        assert len(repository) == 1
        assert len(ballots.all_ballots()) == 1
        assert publisher.events_of(CHALLENGE_FILED_EVENT_TYPE)

    @pytest.mark.asyncio
    async def test_lifecycle_subscribed_to_expiry(self) -> None:
        clock = FakeTimeAuthority(frozen_at=FRIDAY)
        container = _container(time_authority=clock)
        filed = await container.lifecycle.file_challenge(file_challenge_request())

        clock.advance(delta=timedelta(days=10))
        await container.sweep_worker.run_once()

        challenge = await container.queries.get_challenge(filed.id)
        assert challenge.status == ChallengeStatus.DEFENSE_SUBMITTED

    @pytest.mark.asyncio
    async def test_metrics_registry_is_shared(self) -> None:
        registry = CollectorRegistry()
        container = _container(registry=registry)

        await container.ballot_gate.cast_ballot(
            CastBallotRequest(election_id=ELECTION_ID, voter_id=1, slate_id=SLATE_A)
        )

        assert container.metrics.registry is registry
        assert registry.get_sample_value("ballots_cast_total") == 1.0

    def test_configs_exposed(self) -> None:
        container = _container()
        assert container.policy is TEST_DEADLINE_POLICY_CONFIG
        assert container.config is TEST_LIFECYCLE_CONFIG


class TestContainerSingleton:
    def test_get_builds_once(self) -> None:
        first = get_container()
        assert get_container() is first

    def test_set_and_reset(self) -> None:
        custom = _container()
        set_container(custom)
        assert get_container() is custom

        reset_container()
        assert get_container() is not custom
