"""Unit tests for DeadlineSweepWorker."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from electoral_engine.application.dtos.results import DeadlineSweepResult
from electoral_engine.application.services import (
    ChallengeLifecycleService,
    DeadlineEngineService,
)
from electoral_engine.config.engine_config import TEST_LIFECYCLE_CONFIG
from electoral_engine.domain.errors import DependencyUnavailableError
from electoral_engine.domain.models import ChallengeStatus
from electoral_engine.infrastructure.observability.correlation import (
    get_correlation_id,
)
from electoral_engine.infrastructure.stubs import ChallengeRepositoryStub
from electoral_engine.workers.deadline_sweep_worker import DeadlineSweepWorker
from tests.helpers import FakeTimeAuthority
from tests.helpers.builders import FRIDAY, awaiting_defense


class _ScriptedEngine:
    """Engine double returning or raising scripted outcomes in order."""

    def __init__(self, *outcomes: DeadlineSweepResult | Exception) -> None:
        self._outcomes = list(outcomes)
        self.calls = 0
        self.correlation_ids: list[str] = []

    async def expire(self) -> DeadlineSweepResult:
        self.calls += 1
        self.correlation_ids.append(get_correlation_id())
        outcome = self._outcomes.pop(0) if self._outcomes else DeadlineSweepResult()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestRunOnce:
    @pytest.mark.asyncio
    async def test_expires_overdue_defense(
        self,
        lifecycle: ChallengeLifecycleService,
        deadline_engine: DeadlineEngineService,
        repository: ChallengeRepositoryStub,
        fake_time: FakeTimeAuthority,
    ) -> None:
        repository.put(awaiting_defense(defense_window=timedelta(days=1)))
        fake_time.set_time(FRIDAY + timedelta(days=2))
        worker = DeadlineSweepWorker(deadline_engine, TEST_LIFECYCLE_CONFIG)

        result = await worker.run_once()

        assert result.expired == 1
        assert (await repository.get(1)).status == ChallengeStatus.DEFENSE_SUBMITTED
        assert worker.get_metrics()["deadlines_expired"] == 1

    @pytest.mark.asyncio
    async def test_each_pass_has_its_own_correlation_id(self) -> None:
        engine = _ScriptedEngine()
        worker = DeadlineSweepWorker(engine, TEST_LIFECYCLE_CONFIG)  # type: ignore[arg-type]

        await worker.run_once()
        await worker.run_once()

        first, second = engine.correlation_ids
        assert first and second and first != second

    @pytest.mark.asyncio
    async def test_failed_pass_is_counted_and_raised(self) -> None:
        engine = _ScriptedEngine(
            DependencyUnavailableError("challenge_repository", "list_due_for_expiry")
        )
        worker = DeadlineSweepWorker(engine, TEST_LIFECYCLE_CONFIG)  # type: ignore[arg-type]

        with pytest.raises(DependencyUnavailableError):
            await worker.run_once()

        assert worker.get_metrics()["passes_failed"] == 1


class TestRunLoop:
    @pytest.mark.asyncio
    async def test_failed_pass_is_retried_next_tick(self) -> None:
        engine = _ScriptedEngine(
            DependencyUnavailableError("challenge_repository", "list_due_for_expiry"),
            DeadlineSweepResult(expired=2),
        )
        worker = DeadlineSweepWorker(engine, TEST_LIFECYCLE_CONFIG)  # type: ignore[arg-type]

        task = asyncio.create_task(worker.run())
        while engine.calls < 3:
            await asyncio.sleep(0.01)
        worker.stop()
        await asyncio.wait_for(task, timeout=1)

        metrics = worker.get_metrics()
        assert metrics["passes_failed"] == 1
        assert metrics["deadlines_expired"] == 2
        assert not worker.is_running

    @pytest.mark.asyncio
    async def test_unexpected_error_stops_worker(self) -> None:
        engine = _ScriptedEngine(RuntimeError("bug"))
        worker = DeadlineSweepWorker(engine, TEST_LIFECYCLE_CONFIG)  # type: ignore[arg-type]

        with pytest.raises(RuntimeError):
            await worker.run()

        assert not worker.is_running

    @pytest.mark.asyncio
    async def test_stop_interrupts_wait(self) -> None:
        engine = _ScriptedEngine()
        worker = DeadlineSweepWorker(engine)  # type: ignore[arg-type]

        task = asyncio.create_task(worker.run())
        while engine.calls < 1:
            await asyncio.sleep(0)
        worker.stop()
        await asyncio.wait_for(task, timeout=1)

        assert worker.get_metrics()["interval_seconds"] == 300.0
