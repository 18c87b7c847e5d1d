"""Deadline sweep worker: the clock that drives deadline expiry.

Runs `DeadlineEngineService.expire()` every `sweep_interval_seconds`.
Each pass runs under its own correlation id so its log lines group
together.

A pass that fails with a domain error (for example an unavailable
repository wrapped as DependencyUnavailableError) is logged and retried
on the next tick. Anything else stops the worker.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import structlog

from electoral_engine.application.dtos.results import DeadlineSweepResult
from electoral_engine.application.services.deadline_engine_service import (
    DeadlineEngineService,
)
from electoral_engine.config.engine_config import (
    DEFAULT_LIFECYCLE_CONFIG,
    LifecycleConfig,
)
from electoral_engine.domain.exceptions import ElectoralEngineError
from electoral_engine.infrastructure.observability.correlation import (
    correlation_scope,
)

logger = structlog.get_logger(__name__)


@dataclass
class SweepWorkerMetrics:
    """Counters kept by the worker across passes."""

    passes: int = 0
    passes_failed: int = 0
    deadlines_expired: int = 0
    followups_reconciled: int = 0
    item_failures: int = 0


class DeadlineSweepWorker:
    """Periodically asks the deadline engine to expire overdue deadlines."""

    def __init__(
        self,
        engine: DeadlineEngineService,
        config: LifecycleConfig = DEFAULT_LIFECYCLE_CONFIG,
    ) -> None:
        self._engine = engine
        self._interval = config.sweep_interval_seconds
        self._running = False
        self._stop_event = asyncio.Event()
        self._metrics = SweepWorkerMetrics()

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_once(self) -> DeadlineSweepResult:
        """Run a single sweep pass.

        Raises:
            ElectoralEngineError: If the pass itself could not run.
        """
        with correlation_scope() as correlation_id:
            log = logger.bind(correlation_id=correlation_id)
            self._metrics.passes += 1
            try:
                result = await self._engine.expire()
            except ElectoralEngineError as e:
                self._metrics.passes_failed += 1
                log.error("sweep_pass_failed", error=type(e).__name__, detail=str(e))
                raise
            self._metrics.deadlines_expired += result.expired
            self._metrics.followups_reconciled += result.reconciled
            self._metrics.item_failures += result.failed
            return result

    async def run(self) -> None:
        """Sweep until stop() is called."""
        self._running = True
        self._stop_event.clear()
        logger.info("deadline_sweep_worker_started", interval_seconds=self._interval)
        try:
            while self._running:
                try:
                    await self.run_once()
                except ElectoralEngineError:
                    pass  # logged in run_once; retried next tick
                try:
                    await asyncio.wait_for(self._stop_event.wait(), self._interval)
                except asyncio.TimeoutError:
                    continue
        except Exception as e:
            logger.critical("deadline_sweep_worker_fatal", error=str(e))
            raise
        finally:
            self._running = False
            logger.info("deadline_sweep_worker_stopped", passes=self._metrics.passes)

    def stop(self) -> None:
        """Signal the worker to stop after the current pass."""
        logger.info("deadline_sweep_worker_stop_requested")
        self._running = False
        self._stop_event.set()

    def get_metrics(self) -> dict[str, Any]:
        """Get worker metrics for monitoring."""
        return {
            "passes": self._metrics.passes,
            "passes_failed": self._metrics.passes_failed,
            "deadlines_expired": self._metrics.deadlines_expired,
            "followups_reconciled": self._metrics.followups_reconciled,
            "item_failures": self._metrics.item_failures,
            "interval_seconds": self._interval,
            "running": self._running,
        }
