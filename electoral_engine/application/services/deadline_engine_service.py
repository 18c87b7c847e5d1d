"""Deadline engine: computes, extends and expires phase deadlines.

Window arithmetic:
    Counting starts on the business day after `window_start`. The window
    ends at the last instant (23:59:59.999999) of the final business day,
    in the configured deadline timezone. Business days come from the
    injected BusinessCalendarProtocol.

Expiry sweep:
    `expire()` finds every active deadline whose window_end is in the past
    and marks it EXPIRED with a compare-and-swap on the owning challenge.
    Only the writer that wins the CAS emits DeadlineExpiredEvent, so
    concurrent or repeated sweeps emit it once. Internal subscribers (the
    lifecycle service) then apply the follow-up system transition.

    A failed write or subscriber is logged and counted, never fatal to the
    sweep. Expired deadlines whose follow-up did not happen are
    re-delivered to the subscribers on the next pass (reconciliation);
    the outbound publisher is not called again.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import date, datetime, time, timedelta, timezone

import structlog

from electoral_engine.application.dtos.requests import ExtendDeadlineRequest
from electoral_engine.application.dtos.results import DeadlineSweepResult
from electoral_engine.application.ports.business_calendar import (
    BusinessCalendarProtocol,
)
from electoral_engine.application.ports.challenge_repository import (
    ChallengeRepositoryProtocol,
)
from electoral_engine.application.ports.event_publisher import EventPublisherProtocol
from electoral_engine.application.ports.time_authority import TimeAuthorityProtocol
from electoral_engine.application.services.base import LoggingMixin, call_dependency
from electoral_engine.config.engine_config import (
    DEFAULT_DEADLINE_POLICY_CONFIG,
    DEFAULT_LIFECYCLE_CONFIG,
    DeadlinePolicyConfig,
    LifecycleConfig,
)
from electoral_engine.domain.errors import (
    ChallengeNotFoundError,
    ConcurrencyConflictError,
    DeadlineNotFoundError,
    DependencyUnavailableError,
)
from electoral_engine.domain.events.deadline import (
    DeadlineExpiredEvent,
    DeadlineExtendedEvent,
)
from electoral_engine.domain.exceptions import ElectoralEngineError
from electoral_engine.domain.models.challenge import Challenge
from electoral_engine.domain.models.deadline import (
    EXTENDABLE_PHASES,
    Deadline,
    DeadlinePhase,
)
from electoral_engine.infrastructure.monitoring.metrics import EngineMetrics

DeadlineExpiredHandler = Callable[[DeadlineExpiredEvent], Awaitable[None]]

# A calendar with no business day in a year is treated as broken
MAX_CALENDAR_SCAN_DAYS: int = 366

EXTEND_OPERATION = "extend_deadline"


class DeadlineEngineService(LoggingMixin):
    """Computes, tracks, extends and expires phase deadlines.

    Example:
        >>> engine = DeadlineEngineService(repo, calendar, time, publisher)
        >>> engine.subscribe(lifecycle.on_deadline_expired)
        >>> result = await engine.expire()
        >>> result.expired
        3
    """

    def __init__(
        self,
        repository: ChallengeRepositoryProtocol,
        calendar: BusinessCalendarProtocol,
        time_authority: TimeAuthorityProtocol,
        publisher: EventPublisherProtocol,
        policy: DeadlinePolicyConfig = DEFAULT_DEADLINE_POLICY_CONFIG,
        config: LifecycleConfig = DEFAULT_LIFECYCLE_CONFIG,
        metrics: EngineMetrics | None = None,
    ) -> None:
        """Initialize the deadline engine.

        Args:
            repository: Challenge store; deadlines live inside challenges.
            calendar: Source of business days.
            time_authority: Source of "now".
            publisher: Outbound event publisher.
            policy: Phase durations and timezone.
            config: Retry bound and sweep batch size.
            metrics: Optional metrics collector.
        """
        self._repository = repository
        self._calendar = calendar
        self._time = time_authority
        self._publisher = publisher
        self._policy = policy
        self._config = config
        self._metrics = metrics if metrics is not None else EngineMetrics()
        self._handlers: list[DeadlineExpiredHandler] = []
        self._init_logger()

    def subscribe(self, handler: DeadlineExpiredHandler) -> None:
        """Register an internal subscriber for DeadlineExpiredEvent."""
        self._handlers.append(handler)

    # ------------------------------------------------------------------
    # Window arithmetic
    # ------------------------------------------------------------------

    async def compute_window_end(
        self, phase: DeadlinePhase, window_start: datetime
    ) -> datetime:
        """Compute the end of a phase window opened at `window_start`.

        Raises:
            ValueError: For phases without a configured duration.
            DependencyUnavailableError: If the calendar fails.
        """
        return await self.add_business_days(
            window_start, self._policy.business_days_for(phase)
        )

    async def add_business_days(self, start: datetime, days: int) -> datetime:
        """Last instant of the `days`-th business day after `start`.

        Returns:
            A UTC datetime.
        """
        tz = self._policy.tzinfo
        day = start.astimezone(tz).date()
        counted = 0
        scanned = 0
        while counted < days:
            day += timedelta(days=1)
            scanned += 1
            if scanned > MAX_CALENDAR_SCAN_DAYS * days:
                raise DependencyUnavailableError(
                    dependency="business_calendar",
                    operation="is_business_day",
                    reason=f"no business day found within {scanned} days",
                )
            if await self._is_business_day(day):
                counted += 1
        return datetime.combine(day, time.max, tzinfo=tz).astimezone(timezone.utc)

    async def open_deadline(
        self, phase: DeadlinePhase, window_start: datetime, instance: int
    ) -> Deadline:
        """Create an ACTIVE deadline for a phase opening now."""
        window_end = await self.compute_window_end(phase, window_start)
        deadline_id = await self._repository.next_deadline_id()
        return Deadline(
            id=deadline_id,
            phase=phase,
            window_start=window_start,
            window_end=window_end,
            instance=instance,
            extendable=phase in EXTENDABLE_PHASES,
        )

    async def _is_business_day(self, day: date) -> bool:
        return await call_dependency(
            "business_calendar",
            "is_business_day",
            self._calendar.is_business_day(day),
        )

    # ------------------------------------------------------------------
    # Extension
    # ------------------------------------------------------------------

    async def extend_deadline(self, request: ExtendDeadlineRequest) -> Deadline:
        """Use the single extension of an active, extendable deadline.

        The window end moves forward by `extension_business_days`, counted
        from the current window end.

        Returns:
            The extended deadline.

        Raises:
            ChallengeNotFoundError: Unknown challenge.
            DeadlineNotFoundError: Unknown deadline.
            NotExtendableError: Not extendable, already extended, or closed.
            DeadlineExpiredError: The window has already passed.
            ConcurrencyConflictError: Retries exhausted.
        """
        log = self._log_operation(
            EXTEND_OPERATION,
            challenge_id=request.challenge_id,
            deadline_id=request.deadline_id,
            actor_id=request.actor_id,
        )
        request_key = (
            f"{EXTEND_OPERATION}:{request.idempotency_key}"
            if request.idempotency_key
            else None
        )
        conflict: ConcurrencyConflictError | None = None
        for attempt in range(1, self._config.transition_max_retries + 1):
            current = await self._load(request.challenge_id)
            if request_key is not None and current.has_applied(request_key):
                log.info("request_replayed", version=current.version)
                return self._require_deadline(current, request.deadline_id)

            now = self._time.now()
            try:
                deadline = current.check_extendable(request.deadline_id, now)
                new_end = await self.add_business_days(
                    deadline.window_end, self._policy.extension_business_days
                )
                updated = current.extend_deadline(deadline.id, new_end, now)
            except ElectoralEngineError as e:
                self._metrics.record_rejection(EXTEND_OPERATION, type(e).__name__)
                log.warning("extension_rejected", error=type(e).__name__, detail=str(e))
                raise

            try:
                saved = await self._repository.save(
                    updated.record_request(request_key),
                    expected_version=current.version,
                )
            except ConcurrencyConflictError as e:
                conflict = e
                self._metrics.record_conflict(EXTEND_OPERATION)
                log.info("extension_conflict", attempt=attempt)
                continue

            extended = self._require_deadline(saved, deadline.id)
            self._metrics.record_transition(EXTEND_OPERATION)
            log.info(
                "deadline_extended",
                phase=extended.phase.value,
                previous_window_end=deadline.window_end.isoformat(),
                new_window_end=extended.window_end.isoformat(),
            )
            await call_dependency(
                "event_publisher",
                "publish",
                self._publisher.publish(
                    DeadlineExtendedEvent(
                        challenge_id=saved.id,
                        deadline_id=extended.id,
                        phase=extended.phase.value,
                        previous_window_end=deadline.window_end,
                        new_window_end=extended.window_end,
                        occurred_at=now,
                    )
                ),
            )
            return extended

        if conflict is None:
            raise ValueError("transition_max_retries must be at least 1")
        self._metrics.record_rejection(EXTEND_OPERATION, type(conflict).__name__)
        log.warning("extension_retries_exhausted")
        raise conflict

    # ------------------------------------------------------------------
    # Expiry sweep
    # ------------------------------------------------------------------

    async def expire(self) -> DeadlineSweepResult:
        """Run one expiry sweep.

        Returns:
            Counts of expired, skipped, failed and reconciled deadlines.
        """
        started = self._time.monotonic()
        now = self._time.now()
        log = self._log_operation("expire", sweep_at=now.isoformat())
        limit = self._config.sweep_batch_limit

        expired = skipped = failed = reconciled = 0
        handled: set[int] = set()

        for challenge in await self._repository.list_due_for_expiry(now, limit):
            for deadline in challenge.deadlines:
                if not deadline.is_overdue(now):
                    continue
                handled.add(deadline.id)
                dlog = log.bind(
                    challenge_id=challenge.id,
                    deadline_id=deadline.id,
                    phase=deadline.phase.value,
                )
                try:
                    event = await self._expire_one(challenge.id, deadline.id, now)
                except Exception as e:
                    failed += 1
                    dlog.error(
                        "deadline_expiry_failed",
                        error=type(e).__name__,
                        detail=str(e),
                    )
                    continue
                if event is None:
                    skipped += 1
                    dlog.debug("deadline_expiry_skipped")
                    continue

                expired += 1
                self._metrics.record_deadline_expired(event.phase)
                dlog.info("deadline_expired", window_end=event.window_end.isoformat())
                if not await self._publish_expired(event, dlog):
                    failed += 1
                if not await self._deliver(event, dlog):
                    failed += 1

        for challenge in await self._repository.list_pending_followups(limit):
            for deadline in challenge.pending_expiry_followups():
                if deadline.id in handled:
                    continue
                dlog = log.bind(
                    challenge_id=challenge.id,
                    deadline_id=deadline.id,
                    phase=deadline.phase.value,
                )
                event = self._expired_event(challenge, deadline)
                if await self._deliver(event, dlog):
                    reconciled += 1
                    dlog.info("deadline_followup_reconciled")
                else:
                    failed += 1

        duration = self._time.monotonic() - started
        self._metrics.observe_sweep(duration, failed)
        result = DeadlineSweepResult(
            expired=expired,
            skipped=skipped,
            failed=failed,
            reconciled=reconciled,
            duration_seconds=duration,
        )
        log.info(
            "deadline_sweep_completed",
            expired=expired,
            skipped=skipped,
            failed=failed,
            reconciled=reconciled,
            duration_seconds=round(duration, 6),
        )
        return result

    async def _expire_one(
        self, challenge_id: int, deadline_id: int, now: datetime
    ) -> DeadlineExpiredEvent | None:
        """Mark one deadline expired; None if another writer got there first."""
        conflict: ConcurrencyConflictError | None = None
        for _ in range(self._config.transition_max_retries):
            current = await self._load(challenge_id)
            deadline = current.deadline_by_id(deadline_id)
            if deadline is None or not deadline.is_overdue(now):
                return None
            updated = current.expire_deadline(deadline_id, now)
            try:
                saved = await self._repository.save(
                    updated, expected_version=current.version
                )
            except ConcurrencyConflictError as e:
                conflict = e
                self._metrics.record_conflict("expire_deadline")
                continue
            return self._expired_event(saved, self._require_deadline(saved, deadline_id))
        if conflict is None:
            raise ValueError("transition_max_retries must be at least 1")
        raise conflict

    async def _publish_expired(
        self, event: DeadlineExpiredEvent, log: structlog.BoundLogger
    ) -> bool:
        try:
            await call_dependency(
                "event_publisher", "publish", self._publisher.publish(event)
            )
        except DependencyUnavailableError as e:
            log.error("deadline_event_publish_failed", detail=str(e))
            return False
        return True

    async def _deliver(
        self, event: DeadlineExpiredEvent, log: structlog.BoundLogger
    ) -> bool:
        """Hand the event to every internal subscriber.

        Returns:
            True if all subscribers succeeded.
        """
        ok = True
        for handler in self._handlers:
            try:
                await handler(event)
            except Exception as e:
                ok = False
                log.error(
                    "deadline_subscriber_failed",
                    error=type(e).__name__,
                    detail=str(e),
                )
        return ok

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _load(self, challenge_id: int) -> Challenge:
        challenge = await self._repository.get(challenge_id)
        if challenge is None:
            raise ChallengeNotFoundError(challenge_id=challenge_id)
        return challenge

    @staticmethod
    def _require_deadline(challenge: Challenge, deadline_id: int) -> Deadline:
        deadline = challenge.deadline_by_id(deadline_id)
        if deadline is None:
            raise DeadlineNotFoundError(deadline_id)
        return deadline

    @staticmethod
    def _expired_event(challenge: Challenge, deadline: Deadline) -> DeadlineExpiredEvent:
        return DeadlineExpiredEvent(
            challenge_id=challenge.id,
            deadline_id=deadline.id,
            phase=deadline.phase.value,
            instance=deadline.instance,
            window_end=deadline.window_end,
            expired_at=deadline.closed_at or challenge.updated_at,
        )
