"""Prometheus metrics for the challenge lifecycle, deadlines and ballots.

Labels are kept low-cardinality: event names, phases, error classes and
rejection reasons. Challenge, voter and election ids never become labels.
"""

from prometheus_client import CollectorRegistry, Counter, Histogram

# Sweep duration buckets (10ms to 60s)
SWEEP_DURATION_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)


class EngineMetrics:
    """Collects operational metrics of the engine.

    Attributes:
        transitions_total: Applied transitions by event.
        transition_conflicts_total: CAS conflicts by event.
        transitions_rejected_total: Rejected transitions by event and error.
        deadlines_expired_total: Deadlines marked expired by phase.
        deadline_sweep_duration_seconds: Wall time of each sweep.
        deadline_sweep_failures_total: Failed expiries or deliveries.
        ballots_cast_total: Accepted ballots.
        ballots_rejected_total: Rejected ballots by reason.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize collectors.

        Args:
            registry: Optional custom registry for testing isolation.
        """
        self._registry = registry if registry is not None else CollectorRegistry()

        self.transitions_total = Counter(
            name="challenge_transitions_total",
            documentation="Challenge transitions applied",
            labelnames=["event"],
            registry=self._registry,
        )
        self.transition_conflicts_total = Counter(
            name="challenge_transition_conflicts_total",
            documentation="Optimistic concurrency conflicts on challenge writes",
            labelnames=["event"],
            registry=self._registry,
        )
        self.transitions_rejected_total = Counter(
            name="challenge_transitions_rejected_total",
            documentation="Challenge operations rejected with a domain error",
            labelnames=["event", "error"],
            registry=self._registry,
        )
        self.deadlines_expired_total = Counter(
            name="deadlines_expired_total",
            documentation="Deadlines marked expired by the sweep",
            labelnames=["phase"],
            registry=self._registry,
        )
        self.deadline_sweep_duration_seconds = Histogram(
            name="deadline_sweep_duration_seconds",
            documentation="Duration of a deadline sweep",
            buckets=SWEEP_DURATION_BUCKETS,
            registry=self._registry,
        )
        self.deadline_sweep_failures_total = Counter(
            name="deadline_sweep_failures_total",
            documentation="Expiry writes or subscriber deliveries that failed",
            registry=self._registry,
        )
        self.ballots_cast_total = Counter(
            name="ballots_cast_total",
            documentation="Ballots accepted",
            registry=self._registry,
        )
        self.ballots_rejected_total = Counter(
            name="ballots_rejected_total",
            documentation="Ballots rejected by the gate",
            labelnames=["reason"],
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_transition(self, event: str) -> None:
        self.transitions_total.labels(event=event).inc()

    def record_conflict(self, event: str) -> None:
        self.transition_conflicts_total.labels(event=event).inc()

    def record_rejection(self, event: str, error: str) -> None:
        self.transitions_rejected_total.labels(event=event, error=error).inc()

    def record_deadline_expired(self, phase: str) -> None:
        self.deadlines_expired_total.labels(phase=phase).inc()

    def observe_sweep(self, duration_seconds: float, failures: int) -> None:
        """Record one sweep pass."""
        self.deadline_sweep_duration_seconds.observe(duration_seconds)
        if failures:
            self.deadline_sweep_failures_total.inc(failures)

    def record_ballot_cast(self) -> None:
        self.ballots_cast_total.inc()

    def record_ballot_rejected(self, reason: str) -> None:
        self.ballots_rejected_total.labels(reason=reason).inc()
