"""Background workers."""

from electoral_engine.workers.deadline_sweep_worker import (
    DeadlineSweepWorker,
    SweepWorkerMetrics,
)

__all__ = ["DeadlineSweepWorker", "SweepWorkerMetrics"]
