"""Operational metrics."""

from electoral_engine.infrastructure.monitoring.metrics import EngineMetrics

__all__ = ["EngineMetrics"]
