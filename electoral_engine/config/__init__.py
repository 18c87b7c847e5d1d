"""Configuration for the electoral engine."""

from electoral_engine.config.engine_config import (
    DEFAULT_DEADLINE_POLICY_CONFIG,
    DEFAULT_LIFECYCLE_CONFIG,
    TEST_DEADLINE_POLICY_CONFIG,
    TEST_LIFECYCLE_CONFIG,
    DeadlinePolicyConfig,
    LifecycleConfig,
)

__all__ = [
    "DEFAULT_DEADLINE_POLICY_CONFIG",
    "DEFAULT_LIFECYCLE_CONFIG",
    "TEST_DEADLINE_POLICY_CONFIG",
    "TEST_LIFECYCLE_CONFIG",
    "DeadlinePolicyConfig",
    "LifecycleConfig",
]
