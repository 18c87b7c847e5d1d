"""Deadline policy and challenge lifecycle configuration.

This module defines the tunables of the engine with environment variable
overrides for production tuning.

Environment Variables (Deadline Policy):
- DEADLINE_DEFENSE_BUSINESS_DAYS: Defense window length (default: 5)
- DEADLINE_JUDGMENT_BUSINESS_DAYS: Judgment window length (default: 10)
- DEADLINE_APPEAL_BUSINESS_DAYS: Appeal window length (default: 3)
- DEADLINE_EXTENSION_BUSINESS_DAYS: Single extension length (default: 3)
- DEADLINE_TIMEZONE: IANA zone where business days are counted (default: UTC)
- DEADLINE_HOLIDAYS: Comma-separated ISO dates that are not business days

Environment Variables (Lifecycle):
- CHALLENGE_MAX_INSTANCE: Highest adjudication instance (default: 2)
- CHALLENGE_TRANSITION_MAX_RETRIES: CAS attempts per transition (default: 3)
- DEADLINE_SWEEP_INTERVAL_SECONDS: Pause between sweeps (default: 300)
- DEADLINE_SWEEP_BATCH_LIMIT: Max challenges examined per sweep (default: 500)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from electoral_engine.domain.models.deadline import DeadlinePhase


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_dates_env(key: str) -> frozenset[date]:
    """Parse a comma-separated list of ISO dates, skipping invalid entries."""
    value = os.environ.get(key, "")
    days: set[date] = set()
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            days.add(date.fromisoformat(item))
        except ValueError:
            continue
    return frozenset(days)


@dataclass(frozen=True)
class DeadlinePolicyConfig:
    """Durations of phase deadlines, in business days.

    Attributes:
        defense_business_days: Window for the challenged party's defense.
        judgment_business_days: Window for the commission's ruling.
        appeal_business_days: Window for filing an appeal after a ruling.
        extension_business_days: Length of the single allowed extension.
        timezone: IANA zone in which business days start and end.
        holidays: Dates the reference calendar treats as non-business days.
    """

    defense_business_days: int = 5
    judgment_business_days: int = 10
    appeal_business_days: int = 3
    extension_business_days: int = 3
    timezone: str = "UTC"
    holidays: frozenset[date] = field(default=frozenset())

    def __post_init__(self) -> None:
        """Validate configuration values."""
        for name in (
            "defense_business_days",
            "judgment_business_days",
            "appeal_business_days",
            "extension_business_days",
        ):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"{name} must be positive, got {value}")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {self.timezone}") from e

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def business_days_for(self, phase: DeadlinePhase) -> int:
        """Window length for a phase.

        Raises:
            ValueError: For the filing phase, whose window comes from the
                election rather than from a duration.
        """
        durations = {
            DeadlinePhase.DEFENSE: self.defense_business_days,
            DeadlinePhase.JUDGMENT: self.judgment_business_days,
            DeadlinePhase.APPEAL: self.appeal_business_days,
        }
        if phase not in durations:
            raise ValueError(f"phase {phase.value} has no configured duration")
        return durations[phase]

    @classmethod
    def from_environment(cls) -> "DeadlinePolicyConfig":
        """Create config from environment variables with defaults.

        Returns:
            DeadlinePolicyConfig with values from environment or defaults.
        """
        return cls(
            defense_business_days=_get_int_env("DEADLINE_DEFENSE_BUSINESS_DAYS", 5),
            judgment_business_days=_get_int_env("DEADLINE_JUDGMENT_BUSINESS_DAYS", 10),
            appeal_business_days=_get_int_env("DEADLINE_APPEAL_BUSINESS_DAYS", 3),
            extension_business_days=_get_int_env("DEADLINE_EXTENSION_BUSINESS_DAYS", 3),
            timezone=os.environ.get("DEADLINE_TIMEZONE", "UTC"),
            holidays=_get_dates_env("DEADLINE_HOLIDAYS"),
        )


@dataclass(frozen=True)
class LifecycleConfig:
    """Limits for challenge transitions and the deadline sweep.

    Attributes:
        max_instance: Highest adjudication instance. A ruling at this
            instance is never appealable.
        transition_max_retries: Attempts of read-decide-write per
            transition before a ConcurrencyConflictError surfaces.
        sweep_interval_seconds: Pause between sweeps of the worker.
        sweep_batch_limit: Max challenges examined per sweep.
    """

    max_instance: int = 2
    transition_max_retries: int = 3
    sweep_interval_seconds: float = 300.0
    sweep_batch_limit: int = 500

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_instance < 1:
            raise ValueError(f"max_instance must be positive, got {self.max_instance}")
        if self.transition_max_retries < 1:
            raise ValueError(
                f"transition_max_retries must be at least 1, "
                f"got {self.transition_max_retries}"
            )
        if self.sweep_interval_seconds <= 0:
            raise ValueError(
                f"sweep_interval_seconds must be positive, "
                f"got {self.sweep_interval_seconds}"
            )
        if self.sweep_batch_limit < 1:
            raise ValueError(
                f"sweep_batch_limit must be positive, got {self.sweep_batch_limit}"
            )

    @classmethod
    def from_environment(cls) -> "LifecycleConfig":
        """Create config from environment variables with defaults."""
        return cls(
            max_instance=_get_int_env("CHALLENGE_MAX_INSTANCE", 2),
            transition_max_retries=_get_int_env("CHALLENGE_TRANSITION_MAX_RETRIES", 3),
            sweep_interval_seconds=_get_float_env(
                "DEADLINE_SWEEP_INTERVAL_SECONDS", 300.0
            ),
            sweep_batch_limit=_get_int_env("DEADLINE_SWEEP_BATCH_LIMIT", 500),
        )


# Pre-defined configurations for common use cases

# Default production config
DEFAULT_DEADLINE_POLICY_CONFIG = DeadlinePolicyConfig()
DEFAULT_LIFECYCLE_CONFIG = LifecycleConfig()

# Testing config: same legal durations, fast sweeps
TEST_DEADLINE_POLICY_CONFIG = DeadlinePolicyConfig()
TEST_LIFECYCLE_CONFIG = LifecycleConfig(
    sweep_interval_seconds=0.01,
    sweep_batch_limit=100,
)
