"""Time authority port: the single source of "now" for the engine.

Services MUST inject a TimeAuthorityProtocol implementation instead of
reading the wall clock directly. Deadline checks, ruling lateness and
ballot timestamps all depend on it, and tests drive it with
FakeTimeAuthority.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class TimeAuthorityProtocol(ABC):
    """Abstract interface for time authority.

    For production:
        Use SystemTimeAuthority from electoral_engine.application.services

    For testing:
        Use FakeTimeAuthority from tests/helpers/fake_time_authority.py
    """

    @abstractmethod
    def now(self) -> datetime:
        """Return current time with timezone awareness (UTC)."""
        ...

    @abstractmethod
    def utcnow(self) -> datetime:
        """Return current UTC time."""
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Return monotonic clock value for measuring elapsed time.

        Returns:
            Monotonically increasing float value (in seconds).
        """
        ...
