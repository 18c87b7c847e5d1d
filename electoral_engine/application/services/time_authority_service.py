"""System time authority.

The production implementation of TimeAuthorityProtocol. It is the only
place in the engine that reads the wall clock.
"""

import time
from datetime import datetime, timezone

from electoral_engine.application.ports.time_authority import TimeAuthorityProtocol


class SystemTimeAuthority(TimeAuthorityProtocol):
    """Wall-clock time authority returning timezone-aware UTC datetimes."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def utcnow(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()
