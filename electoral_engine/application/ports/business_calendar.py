"""Business calendar port used to count deadline windows in business days."""

from __future__ import annotations

from datetime import date
from typing import Protocol


class BusinessCalendarProtocol(Protocol):
    """Protocol for deciding which calendar days count toward a deadline.

    Implementations typically combine weekends with a holiday table.
    Failures propagate; the engine wraps them as DependencyUnavailableError.
    """

    async def is_business_day(self, day: date) -> bool:
        """Whether `day` counts as a business day."""
        ...
