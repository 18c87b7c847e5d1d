"""Shared plumbing for application services.

LoggingMixin gives every service the same structured logging convention:
a logger bound with the service name, and per-operation loggers carrying
the operation name and the current correlation id.

`call_dependency` is the single place where failures of injected
collaborators (calendar, eligibility roll, registries, publisher) are
turned into DependencyUnavailableError.

Usage:
    class MyService(LoggingMixin):
        def __init__(self, registry: ElectionRegistryProtocol) -> None:
            self._registry = registry
            self._init_logger()

        async def do_something(self, election_id: int) -> None:
            log = self._log_operation("do_something", election_id=election_id)
            election = await call_dependency(
                "election_registry",
                "get_election",
                self._registry.get_election(election_id),
            )
            log.info("operation_completed")
"""

from collections.abc import Awaitable
from typing import TypeVar

import structlog

from electoral_engine.domain.errors.dependency import DependencyUnavailableError
from electoral_engine.domain.exceptions import ElectoralEngineError
from electoral_engine.infrastructure.observability.correlation import (
    get_correlation_id,
)

T = TypeVar("T")


async def call_dependency(dependency: str, operation: str, call: Awaitable[T]) -> T:
    """Await a collaborator call, wrapping foreign failures.

    Domain errors raised by the collaborator pass through unchanged; any
    other exception becomes DependencyUnavailableError with the original
    as __cause__.

    Args:
        dependency: Name of the collaborator, for the error and logs.
        operation: Name of the call.
        call: The awaitable to run.

    Returns:
        Whatever the call returns.

    Raises:
        DependencyUnavailableError: If the call raised a non-domain error.
    """
    try:
        return await call
    except ElectoralEngineError:
        raise
    except Exception as e:
        raise DependencyUnavailableError(
            dependency=dependency,
            operation=operation,
            reason=f"{type(e).__name__}: {e}",
        ) from e


class LoggingMixin:
    """Mixin providing structured logging for services.

    The logger is bound with:
    - service: The class name of the service
    - component: The component type (default: "electoral_engine")

    Attributes:
        _log: The structlog BoundLogger for this service instance.
    """

    _log: structlog.BoundLogger

    def _init_logger(self, component: str = "electoral_engine") -> None:
        """Initialize the logger with service name binding.

        Should be called in __init__ after setting up dependencies.

        Args:
            component: The component type for log categorization.
        """
        self._log = structlog.get_logger(__name__).bind(
            service=self.__class__.__name__,
            component=component,
        )

    def _log_operation(
        self,
        operation: str,
        **context: object,
    ) -> structlog.BoundLogger:
        """Create an operation-scoped logger with correlation ID.

        Args:
            operation: Name of the operation being performed.
            **context: Additional context to bind to the logger.

        Returns:
            BoundLogger with operation and correlation context.
        """
        return self._log.bind(
            operation=operation,
            correlation_id=get_correlation_id(),
            **context,
        )
