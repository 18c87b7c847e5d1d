"""Composition root for wiring dependencies.

This package centralizes infrastructure-aware wiring so the application
layer depends on ports only.
"""

from electoral_engine.bootstrap.engine import (
    EngineContainer,
    build_container,
    get_container,
    reset_container,
    set_container,
)
from electoral_engine.bootstrap.logging import configure_structlog

__all__ = [
    "EngineContainer",
    "build_container",
    "configure_structlog",
    "get_container",
    "reset_container",
    "set_container",
]
