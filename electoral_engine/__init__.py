"""
Electoral Engine - Challenge Lifecycle, Deadlines and Ballot Gate

Core of an electoral administration system:
- Challenge (impugnação) lifecycle from filing through judgment and appeal
- Deadline (prazo) tracking with business-day arithmetic and autonomous expiry
- Ballot gate enforcing exactly one vote per eligible voter per election

Transport, rendering, document storage and notification delivery live
outside this package and talk to it through the ports in
electoral_engine.application.ports.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
