"""Test helpers for the electoral engine tests.

Helpers:
    FakeTimeAuthority: Controllable time authority for deterministic tests
    builders: Factories for requests and challenges in a known state

Usage:
    from tests.helpers import FakeTimeAuthority
    from tests.helpers.builders import file_challenge_request
"""

from tests.helpers.fake_time_authority import FakeTimeAuthority

__all__ = ["FakeTimeAuthority"]
