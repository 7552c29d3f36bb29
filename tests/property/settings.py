# tests/property/settings.py
"""Standardized Hypothesis settings profiles for property tests.

Import these instead of using inline @settings(max_examples=...).

Usage:
    from tests.property.settings import STANDARD_SETTINGS

    @given(lines=input_lines)
    @STANDARD_SETTINGS
    def test_something(lines):
        ...

Tiers:
- STATE_MACHINE_SETTINGS: 200 examples - Stateful tests
- STANDARD_SETTINGS: 100 examples - Regular property tests
- THREADED_SETTINGS: 50 examples - Tests that start a thread pool per example
"""

from hypothesis import settings

# RuleBasedStateMachine tests benefit from more examples
STATE_MACHINE_SETTINGS = settings(max_examples=200, deadline=None)

STANDARD_SETTINGS = settings(max_examples=100)

# Each example spins up worker threads; fewer examples keep the suite fast
THREADED_SETTINGS = settings(max_examples=50, deadline=None)
