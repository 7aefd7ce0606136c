"""
Shared pytest fixtures for digit-option tests.

Provides helpers for building quote sequences with known last digits.
"""

from __future__ import annotations

import pytest

from digit_option.config import GameConfig
from digit_option.engine.feed import ReplayFeed


def quotes_for(*digits: int, base: float = 1000.0) -> tuple[float, ...]:
    """Build quotes (2 decimals) whose last digits are exactly ``digits``.

    Examples:
        >>> quotes_for(3, 7)
        (1000.03, 1000.07)
    """
    return tuple(round(base + d / 100, 2) for d in digits)


def replay(*digits: int) -> ReplayFeed:
    """Replay feed producing one tick per digit."""
    return ReplayFeed(quotes_for(*digits))


@pytest.fixture
def default_config() -> GameConfig:
    """Return the default (validated) game configuration."""
    return GameConfig().validate()


@pytest.fixture
def q():
    """Expose the quotes_for() helper as a fixture for convenience."""
    return quotes_for
