"""Game configuration — every tunable default in one place.

:class:`GameConfig` is a frozen dataclass. Defaults mirror the original
dashboard (5-tick Equal bet on 22, stake 1.0, 5% margin, 100 Vol Index).
Override from the environment with :meth:`GameConfig.from_env` or per call
with :func:`dataclasses.replace`.

Environment variables (all optional)::

    DIGIT_OPTION_FEED          simulated | live
    DIGIT_OPTION_SYMBOL        market symbol, e.g. 1HZ100V
    DIGIT_OPTION_WS_URL        websocket endpoint for the live feed
    DIGIT_OPTION_DURATION      default contract duration (ticks)
    DIGIT_OPTION_TARGET        default target digit sum
    DIGIT_OPTION_BET_TYPE      Equal | Higher | Lower
    DIGIT_OPTION_STAKE         default stake
    DIGIT_OPTION_MARGIN        house margin in [0, 1)
    DIGIT_OPTION_LOG_LEVEL     logging level name
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Final

from digit_option.engine.digits import DEFAULT_DECIMALS, max_digit_sum
from digit_option.engine.feed import DERIV_WS_URL
from digit_option.engine.history import HISTORY_LEN
from digit_option.engine.rules import BetType, parse_bet_type

logger = logging.getLogger(__name__)

ENV_PREFIX: Final[str] = "DIGIT_OPTION_"

FEED_KINDS: Final[tuple[str, ...]] = ("simulated", "live")

# Markets offered in the dashboard: (label, symbol)
INDEX_OPTIONS: Final[tuple[tuple[str, str], ...]] = (
    ("100 Vol (2 sec) Index", "R_100"),
    ("100 Vol Index", "1HZ100V"),
    ("CRASH 300 Index", "CRASH300N"),
    ("BOOM 300 Index", "BOOM300N"),
    ("Bull Index", "RDBULL"),
    ("Bear Index", "RDBEAR"),
)

# Slider bounds used by the dashboard.
MIN_DURATION: Final[int] = 1
MAX_DURATION: Final[int] = 10


@dataclass(frozen=True)
class GameConfig:
    """Immutable configuration bundle for one game session.

    Attributes:
        duration: Default contract length in ticks (k).
        target: Default target digit sum (n).
        bet_type: Default bet relation.
        stake: Default stake in currency units.
        margin: House margin applied to the offered payout, in [0, 1).
        symbol: Market symbol for the feed.
        feed: ``"simulated"`` (random walk) or ``"live"`` (Deriv websocket).
        ws_url: Websocket endpoint for the live feed.
        start_price: Initial price of the simulated walk.
        volatility: Per-tick volatility of the simulated walk.
        decimals: Quote precision; the last digit is read at this place.
        history_len: Number of price points kept for the chart.
        display_timeout_s: Seconds a resolved outcome stays on screen.
        tick_interval_s: Seconds between ticks of the simulated feed.
        log_level: Logging level name for the dashboard.
    """

    duration: int = 5
    target: int = 22
    bet_type: BetType = BetType.EQUAL
    stake: float = 1.0
    margin: float = 0.05
    symbol: str = "1HZ100V"
    feed: str = "simulated"
    ws_url: str = DERIV_WS_URL
    start_price: float = 1000.0
    volatility: float = 0.001
    decimals: int = DEFAULT_DECIMALS
    history_len: int = HISTORY_LEN
    display_timeout_s: float = 1.0
    tick_interval_s: float = 1.0
    log_level: str = "INFO"

    def validate(self) -> GameConfig:
        """Return self if every field is in range.

        Raises:
            ValueError: On the first out-of-range field.
        """
        if not MIN_DURATION <= self.duration <= MAX_DURATION:
            raise ValueError(
                f"duration must be in [{MIN_DURATION}, {MAX_DURATION}], got {self.duration}."
            )
        if not 0 <= self.target <= max_digit_sum(self.duration):
            raise ValueError(
                f"target must be in [0, {max_digit_sum(self.duration)}] "
                f"for duration {self.duration}, got {self.target}."
            )
        if self.stake < 0:
            raise ValueError(f"stake must be non-negative, got {self.stake}.")
        if not 0.0 <= self.margin < 1.0:
            raise ValueError(f"margin must be in [0, 1), got {self.margin}.")
        if self.feed not in FEED_KINDS:
            raise ValueError(f"feed must be one of {FEED_KINDS}, got {self.feed!r}.")
        if self.start_price <= 0:
            raise ValueError(f"start_price must be positive, got {self.start_price}.")
        if self.volatility < 0:
            raise ValueError(f"volatility must be non-negative, got {self.volatility}.")
        if self.decimals < 0:
            raise ValueError(f"decimals must be non-negative, got {self.decimals}.")
        if self.history_len < 1:
            raise ValueError(f"history_len must be >= 1, got {self.history_len}.")
        if self.display_timeout_s < 0:
            raise ValueError(
                f"display_timeout_s must be non-negative, got {self.display_timeout_s}."
            )
        if self.tick_interval_s <= 0:
            raise ValueError(f"tick_interval_s must be positive, got {self.tick_interval_s}.")
        return self

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> GameConfig:
        """Build a validated config from ``DIGIT_OPTION_*`` environment variables.

        Unset variables keep their defaults.

        Raises:
            ValueError: If a variable cannot be parsed or is out of range.
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            overrides[f.name] = _parse_field(f.name, raw, getattr(cls, f.name))
        if overrides:
            logger.debug("Config overrides from environment: %s", sorted(overrides))
        return cls(**overrides).validate()


def _parse_field(name: str, raw: str, default: object) -> object:
    if isinstance(default, BetType):
        return parse_bet_type(raw)
    try:
        if isinstance(default, int):
            return int(raw)
        if isinstance(default, float):
            return float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}") from exc
    return raw.strip()
