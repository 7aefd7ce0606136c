"""Probability and payout grids over every (duration, target) pair.

Grid convention (all builders):
    Shape  : (max_ticks, 9 * max_ticks + 1)
             rows = duration k in [1, max_ticks], cols = target n in [0, 9 * max_ticks]
    Values : np.nan where n lies outside the support [0, 9k] of row k.
             Payout grids also hold np.nan where the bet is unplayable
             (the 0.0 payout sentinel), so colour scales are not dragged to 0.

Every cell is an independent pure call, so the grids are also a cheap
precomputed quote cache for the dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from digit_option.engine.digits import in_support, max_digit_sum
from digit_option.engine.rules import BetType, parse_bet_type, payout, win_probability


def _grid_shape(max_ticks: int) -> tuple[int, int]:
    if max_ticks < 1:
        raise ValueError(f"max_ticks must be >= 1, got {max_ticks}.")
    return max_ticks, max_digit_sum(max_ticks) + 1


def build_probability_grid(max_ticks: int, bet_type: BetType | str) -> np.ndarray:
    """Return win probabilities for every (k, n) with k in [1, max_ticks].

    Returns:
        float64 array of shape (max_ticks, 9 * max_ticks + 1); row k-1 holds
        duration k. Cells with n > 9k are NaN.
    """
    bet_type = parse_bet_type(bet_type)
    shape = _grid_shape(max_ticks)
    grid = np.full(shape, np.nan, dtype=np.float64)
    for k in range(1, max_ticks + 1):
        for n in range(shape[1]):
            if in_support(k, n):
                grid[k - 1, n] = win_probability(k, n, bet_type)
    return grid


def build_payout_grid(
    max_ticks: int,
    bet_type: BetType | str,
    stake: float = 1.0,
    margin: float = 0.0,
) -> np.ndarray:
    """Return payouts for every (k, n); NaN outside support and for unplayable bets."""
    bet_type = parse_bet_type(bet_type)
    shape = _grid_shape(max_ticks)
    grid = np.full(shape, np.nan, dtype=np.float64)
    for k in range(1, max_ticks + 1):
        for n in range(shape[1]):
            amount = payout(stake, k, n, bet_type, margin) if in_support(k, n) else 0.0
            if amount > 0.0:
                grid[k - 1, n] = amount
    return grid


# ─── Expected value ───────────────────────────────────────────────────────────


@dataclass
class BetEconomics:
    """Expected value of one bet, from the player's perspective.

    Attributes:
        probability:     P(win).
        payout:          Amount returned on a win (stake included), 0.0 if unplayable.
        expected_return: p * payout − stake.
        house_edge_pct:  −expected_return / stake * 100 (positive = house advantage).
    """

    probability: float
    payout: float
    expected_return: float
    house_edge_pct: float


def expected_return(
    stake: float,
    k: int,
    n: int,
    bet_type: BetType | str,
    margin: float = 0.0,
) -> float:
    """Return p · payout − stake for one bet.

    An unplayable bet returns 0.0: it cannot be placed, so nothing is risked.

    Examples:
        >>> round(expected_return(1.0, 5, 22, 'Equal', margin=0.05), 4)
        -0.0502
    """
    p = win_probability(k, n, bet_type)
    amount = payout(stake, k, n, bet_type, margin)
    if amount == 0.0:
        return 0.0
    return p * amount - stake


def house_edge_pct(
    stake: float,
    k: int,
    n: int,
    bet_type: BetType | str,
    margin: float = 0.0,
) -> float:
    """House edge as a percentage of stake. Includes the effect of payout rounding."""
    if stake <= 0:
        raise ValueError(f"stake must be positive to express an edge, got {stake}.")
    return -expected_return(stake, k, n, bet_type, margin) / stake * 100.0


def bet_economics(
    stake: float,
    k: int,
    n: int,
    bet_type: BetType | str,
    margin: float = 0.0,
) -> BetEconomics:
    """Bundle probability, payout, expected return and house edge for one bet."""
    ev = expected_return(stake, k, n, bet_type, margin)
    return BetEconomics(
        probability=win_probability(k, n, bet_type),
        payout=payout(stake, k, n, bet_type, margin),
        expected_return=ev,
        house_edge_pct=house_edge_pct(stake, k, n, bet_type, margin) if stake > 0 else 0.0,
    )
