"""
Monte Carlo simulator for digit-option contracts.

Plays many contracts at a fixed (duration, target, bet type, stake, margin)
and accumulates per-contract profit to produce EV statistics with
confidence intervals. The empirical win rate is compared against the exact
win probability from the engine, and the observed digit sums can be tested
against the exact distribution with a chi-square goodness-of-fit test.

Two digit sources:
    feed=None → i.i.d. uniform digits drawn directly (fast, vectorised)
    feed=...  → digits read tick by tick through the contract state machine
                (exercises the real feed → last_digit → settlement path)

Expected EV per contract with margin m, ignoring payout rounding:
    p · stake(1 − m)/p − stake = −m · stake
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from scipy import stats

from digit_option.engine.contract import run_contract
from digit_option.engine.digits import DIGIT_BASE, max_digit_sum
from digit_option.engine.distribution import pmf_table
from digit_option.engine.feed import TickFeed
from digit_option.engine.rules import (
    BetType,
    Outcome,
    bet_wins,
    parse_bet_type,
    payout,
    win_probability,
)

logger = logging.getLogger(__name__)

# ─── Result types ─────────────────────────────────────────────────────────────


@dataclass
class SimulationResult:
    """Aggregate statistics from a Monte Carlo simulation run.

    Attributes:
        n_contracts:     Number of contracts simulated.
        mean_profit:     Mean profit per contract (positive = player wins).
        std_profit:      Sample standard deviation of per-contract profit.
        ci_95_low:       Lower bound of 95% confidence interval for mean_profit.
        ci_95_high:      Upper bound of 95% confidence interval for mean_profit.
        house_edge_pct:  −mean_profit / stake * 100.
        n_wins:          Contracts won.
        n_losses:        Contracts lost.
        win_rate:        n_wins / n_contracts.
        theoretical_p:   Exact win probability from the engine.
        payout:          Offered payout used for every win.
        digit_sums:      Raw per-contract digit sums (int64), or None unless
                         return_sums=True.
    """

    n_contracts: int
    mean_profit: float
    std_profit: float
    ci_95_low: float
    ci_95_high: float
    house_edge_pct: float
    n_wins: int
    n_losses: int
    win_rate: float
    theoretical_p: float
    payout: float
    digit_sums: np.ndarray | None = None

    def __str__(self) -> str:
        sign = "+" if self.mean_profit >= 0 else ""
        return (
            f"Contracts: {self.n_contracts:,} | "
            f"Profit: {sign}{self.mean_profit:.4f} | "
            f"95% CI: [{self.ci_95_low:.4f}, {self.ci_95_high:.4f}] | "
            f"Win rate: {self.win_rate:.4f} (exact {self.theoretical_p:.4f}) | "
            f"House edge: {self.house_edge_pct:+.2f}%"
        )


@dataclass
class FitResult:
    """Chi-square goodness of fit of observed digit sums to the exact pmf."""

    statistic: float
    p_value: float
    dof: int
    n_samples: int


# ─── Digit sources ────────────────────────────────────────────────────────────


def _uniform_digit_sums(duration: int, n_contracts: int, seed: int | None) -> np.ndarray:
    rng = np.random.default_rng(seed)
    digits = rng.integers(0, DIGIT_BASE, size=(n_contracts, duration))
    return digits.sum(axis=1)


def _feed_digit_sums(
    feed: TickFeed,
    duration: int,
    target: int,
    bet_type: BetType,
    n_contracts: int,
    decimals: int,
) -> np.ndarray:
    # One iterator for the whole run: contracts read successive ticks, and a
    # live feed keeps a single connection.
    ticks = iter(feed)
    sums = np.empty(n_contracts, dtype=np.int64)
    try:
        for i in range(n_contracts):
            result = run_contract(ticks, duration, target, bet_type, decimals)
            sums[i] = result.digit_sum
    finally:
        close = getattr(ticks, "close", None)
        if close is not None:
            close()
    return sums


# ─── Core simulation ──────────────────────────────────────────────────────────


def simulate_contracts(
    duration: int,
    target: int,
    bet_type: BetType | str,
    stake: float = 1.0,
    margin: float = 0.0,
    n_contracts: int = 100_000,
    seed: int | None = 42,
    feed: TickFeed | None = None,
    decimals: int = 2,
    return_sums: bool = False,
) -> SimulationResult:
    """Simulate n_contracts identical bets and return aggregate statistics.

    Each win pays the offered payout (stake included), so per-contract
    profit is ``payout − stake`` on a win and ``−stake`` on a loss.

    Args:
        duration:    Ticks per contract (k >= 1).
        target:      Target digit sum.
        bet_type:    Bet relation.
        stake:       Stake per contract.
        margin:      House margin for the offered payout.
        n_contracts: Number of contracts (>= 2 for a sample std).
        seed:        Seed for the uniform digit source. Ignored with a feed.
        feed:        Optional tick feed; None draws uniform digits directly.
        decimals:    Quote precision used to read digits from the feed.
        return_sums: Attach the raw digit sums to the result.

    Raises:
        ValueError: If n_contracts < 2 or the bet is unplayable.
    """
    if n_contracts < 2:
        raise ValueError(f"n_contracts must be >= 2, got {n_contracts}.")
    bet_type = parse_bet_type(bet_type)
    amount = payout(stake, duration, target, bet_type, margin)
    if amount == 0.0:
        raise ValueError(
            f"Bet {bet_type.value} {target} over {duration} ticks cannot win; nothing to simulate."
        )

    if feed is None:
        sums = _uniform_digit_sums(duration, n_contracts, seed)
    else:
        logger.info("Simulating %d contracts from feed %s", n_contracts, feed.symbol)
        sums = _feed_digit_sums(feed, duration, target, bet_type, n_contracts, decimals)

    wins = bet_wins(sums, target, bet_type)
    profits = np.where(wins, amount - stake, -stake).astype(np.float64)

    mean = float(np.mean(profits))
    std = float(np.std(profits, ddof=1))
    ci_margin = 1.96 * std / math.sqrt(n_contracts)
    n_wins = int(wins.sum())

    return SimulationResult(
        n_contracts=n_contracts,
        mean_profit=mean,
        std_profit=std,
        ci_95_low=mean - ci_margin,
        ci_95_high=mean + ci_margin,
        house_edge_pct=-mean / stake * 100.0 if stake > 0 else 0.0,
        n_wins=n_wins,
        n_losses=n_contracts - n_wins,
        win_rate=n_wins / n_contracts,
        theoretical_p=win_probability(duration, target, bet_type),
        payout=amount,
        digit_sums=sums if return_sums else None,
    )


def outcome_counts(sums: np.ndarray, target: int, bet_type: BetType | str) -> dict[Outcome, int]:
    """Count wins and losses for a batch of digit sums."""
    wins = int(bet_wins(np.asarray(sums), target, parse_bet_type(bet_type)).sum())
    return {Outcome.WIN: wins, Outcome.LOSS: len(sums) - wins}


# ─── Distribution check ───────────────────────────────────────────────────────


def digit_sum_fit(sums: np.ndarray, k: int) -> FitResult:
    """Chi-square test of observed digit sums against the exact pmf for k ticks.

    A small p-value means the digit source is not behaving like k
    independent uniform digits (e.g. a feed whose last digit is biased).

    Raises:
        ValueError: If sums is empty or holds a value outside [0, 9k].
    """
    sums = np.asarray(sums, dtype=np.int64)
    if sums.size == 0:
        raise ValueError("Need at least one digit sum.")
    upper = max_digit_sum(k)
    if sums.min() < 0 or sums.max() > upper:
        raise ValueError(f"Digit sums must lie in [0, {upper}] for k={k}.")

    observed = np.bincount(sums, minlength=upper + 1).astype(np.float64)
    probs = pmf_table(k)
    expected = probs / probs.sum() * sums.size
    statistic, p_value = stats.chisquare(observed, expected)
    return FitResult(
        statistic=float(statistic),
        p_value=float(p_value),
        dof=upper,
        n_samples=int(sums.size),
    )


# ─── __main__ ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    print("Digit option Monte Carlo — 200,000 contracts, Equal 22 over 5 ticks\n")
    fair = simulate_contracts(5, 22, BetType.EQUAL, margin=0.0, n_contracts=200_000)
    offered = simulate_contracts(5, 22, BetType.EQUAL, margin=0.05, n_contracts=200_000,
                                 return_sums=True)
    print(f"margin=0.00: {fair}")
    print(f"margin=0.05: {offered}")
    fit = digit_sum_fit(offered.digit_sums, 5)
    print(f"\nChi-square fit: stat={fit.statistic:.2f} dof={fit.dof} p={fit.p_value:.3f}")
