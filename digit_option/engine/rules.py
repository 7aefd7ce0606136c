"""
Bet relations, win probability, payout quoting, and contract settlement.

Bet relations (what the player wins on, given target n and digit sum S):
    Equal   → S == n     P = pmf(k, n)
    Higher  → S >  n     P = 1 − cdf(k, n)
    Lower   → S <  n     P = cdf(k, n − 1)

Payout convention (amount returned to the player on a win, stake included):
    payout = stake · (1 − margin) / P, rounded to 2 decimals
    0.0    = sentinel for an unplayable bet (P == 0, no finite payout)

Rounding is ROUND_HALF_UP applied to the shortest decimal representation
of the float, i.e. 0.125 → 0.13 and 2.675 → 2.68.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum, auto

from .digits import digit_sum
from .distribution import cdf, pmf


class BetType(Enum):
    EQUAL = "Equal"
    HIGHER = "Higher"
    LOWER = "Lower"


class Outcome(Enum):
    WIN = auto()
    LOSS = auto()


class UnknownBetTypeError(ValueError):
    """Raised when a value cannot be narrowed to a BetType."""


_CENTS = Decimal("0.01")


# ─── Relation parsing ─────────────────────────────────────────────────────────

def parse_bet_type(value: BetType | str) -> BetType:
    """Narrow a BetType or its string value to a BetType.

    Matching is case-insensitive on the value ('Equal', 'higher', 'LOWER').

    Raises:
        UnknownBetTypeError: If the value is not a known relation.

    Examples:
        >>> parse_bet_type('Higher')
        <BetType.HIGHER: 'Higher'>
        >>> parse_bet_type(BetType.LOWER)
        <BetType.LOWER: 'Lower'>
    """
    if isinstance(value, BetType):
        return value
    if isinstance(value, str):
        for bet_type in BetType:
            if bet_type.value.lower() == value.strip().lower():
                return bet_type
    raise UnknownBetTypeError(f"Unknown bet relation: {value!r}")


# ─── Probability / payout ─────────────────────────────────────────────────────

def win_probability(
    k: int,
    n: int,
    relation: BetType | str,
    strict: bool = False,
) -> float:
    """Return the probability that a bet on (k, n, relation) wins.

    Args:
        k: Contract duration in ticks (k >= 1).
        n: Target digit sum.
        relation: BetType member or its string value.
        strict: If True, an unknown relation raises instead of scoring 0.

    Returns:
        Probability in [0, 1]. Unknown relations score 0.0 when not strict.

    Raises:
        UnknownBetTypeError: Unknown relation with strict=True.
        ValueError: If k < 1.

    Examples:
        >>> win_probability(1, 4, 'Lower')
        0.4
        >>> win_probability(5, 45, BetType.HIGHER)
        0.0
        >>> win_probability(5, 22, 'Sideways')
        0.0
    """
    try:
        bet_type = parse_bet_type(relation)
    except UnknownBetTypeError:
        if strict:
            raise
        return 0.0

    if bet_type is BetType.EQUAL:
        return pmf(k, n)
    if bet_type is BetType.HIGHER:
        return 1.0 - cdf(k, n)
    return cdf(k, n - 1)


def round_currency(amount: float) -> float:
    """Round a currency amount to 2 decimals, half away from zero.

    Examples:
        >>> round_currency(16.666666666666668)
        16.67
        >>> round_currency(2.675)
        2.68
        >>> round_currency(0.125)
        0.13
    """
    return float(Decimal(str(amount)).quantize(_CENTS, rounding=ROUND_HALF_UP))


def _check_stake_margin(stake: float, margin: float) -> None:
    if stake < 0:
        raise ValueError(f"Stake must be non-negative, got {stake}.")
    if not 0.0 <= margin < 1.0:
        raise ValueError(f"Margin must be in [0, 1), got {margin}.")


def payout(
    stake: float,
    k: int,
    n: int,
    relation: BetType | str,
    margin: float = 0.0,
) -> float:
    """Return the amount paid on a win, or 0.0 if the bet cannot win.

    margin=0 gives the fair payout; a positive margin gives the offered
    payout, which is never larger than the fair one.

    Raises:
        ValueError: Negative stake, margin outside [0, 1), or k < 1.

    Examples:
        >>> payout(1.0, 5, 22, 'Equal')
        16.67
        >>> payout(1.0, 5, 22, 'Equal', margin=0.05)
        15.83
        >>> payout(1.0, 5, 0, 'Lower')
        0.0
    """
    _check_stake_margin(stake, margin)
    p = win_probability(k, n, relation)
    if p <= 0.0:
        return 0.0
    return round_currency(stake * (1.0 - margin) / p)


@dataclass(frozen=True)
class Quote:
    """Odds summary for a prospective bet."""
    probability: float
    fair_payout: float
    offered_payout: float

    @property
    def playable(self) -> bool:
        return self.probability > 0.0

    def __str__(self) -> str:
        if not self.playable:
            return "P(win)=0.0000 | unplayable"
        return (
            f"P(win)={self.probability:.4f} | "
            f"fair={self.fair_payout:.2f} | offered={self.offered_payout:.2f}"
        )


def quote_bet(
    stake: float,
    k: int,
    n: int,
    relation: BetType | str,
    margin: float = 0.0,
) -> Quote:
    """Return the probability with the fair and offered payouts for one bet."""
    return Quote(
        probability=win_probability(k, n, relation),
        fair_payout=payout(stake, k, n, relation, 0.0),
        offered_payout=payout(stake, k, n, relation, margin),
    )


# ─── Settlement ───────────────────────────────────────────────────────────────

def settle_contract(
    digits: tuple[int, ...],
    target: int,
    relation: BetType | str,
) -> Outcome:
    """Resolve a completed contract from its collected digits.

    Raises:
        UnknownBetTypeError: If the relation is not a known BetType.

    Examples:
        >>> settle_contract((9, 9, 4), 22, 'Equal')
        <Outcome.WIN: 1>
        >>> settle_contract((9, 9, 4), 22, 'Higher')
        <Outcome.LOSS: 2>
    """
    bet_type = parse_bet_type(relation)
    won = bet_wins(digit_sum(digits), target, bet_type)
    return Outcome.WIN if won else Outcome.LOSS


def bet_wins(total, target: int, bet_type: BetType):
    """Compare a digit sum (or a NumPy array of sums) against the target.

    Works elementwise on arrays, so simulators can settle a batch at once.
    """
    if bet_type is BetType.EQUAL:
        return total == target
    if bet_type is BetType.HIGHER:
        return total > target
    return total < target
