"""
Exact distribution of the sum of k independent uniform base-10 digits.

The number of ways k digits (each 0–9) can sum to n is the number of
compositions of n into k parts bounded by 9. Stars and bars with
inclusion–exclusion over the parts that would exceed 9 gives:

    count(k, n) = Σ_{j=0}^{⌊n/10⌋} (-1)^j · C(k, j) · C(n − 10j + k − 1, k − 1)

and pmf(k, n) = count(k, n) / 10^k.

Counts are exact ints. Cumulative sums are taken over counts and divided
once, so cdf saturates at exactly 1.0 on the upper support bound and
1 − cdf is exactly 0.0 there.
"""

from __future__ import annotations

import functools

import numpy as np

from .combinatorics import choose
from .digits import DIGIT_BASE, max_digit_sum


def _check_ticks(k: int) -> None:
    if k < 1:
        raise ValueError(f"Tick count must be >= 1, got {k}.")


@functools.cache
def composition_count(k: int, n: int) -> int:
    """Return the number of length-k digit sequences whose digits sum to n.

    Examples:
        >>> composition_count(1, 7)
        1
        >>> composition_count(2, 9)
        10
        >>> composition_count(5, 22)
        6000
        >>> composition_count(2, 19)
        0
    """
    _check_ticks(k)
    if n < 0 or n > max_digit_sum(k):
        return 0
    total = 0
    for j in range(n // DIGIT_BASE + 1):
        term = choose(k, j) * choose(n - DIGIT_BASE * j + k - 1, k - 1)
        total += term if j % 2 == 0 else -term
    return total


@functools.cache
def _cumulative_count(k: int, n: int) -> int:
    """Number of length-k digit sequences whose sum is at most n (n in support)."""
    return sum(composition_count(k, m) for m in range(n + 1))


def pmf(k: int, n: int) -> float:
    """Probability that the sum of k uniform digits equals n.

    Returns 0.0 outside the support [0, 9k].

    Raises:
        ValueError: If k < 1.

    Examples:
        >>> pmf(1, 0)
        0.1
        >>> pmf(1, 10)
        0.0
        >>> pmf(5, 22)
        0.06
    """
    return composition_count(k, n) / DIGIT_BASE**k


def cdf(k: int, n: int) -> float:
    """Probability that the sum of k uniform digits is at most n.

    Returns exactly 0.0 for n < 0 and exactly 1.0 for n >= 9k.

    Raises:
        ValueError: If k < 1.

    Examples:
        >>> cdf(1, 4)
        0.5
        >>> cdf(3, -1)
        0.0
        >>> cdf(3, 27)
        1.0
    """
    _check_ticks(k)
    if n < 0:
        return 0.0
    upper = max_digit_sum(k)
    if n >= upper:
        return 1.0
    return _cumulative_count(k, n) / DIGIT_BASE**k


def pmf_table(k: int) -> np.ndarray:
    """Return pmf(k, n) for every n in [0, 9k] as a float64 array of length 9k + 1."""
    _check_ticks(k)
    return np.array(
        [pmf(k, n) for n in range(max_digit_sum(k) + 1)], dtype=np.float64
    )


def cdf_table(k: int) -> np.ndarray:
    """Return cdf(k, n) for every n in [0, 9k] as a float64 array of length 9k + 1."""
    _check_ticks(k)
    return np.array(
        [cdf(k, n) for n in range(max_digit_sum(k) + 1)], dtype=np.float64
    )


def mean_digit_sum(k: int) -> float:
    """Expected digit sum, 4.5k (the distribution is symmetric about it)."""
    _check_ticks(k)
    return max_digit_sum(k) / 2
