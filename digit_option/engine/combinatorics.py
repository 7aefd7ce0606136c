"""
Exact binomial coefficients for the digit-sum inclusion–exclusion formula.

All arithmetic is on Python ints, so results are exact for every n the
game exercises (and far beyond).
"""

from __future__ import annotations


def choose(n: int, r: int) -> int:
    """Return C(n, r), the number of ways to choose r items from n.

    Impossible configurations (r < 0 or r > n) are a defined zero rather
    than an error: the inclusion–exclusion sum relies on them vanishing.

    The product is accumulated incrementally. After step i the running
    value equals C(n - r + i, i), so every floor division is exact.

    Args:
        n: Population size (n >= 0).
        r: Selection size.

    Returns:
        The exact binomial coefficient as an int.

    Examples:
        >>> choose(5, 2)
        10
        >>> choose(0, 0)
        1
        >>> choose(4, 5)
        0
        >>> choose(4, -1)
        0
        >>> choose(26, 4)
        14950
    """
    if r < 0 or r > n:
        return 0
    r = min(r, n - r)
    result = 1
    for i in range(1, r + 1):
        result = result * (n - r + i) // i
    return result
