"""
Digit constants, last-digit extraction, and human-readable I/O helpers.

A contract of duration k collects the last decimal digit of k successive
price quotes. Each digit is treated as uniform over 0–9, so the digit sum
has support [0, 9k].

Quotes are floats at the I/O boundary only. The last digit is taken from
the decimal representation of the quote (not from float arithmetic), so
123.45 always yields 5 rather than the 4 that floor(123.45 * 100) gives.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal

DIGIT_BASE: int = 10
MAX_DIGIT: int = DIGIT_BASE - 1

# Quotes on the synthetic indices are shown with two decimal places.
DEFAULT_DECIMALS: int = 2


def last_digit(price: float, decimals: int = DEFAULT_DECIMALS) -> int:
    """Return the digit at the ``decimals``-th decimal place of a price.

    Examples:
        >>> last_digit(1234.56)
        6
        >>> last_digit(123.45)
        5
        >>> last_digit(100.0)
        0
        >>> last_digit(987.6, decimals=1)
        6
    """
    scaled = Decimal(str(price)).scaleb(decimals)
    return int(scaled.to_integral_value(rounding=ROUND_FLOOR)) % DIGIT_BASE


def digit_sum(digits: tuple[int, ...]) -> int:
    """Return the sum of a sequence of collected digits.

    Examples:
        >>> digit_sum((9, 9, 4))
        22
        >>> digit_sum(())
        0
    """
    return sum(digits)


def max_digit_sum(k: int) -> int:
    """Return the largest attainable sum of k digits (9k).

    Examples:
        >>> max_digit_sum(5)
        45
    """
    return MAX_DIGIT * k


def support(k: int) -> range:
    """Return the digit-sum support [0, 9k] as a range.

    Examples:
        >>> list(support(1))
        [0, 1, 2, 3, 4, 5, 6, 7, 8, 9]
    """
    return range(0, max_digit_sum(k) + 1)


def in_support(k: int, n: int) -> bool:
    """Return True if n is an attainable sum of k digits.

    Examples:
        >>> in_support(2, 18)
        True
        >>> in_support(2, 19)
        False
        >>> in_support(2, -1)
        False
    """
    return 0 <= n <= max_digit_sum(k)


def digits_to_str(digits: tuple[int, ...], ticks_remaining: int = 0) -> str:
    """Render collected digits followed by '?' placeholders for pending ticks.

    Examples:
        >>> digits_to_str((3, 7), ticks_remaining=3)
        '3 7 ? ? ?'
        >>> digits_to_str((1, 2, 3))
        '1 2 3'
    """
    parts = [str(d) for d in digits] + ['?'] * ticks_remaining
    return ' '.join(parts)
