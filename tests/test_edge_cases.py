"""
Edge-case tests at the support boundaries of the digit-sum distribution.

Covers:
    - Extremes of every bet relation (n = 0, n = 9k, outside the support)
    - Exact (not approximate) zeros and ones where the maths demands them
    - Fair vs offered payout ordering across the whole (k, n) grid
    - Identities between the bet relations
"""

from __future__ import annotations

import pytest

from digit_option.engine.distribution import cdf, pmf
from digit_option.engine.rules import BetType, payout, win_probability

DURATIONS = range(1, 11)


class TestDistributionExtremes:
    @pytest.mark.parametrize("k", DURATIONS)
    def test_all_zeros_and_all_nines(self, k):
        # Exactly one sequence of k digits sums to 0, and one sums to 9k.
        assert pmf(k, 0) == 1 / 10**k
        assert pmf(k, 9 * k) == 1 / 10**k

    @pytest.mark.parametrize("k", DURATIONS)
    def test_lower_zero_never_wins(self, k):
        assert win_probability(k, 0, BetType.LOWER) == 0.0

    @pytest.mark.parametrize("k", DURATIONS)
    def test_higher_max_never_wins(self, k):
        assert win_probability(k, 9 * k, BetType.HIGHER) == 0.0

    @pytest.mark.parametrize("k", DURATIONS)
    def test_lower_one_is_all_zeros(self, k):
        assert win_probability(k, 1, BetType.LOWER) == pmf(k, 0)

    @pytest.mark.parametrize("k", DURATIONS)
    def test_higher_just_below_max_is_all_nines(self, k):
        assert win_probability(k, 9 * k - 1, BetType.HIGHER) == pytest.approx(pmf(k, 9 * k))


class TestRelationIdentities:
    @pytest.mark.parametrize("k", [1, 3, 5, 10])
    def test_lower_equal_higher_partition(self, k):
        # For a fixed n: P(S < n) + P(S = n) + P(S > n) = 1
        for n in range(0, 9 * k + 1):
            total = (
                win_probability(k, n, BetType.LOWER)
                + win_probability(k, n, BetType.EQUAL)
                + win_probability(k, n, BetType.HIGHER)
            )
            assert total == pytest.approx(1.0, abs=1e-12)

    @pytest.mark.parametrize("k", [2, 6, 9])
    def test_higher_lower_mirror(self, k):
        # Symmetry about 4.5k: P(S > n) = P(S < 9k − n)
        for n in range(0, 9 * k + 1):
            assert win_probability(k, n, BetType.HIGHER) == pytest.approx(
                win_probability(k, 9 * k - n, BetType.LOWER), abs=1e-12
            )

    def test_definitions(self):
        k = 5
        for n in range(-1, 47):
            assert win_probability(k, n, "Higher") == 1 - cdf(k, n)
            assert win_probability(k, n, "Lower") == cdf(k, n - 1)


class TestPayoutOrdering:
    @pytest.mark.parametrize("bet_type", list(BetType))
    def test_fair_at_least_offered_everywhere(self, bet_type):
        for k in range(1, 8):
            for n in range(-1, 9 * k + 2):
                fair = payout(1.0, k, n, bet_type, 0.0)
                offered = payout(1.0, k, n, bet_type, 0.05)
                assert fair >= offered
                assert (fair == 0.0) == (offered == 0.0)

    def test_long_shot_payout(self):
        # All nines over 5 ticks: p = 1e-5
        assert payout(1.0, 5, 45, BetType.EQUAL) == 100000.0
