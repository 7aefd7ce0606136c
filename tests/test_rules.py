"""Tests for digit_option/engine/rules.py — bet resolution, payouts and settlement."""

from __future__ import annotations

import pytest

from digit_option.engine.distribution import cdf, pmf
from digit_option.engine.rules import (
    BetType,
    Outcome,
    Quote,
    UnknownBetTypeError,
    bet_wins,
    parse_bet_type,
    payout,
    quote_bet,
    round_currency,
    settle_contract,
    win_probability,
)


class TestParseBetType:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("Equal", BetType.EQUAL),
            ("Higher", BetType.HIGHER),
            ("Lower", BetType.LOWER),
            ("higher", BetType.HIGHER),
            (" LOWER ", BetType.LOWER),
            (BetType.EQUAL, BetType.EQUAL),
        ],
    )
    def test_known_values(self, value, expected):
        assert parse_bet_type(value) is expected

    @pytest.mark.parametrize("value", ["Sideways", "", "Eq", None, 3])
    def test_unknown_raises(self, value):
        with pytest.raises(UnknownBetTypeError):
            parse_bet_type(value)

    def test_unknown_is_value_error(self):
        assert issubclass(UnknownBetTypeError, ValueError)


class TestWinProbability:
    def test_equal_is_pmf(self):
        for n in range(46):
            assert win_probability(5, n, "Equal") == pmf(5, n)

    def test_higher_is_one_minus_cdf(self):
        for n in range(-2, 48):
            assert win_probability(5, n, "Higher") == 1.0 - cdf(5, n)

    def test_lower_is_cdf_of_n_minus_one(self):
        for n in range(-2, 48):
            assert win_probability(5, n, "Lower") == cdf(5, n - 1)

    def test_accepts_enum_and_string(self):
        assert win_probability(3, 10, BetType.HIGHER) == win_probability(3, 10, "Higher")

    def test_lower_at_zero_is_exactly_zero(self):
        assert win_probability(5, 0, "Lower") == 0.0

    def test_higher_at_max_is_exactly_zero(self):
        assert win_probability(5, 45, "Higher") == 0.0

    @pytest.mark.parametrize("n", [-1, 46, 100])
    def test_equal_outside_support_is_zero(self, n):
        assert win_probability(5, n, "Equal") == 0.0

    def test_higher_below_support_is_one(self):
        assert win_probability(5, -1, "Higher") == 1.0

    def test_lower_above_support_is_one(self):
        assert win_probability(5, 46, "Lower") == 1.0

    def test_unknown_relation_scores_zero(self):
        assert win_probability(5, 22, "Sideways") == 0.0

    def test_unknown_relation_strict_raises(self):
        with pytest.raises(UnknownBetTypeError):
            win_probability(5, 22, "Sideways", strict=True)

    def test_single_digit_values(self):
        assert win_probability(1, 4, "Lower") == pytest.approx(0.4)
        assert win_probability(1, 4, "Higher") == pytest.approx(0.5)
        assert win_probability(1, 4, "Equal") == pytest.approx(0.1)


class TestRoundCurrency:
    @pytest.mark.parametrize(
        "amount, expected",
        [
            (16.666666666666668, 16.67),
            (15.833333333333334, 15.83),
            (0.125, 0.13),
            (2.675, 2.68),
            (1.005, 1.01),
            (10.0, 10.0),
            (3.14159, 3.14),
        ],
    )
    def test_half_up(self, amount, expected):
        assert round_currency(amount) == expected


class TestPayout:
    def test_fair_payout_pinned(self):
        p = win_probability(5, 22, "Equal")
        assert payout(1.0, 5, 22, "Equal") == round_currency(1.0 / p)
        assert payout(1.0, 5, 22, "Equal") == 16.67

    def test_offered_payout_pinned(self):
        p = win_probability(5, 22, "Equal")
        assert payout(1.0, 5, 22, "Equal", margin=0.05) == round_currency(0.95 / p)
        assert payout(1.0, 5, 22, "Equal", margin=0.05) == 15.83

    def test_margin_strictly_reduces_payout(self):
        fair = payout(1.0, 5, 22, "Equal", margin=0.0)
        offered = payout(1.0, 5, 22, "Equal", margin=0.05)
        assert offered < fair

    def test_fair_never_below_offered(self):
        for bet in BetType:
            for n in range(0, 46):
                assert payout(10.0, 5, n, bet, 0.0) >= payout(10.0, 5, n, bet, 0.1)

    def test_unplayable_bet_returns_sentinel(self):
        assert payout(1.0, 5, 0, "Lower") == 0.0
        assert payout(1.0, 5, 45, "Higher") == 0.0
        assert payout(1.0, 5, 50, "Equal") == 0.0

    def test_unknown_relation_returns_sentinel(self):
        assert payout(1.0, 5, 22, "Sideways") == 0.0

    def test_certain_bet_returns_stake_less_margin(self):
        assert payout(2.0, 5, -1, "Higher") == 2.0
        assert payout(2.0, 5, -1, "Higher", margin=0.05) == 1.9

    def test_scales_with_stake(self):
        assert payout(10.0, 1, 5, "Equal") == 100.0

    def test_zero_stake(self):
        assert payout(0.0, 5, 22, "Equal") == 0.0

    def test_negative_stake_raises(self):
        with pytest.raises(ValueError):
            payout(-1.0, 5, 22, "Equal")

    @pytest.mark.parametrize("margin", [-0.01, 1.0, 1.5])
    def test_margin_out_of_range_raises(self, margin):
        with pytest.raises(ValueError):
            payout(1.0, 5, 22, "Equal", margin=margin)

    def test_idempotent(self):
        values = {payout(1.0, 7, 30, "Higher", 0.03) for _ in range(5)}
        assert len(values) == 1


class TestQuoteBet:
    def test_fields(self):
        q = quote_bet(1.0, 5, 22, "Equal", margin=0.05)
        assert isinstance(q, Quote)
        assert q.probability == pmf(5, 22)
        assert q.fair_payout == 16.67
        assert q.offered_payout == 15.83
        assert q.playable

    def test_unplayable(self):
        q = quote_bet(1.0, 5, 0, "Lower", margin=0.05)
        assert not q.playable
        assert q.fair_payout == 0.0
        assert q.offered_payout == 0.0
        assert "unplayable" in str(q)

    def test_str_shows_payouts(self):
        q = quote_bet(1.0, 5, 22, "Equal", margin=0.05)
        s = str(q)
        assert "16.67" in s
        assert "15.83" in s


class TestSettleContract:
    def test_equal_win(self):
        assert settle_contract((9, 9, 4), 22, "Equal") is Outcome.WIN

    def test_equal_loss(self):
        assert settle_contract((9, 9, 3), 22, "Equal") is Outcome.LOSS

    def test_higher_is_strict(self):
        assert settle_contract((9, 9, 4), 22, "Higher") is Outcome.LOSS
        assert settle_contract((9, 9, 5), 22, BetType.HIGHER) is Outcome.WIN

    def test_lower_is_strict(self):
        assert settle_contract((9, 9, 4), 22, "Lower") is Outcome.LOSS
        assert settle_contract((9, 9, 3), 22, BetType.LOWER) is Outcome.WIN

    def test_unknown_relation_raises(self):
        with pytest.raises(UnknownBetTypeError):
            settle_contract((1, 2), 3, "Sideways")


class TestBetWins:
    def test_scalar(self):
        assert bet_wins(5, 5, BetType.EQUAL)
        assert not bet_wins(5, 5, BetType.HIGHER)
        assert not bet_wins(5, 5, BetType.LOWER)

    def test_elementwise_on_arrays(self):
        import numpy as np

        sums = np.array([3, 5, 7])
        assert bet_wins(sums, 5, BetType.EQUAL).tolist() == [False, True, False]
        assert bet_wins(sums, 5, BetType.HIGHER).tolist() == [False, False, True]
        assert bet_wins(sums, 5, BetType.LOWER).tolist() == [True, False, False]
