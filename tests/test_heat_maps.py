"""Tests for digit_option/analysis/heat_maps.py.

Tests verify that each plot function returns a well-formed matplotlib Figure.
The Agg backend is activated before any pyplot import so CI/CD environments
without a display server can run the suite safely.
"""

from __future__ import annotations

import os

import matplotlib

matplotlib.use("Agg")  # must precede any pyplot import

import matplotlib.figure
import matplotlib.pyplot as plt
import pytest

from digit_option.analysis.heat_maps import plot_payout_heatmap, plot_probability_heatmaps
from digit_option.engine.rules import BetType


@pytest.fixture(autouse=True)
def _close_figures():
    yield
    plt.close("all")


class TestPlotProbabilityHeatmaps:
    def test_returns_figure(self) -> None:
        fig = plot_probability_heatmaps(4, show=False)
        assert isinstance(fig, matplotlib.figure.Figure)

    def test_one_panel_per_bet_type_plus_colorbars(self) -> None:
        fig = plot_probability_heatmaps(4, show=False)
        titles = [ax.get_title() for ax in fig.axes]
        for bet in BetType:
            assert bet.value in titles
        # three heat map panels + three colorbars
        assert len(fig.axes) == 6

    def test_save_path(self, tmp_path) -> None:
        path = os.path.join(tmp_path, "prob.png")
        plot_probability_heatmaps(3, show=False, save_path=path)
        assert os.path.getsize(path) > 0


class TestPlotPayoutHeatmap:
    @pytest.mark.parametrize("bet_type", list(BetType))
    def test_returns_figure(self, bet_type) -> None:
        fig = plot_payout_heatmap(4, bet_type, show=False)
        assert isinstance(fig, matplotlib.figure.Figure)

    def test_title_mentions_bet_and_margin(self) -> None:
        fig = plot_payout_heatmap(3, "Higher", stake=2.0, margin=0.05, show=False)
        title = fig._suptitle.get_text()
        assert "Higher" in title
        assert "5%" in title

    def test_save_path(self, tmp_path) -> None:
        path = os.path.join(tmp_path, "payout.png")
        plot_payout_heatmap(3, BetType.EQUAL, show=False, save_path=path)
        assert os.path.getsize(path) > 0
