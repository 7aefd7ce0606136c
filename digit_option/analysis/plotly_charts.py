"""Interactive Plotly figures for the digit-option dashboard.

    build_price_figure(points, symbol)
        — line chart of the rolling price history.
    build_distribution_figure(k, target, bet_type)
        — exact digit-sum pmf for k ticks, winning sums highlighted.
"""

from __future__ import annotations

from typing import Sequence

import plotly.graph_objects as go

from digit_option.engine.digits import support
from digit_option.engine.distribution import pmf_table
from digit_option.engine.history import PricePoint
from digit_option.engine.rules import BetType, bet_wins, parse_bet_type, win_probability

_WIN_COLOR: str = "#2ca02c"
_LOSE_COLOR: str = "#c7c7c7"
_LINE_COLOR: str = "#1f77b4"


def build_price_figure(points: Sequence[PricePoint], symbol: str = "") -> go.Figure:
    """Line chart of recent quotes; x = running tick index."""
    fig = go.Figure(
        go.Scatter(
            x=[p.t for p in points],
            y=[p.price for p in points],
            mode="lines+markers",
            line={"color": _LINE_COLOR, "width": 2},
            hovertemplate="Tick %{x}<br>Price %{y:.2f}<extra></extra>",
            name=symbol or "price",
        )
    )
    fig.update_layout(
        title_text=f"Live price — {symbol}" if symbol else "Live price",
        height=320,
        margin={"l": 40, "r": 20, "t": 50, "b": 40},
        showlegend=False,
    )
    fig.update_xaxes(title_text="Tick")
    fig.update_yaxes(title_text="Price", tickformat=".2f")
    return fig


def build_distribution_figure(k: int, target: int, bet_type: BetType | str) -> go.Figure:
    """Bar chart of P(sum = n) for k ticks; bars that win the bet are green.

    Hover shows the sum, its probability, and whether it wins.
    """
    bet_type = parse_bet_type(bet_type)
    sums = list(support(k))
    probs = pmf_table(k)
    colors = [_WIN_COLOR if bet_wins(n, target, bet_type) else _LOSE_COLOR for n in sums]
    hover = [
        f"Sum: <b>{n}</b><br>P = {p:.5f}<br>{'WIN' if bet_wins(n, target, bet_type) else 'lose'}"
        for n, p in zip(sums, probs)
    ]

    fig = go.Figure(
        go.Bar(
            x=sums,
            y=probs,
            marker_color=colors,
            hovertext=hover,
            hoverinfo="text",
            name="P(sum)",
        )
    )
    p_win = win_probability(k, target, bet_type)
    fig.update_layout(
        title_text=f"Digit-sum distribution, {k} ticks — {bet_type.value} {target}: P(win) = {p_win:.4f}",
        title_font_size=14,
        height=360,
        bargap=0.1,
        showlegend=False,
    )
    fig.update_xaxes(title_text="Digit sum")
    fig.update_yaxes(title_text="Probability")
    return fig
