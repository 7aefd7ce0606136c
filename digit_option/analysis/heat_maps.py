"""Probability and payout heat maps for the digit option.

Data comes from digit_option.analysis.payout_table (see its grid convention):
rows = duration k, cols = target n, NaN outside the support [0, 9k].

Two public plot functions render matplotlib figures:

    plot_probability_heatmaps(max_ticks, ...)        — 1×3 figure, one panel per bet type
    plot_payout_heatmap(max_ticks, bet_type, ...)    — offered payout for one bet type
"""

from __future__ import annotations

import matplotlib
import matplotlib.colors
import matplotlib.figure
import matplotlib.pyplot as plt
import numpy as np

from digit_option.analysis.payout_table import build_payout_grid, build_probability_grid
from digit_option.engine.rules import BetType, parse_bet_type

# ─── Colormaps ────────────────────────────────────────────────────────────────

_NAN_COLOR: str = "#cccccc"


def _make_cmap(name: str) -> matplotlib.colors.Colormap:
    cmap = matplotlib.colormaps[name].copy()
    cmap.set_bad(color=_NAN_COLOR)
    return cmap


_PROB_CMAP: matplotlib.colors.Colormap = _make_cmap("RdYlGn")
_PAYOUT_CMAP: matplotlib.colors.Colormap = _make_cmap("viridis")


# ─── Panel rendering ──────────────────────────────────────────────────────────


def _render_panel(ax, data: np.ndarray, cmap, norm=None, vmin=None, vmax=None):
    masked = np.ma.masked_invalid(data)
    im = ax.imshow(
        masked, cmap=cmap, norm=norm, vmin=vmin, vmax=vmax,
        aspect="auto", origin="lower", interpolation="nearest",
    )
    n_rows, n_cols = data.shape
    ax.set_yticks(range(n_rows))
    ax.set_yticklabels([str(k) for k in range(1, n_rows + 1)], fontsize=8)
    step = max(1, n_cols // 10)
    ax.set_xticks(range(0, n_cols, step))
    ax.set_xticklabels([str(n) for n in range(0, n_cols, step)], fontsize=8)
    return im


# ─── Public plot functions ────────────────────────────────────────────────────


def plot_probability_heatmaps(
    max_ticks: int = 10,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot P(win) over (duration, target) for Equal, Higher and Lower.

    Args:
        max_ticks: Largest duration shown (rows 1..max_ticks).
        show:      If True, call plt.show() after rendering.
        save_path: If not None, save the figure to this path before showing.

    Returns:
        matplotlib.figure.Figure with three panels.
    """
    fig, axes = plt.subplots(1, 3, figsize=(15, 4.5))
    fig.suptitle("Win probability by duration and target", fontsize=13, fontweight="bold")

    for ax, bet_type in zip(axes, BetType):
        grid = build_probability_grid(max_ticks, bet_type)
        # Equal probabilities are small; give them their own scale.
        vmax = float(np.nanmax(grid)) if bet_type is BetType.EQUAL else 1.0
        im = _render_panel(ax, grid, _PROB_CMAP, vmin=0.0, vmax=vmax)
        ax.set_title(bet_type.value, fontsize=10)
        ax.set_xlabel("Target sum n", fontsize=9)
        ax.set_ylabel("Duration k (ticks)", fontsize=9)
        plt.colorbar(im, ax=ax, label="P(win)", fraction=0.046, pad=0.04)

    plt.tight_layout()

    if save_path is not None:
        fig.savefig(save_path, bbox_inches="tight", dpi=120)
    if show:
        plt.show()

    return fig


def plot_payout_heatmap(
    max_ticks: int = 10,
    bet_type: BetType | str = BetType.EQUAL,
    stake: float = 1.0,
    margin: float = 0.05,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot the offered payout over (duration, target) on a log colour scale.

    Unplayable cells (0.0 sentinel) are grey, like out-of-support cells.
    """
    bet_type = parse_bet_type(bet_type)
    grid = build_payout_grid(max_ticks, bet_type, stake, margin)

    fig, ax = plt.subplots(figsize=(10, 4.5))
    fig.suptitle(
        f"Offered payout — {bet_type.value}, stake {stake:g}, margin {margin:.0%}",
        fontsize=13,
        fontweight="bold",
    )

    finite = grid[np.isfinite(grid)]
    norm = None
    if finite.size and finite.min() > 0:
        norm = matplotlib.colors.LogNorm(vmin=float(finite.min()), vmax=float(finite.max()))
    im = _render_panel(ax, grid, _PAYOUT_CMAP, norm=norm)
    ax.set_xlabel("Target sum n", fontsize=9)
    ax.set_ylabel("Duration k (ticks)", fontsize=9)
    plt.colorbar(im, ax=ax, label="Payout", fraction=0.046, pad=0.04)

    plt.tight_layout()

    if save_path is not None:
        fig.savefig(save_path, bbox_inches="tight", dpi=120)
    if show:
        plt.show()

    return fig


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    plot_probability_heatmaps(show=False, save_path="win_probability.png")
    for bt in BetType:
        plot_payout_heatmap(bet_type=bt, show=False, save_path=f"payout_{bt.value.lower()}.png")
    print("Saved: win_probability.png, payout_equal.png, payout_higher.png, payout_lower.png")
