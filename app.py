"""Blackjack-Digit Option — Streamlit Dashboard.

Three-tab interactive dashboard:
  Tab 1 — Play            (live/simulated ticks, place a bet, watch digits resolve)
  Tab 2 — Odds Explorer   (exact digit-sum distribution, probability & payout heat maps)
  Tab 3 — Simulation      (Monte Carlo EV check and chi-square fit of digit sums)

Run:
    streamlit run app.py

Configuration defaults come from DIGIT_OPTION_* environment variables
(see digit_option/config.py).
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace

import matplotlib

matplotlib.use("Agg")  # must be set before any other matplotlib imports

import pandas as pd
import streamlit as st
from websockets.exceptions import WebSocketException

from digit_option.config import INDEX_OPTIONS, MAX_DURATION, MIN_DURATION, GameConfig
from digit_option.engine.contract import (
    ContractState,
    Phase,
    display_timeout,
    place_bet,
    tick_observed,
)
from digit_option.engine.digits import digits_to_str, last_digit, max_digit_sum
from digit_option.engine.distribution import cdf_table, mean_digit_sum, pmf_table
from digit_option.engine.feed import FeedError, Tick, make_feed, open_session
from digit_option.engine.history import PriceHistory
from digit_option.engine.rules import BetType, Outcome, quote_bet

# ─── Page config ──────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Blackjack-Digit Option",
    page_icon="🎲",
    layout="wide",
)

base_cfg = GameConfig.from_env()
logging.basicConfig(level=base_cfg.log_level)
logger = logging.getLogger("digit_option.app")

# ─── Lazy imports (inside functions to keep startup fast) ─────────────────────


@st.cache_resource
def _load_analysis_modules():
    """Import heavy analysis modules once (cached for the process lifetime)."""
    from digit_option.analysis.heat_maps import plot_payout_heatmap, plot_probability_heatmaps
    from digit_option.analysis.payout_table import bet_economics
    from digit_option.analysis.plotly_charts import build_distribution_figure, build_price_figure
    from digit_option.analysis.simulator import digit_sum_fit, outcome_counts, simulate_contracts

    return {
        "plot_probability_heatmaps": plot_probability_heatmaps,
        "plot_payout_heatmap": plot_payout_heatmap,
        "bet_economics": bet_economics,
        "build_distribution_figure": build_distribution_figure,
        "build_price_figure": build_price_figure,
        "simulate_contracts": simulate_contracts,
        "digit_sum_fit": digit_sum_fit,
        "outcome_counts": outcome_counts,
    }


# ─── Sidebar controls ─────────────────────────────────────────────────────────

_SYMBOL_LABELS = {symbol: label for label, symbol in INDEX_OPTIONS}
_symbols = [symbol for _, symbol in INDEX_OPTIONS]

with st.sidebar:
    st.title("🎲 Blackjack-Digit Option")
    st.markdown("---")

    symbol = st.selectbox(
        "Market",
        options=_symbols,
        index=_symbols.index(base_cfg.symbol) if base_cfg.symbol in _symbols else 0,
        format_func=lambda s: _SYMBOL_LABELS[s],
    )
    feed_kind = st.selectbox(
        "Feed",
        options=["simulated", "live"],
        index=0 if base_cfg.feed == "simulated" else 1,
    )

    st.markdown("---")
    duration = st.slider("Duration (ticks)", MIN_DURATION, MAX_DURATION, base_cfg.duration)
    max_target = max_digit_sum(duration)
    target = st.slider("Target sum", 0, max_target, min(base_cfg.target, max_target))
    bet_type = st.selectbox(
        "Bet type",
        options=list(BetType),
        index=list(BetType).index(base_cfg.bet_type),
        format_func=lambda b: b.value,
    )
    stake = st.number_input("Stake", min_value=0.0, value=base_cfg.stake, step=0.5)
    margin = st.slider("House margin", 0.0, 0.20, base_cfg.margin, step=0.01)

    st.markdown("---")
    n_sim = st.slider(
        "MC contracts (simulation tab)",
        min_value=10_000,
        max_value=200_000,
        value=20_000,
        step=10_000,
    )

cfg = replace(
    base_cfg,
    symbol=symbol,
    feed=feed_kind,
    duration=duration,
    target=target,
    bet_type=bet_type,
    stake=stake,
    margin=margin,
).validate()

# ─── Session state ────────────────────────────────────────────────────────────

_REFRESH_S = 0.25  # Play panel poll period; bounds how late the outcome banner hides
_FINISH_WAIT_S = 30.0
_FEED_ERRORS = (FeedError, WebSocketException, OSError)


def _feed_failed(config: GameConfig, exc: Exception) -> None:
    logger.error("Tick feed for %s failed: %s", config.symbol, exc)
    st.session_state["feed_error"] = f"{type(exc).__name__}: {exc}"


def _reset_market(config: GameConfig) -> None:
    """Close the current feed, open a fresh one and clear the board."""
    old = st.session_state.get("session")
    if old is not None:
        try:
            old.close()
        except _FEED_ERRORS as exc:
            logger.warning("Closing the previous feed failed: %s", exc)
    st.session_state["session"] = None
    st.session_state["history"] = PriceHistory(config.history_len)
    st.session_state["contract"] = ContractState()
    st.session_state["resolved_at"] = None
    st.session_state["market"] = (config.symbol, config.feed)
    try:
        st.session_state["session"] = open_session(make_feed(config), pace=config.tick_interval_s)
    except _FEED_ERRORS as exc:
        _feed_failed(config, exc)


if "market" not in st.session_state:
    st.session_state["feed_error"] = None
    _reset_market(cfg)

# Switching market is ignored mid-contract.
if st.session_state["market"] != (cfg.symbol, cfg.feed) and not st.session_state["contract"].active:
    logger.info("Market changed to %s (%s feed)", cfg.symbol, cfg.feed)
    st.session_state["feed_error"] = None
    _reset_market(cfg)


def _observe(state: ContractState, ticks: list[Tick]) -> ContractState:
    history: PriceHistory = st.session_state["history"]
    for tick in ticks:
        history.push(tick.quote)
        new_state = tick_observed(state, tick.quote, cfg.decimals)
        if new_state.phase is Phase.RESOLVED and state.phase is Phase.COLLECTING:
            st.session_state["resolved_at"] = time.monotonic()
        state = new_state
    return state


def _poll(state: ContractState, timeout: float | None = 0.0) -> ContractState:
    """Feed every tick that has arrived into the history and the contract.

    A failing feed is reported, closed and reopened; the board starts over.
    """
    session = st.session_state["session"]
    if session is None:
        return state
    try:
        ticks = session.poll(timeout)
    except _FEED_ERRORS as exc:
        _feed_failed(cfg, exc)
        _reset_market(cfg)
        return st.session_state["contract"]
    return _observe(state, ticks)


# ─── Tabs ─────────────────────────────────────────────────────────────────────

tab1, tab2, tab3 = st.tabs(["Play", "Odds Explorer", "Simulation"])

m = _load_analysis_modules()
quote = quote_bet(cfg.stake, cfg.duration, cfg.target, cfg.bet_type, cfg.margin)

# ── Tab 1: Play ───────────────────────────────────────────────────────────────


@st.fragment(run_every=_REFRESH_S)
def _play_panel() -> None:
    contract: ContractState = st.session_state["contract"]

    resolved_at = st.session_state["resolved_at"]
    if contract.phase is Phase.RESOLVED and resolved_at is not None:
        if time.monotonic() - resolved_at >= cfg.display_timeout_s:
            contract = display_timeout(contract)
            st.session_state["resolved_at"] = None

    # Ticks that arrived since the last run predate any click handled below.
    contract = _poll(contract)

    feed_error = st.session_state["feed_error"]
    if feed_error:
        st.error(f"Feed error on {cfg.symbol}: {feed_error}")
        if st.button("Reconnect", key="reconnect"):
            st.session_state["feed_error"] = None
            _reset_market(cfg)
            contract = st.session_state["contract"]

    connected = st.session_state["session"] is not None
    col_bet, col_finish = st.columns(2)
    if col_bet.button(
        "Place Bet",
        key="place_bet",
        type="primary",
        disabled=contract.active or not quote.playable or not connected,
    ):
        contract = place_bet(contract, cfg.duration, cfg.target, cfg.bet_type)
        st.session_state["resolved_at"] = None
    if col_finish.button("Finish Contract", key="finish_contract", disabled=not contract.active):
        deadline = time.monotonic() + _FINISH_WAIT_S
        while contract.active and st.session_state["session"] is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                st.warning("No ticks arrived in time; the contract is still collecting.")
                break
            contract = _poll(contract, timeout=remaining)

    st.session_state["contract"] = contract
    history: PriceHistory = st.session_state["history"]

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("P(win)", f"{quote.probability:.4f}")
    col2.metric("Fair payout", f"{quote.fair_payout:.2f}" if quote.playable else "—")
    col3.metric("Offered payout", f"{quote.offered_payout:.2f}" if quote.playable else "—")
    last = history.last
    col4.metric(
        "Last price",
        f"{last.price:.{cfg.decimals}f}" if last is not None else "—",
        help=f"Last digit: {last_digit(last.price, cfg.decimals)}" if last is not None else None,
    )
    if not quote.playable:
        st.warning("This bet cannot win — no payout can be offered.")

    st.subheader("Contract")
    if contract.phase is Phase.IDLE and not contract.digits:
        st.info("No active contract. Choose your bet in the sidebar and press **Place Bet**.")
    else:
        st.code(digits_to_str(contract.digits, contract.ticks_remaining), language=None)
        st.caption(
            f"{contract.bet_type.value} {contract.target} over {contract.duration} ticks | "
            f"running sum = {contract.running_sum} | "
            f"ticks remaining = {contract.ticks_remaining}"
        )
    if contract.phase is Phase.RESOLVED:
        if contract.outcome is Outcome.WIN:
            st.success(f"WIN — sum {contract.running_sum}")
        else:
            st.error(f"LOSE — sum {contract.running_sum}")

    st.plotly_chart(
        m["build_price_figure"](history.points, cfg.symbol),
        use_container_width=True,
    )
    st.caption(f"{history.tick_index} ticks received on {_SYMBOL_LABELS.get(cfg.symbol, cfg.symbol)}")


with tab1:
    st.header("Play")
    _play_panel()

# ── Tab 2: Odds Explorer ──────────────────────────────────────────────────────

with tab2:
    st.header("Odds Explorer")
    st.caption("Exact distribution of the sum of k uniform digits (inclusion–exclusion).")

    st.plotly_chart(
        m["build_distribution_figure"](cfg.duration, cfg.target, cfg.bet_type),
        use_container_width=True,
    )

    econ = m["bet_economics"](cfg.stake, cfg.duration, cfg.target, cfg.bet_type, cfg.margin)
    econ_df = pd.DataFrame(
        [
            {"Metric": "P(win)", "Value": f"{econ.probability:.6f}"},
            {"Metric": "Offered payout", "Value": f"{econ.payout:.2f}"},
            {"Metric": "Expected return / bet", "Value": f"{econ.expected_return:+.4f}"},
            {"Metric": "House edge", "Value": f"{econ.house_edge_pct:.2f}%"},
        ]
    )
    st.dataframe(econ_df, use_container_width=True, hide_index=True)

    st.subheader(f"Digit-sum distribution over {cfg.duration} ticks")
    st.caption(f"Mean digit sum {mean_digit_sum(cfg.duration):g}; the distribution is symmetric about it.")
    dist_df = pd.DataFrame(
        {
            "Sum": range(max_digit_sum(cfg.duration) + 1),
            "P(S = n)": pmf_table(cfg.duration),
            "P(S ≤ n)": cdf_table(cfg.duration),
        }
    )
    st.dataframe(dist_df, use_container_width=True, hide_index=True, height=250)

    st.markdown("---")
    st.subheader("Win probability heat maps")
    st.pyplot(m["plot_probability_heatmaps"](MAX_DURATION, show=False))

    st.subheader(f"Offered payout — {cfg.bet_type.value}")
    st.pyplot(
        m["plot_payout_heatmap"](
            MAX_DURATION, cfg.bet_type, cfg.stake, cfg.margin, show=False
        )
    )

# ── Tab 3: Simulation ─────────────────────────────────────────────────────────

with tab3:
    st.header("Monte Carlo Simulation")
    st.caption(
        "Uniform digits, offered payout. Expected profit per contract ≈ −margin × stake "
        "(up to payout rounding)."
    )

    if not quote.playable or cfg.stake <= 0:
        st.info("Choose a playable bet with a positive stake to run the simulation.")
    else:
        with st.spinner(f"Simulating {n_sim:,} contracts …"):
            sim = m["simulate_contracts"](
                cfg.duration,
                cfg.target,
                cfg.bet_type,
                stake=cfg.stake,
                margin=cfg.margin,
                n_contracts=n_sim,
                seed=42,
                return_sums=True,
            )
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Mean profit", f"{sim.mean_profit:+.4f}")
        col2.metric("Win rate", f"{sim.win_rate:.4f}")
        col3.metric("Exact P(win)", f"{sim.theoretical_p:.4f}")
        col4.metric("House edge", f"{sim.house_edge_pct:.2f}%")
        st.code(str(sim), language=None)

        counts = m["outcome_counts"](sim.digit_sums, cfg.target, cfg.bet_type)
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Outcome": outcome.name,
                        "Contracts": n,
                        "Share": n / sim.n_contracts,
                    }
                    for outcome, n in counts.items()
                ]
            ),
            hide_index=True,
        )

        fit = m["digit_sum_fit"](sim.digit_sums, cfg.duration)
        st.caption(
            f"Chi-square fit of digit sums: statistic {fit.statistic:.2f} "
            f"on {fit.dof} dof, p = {fit.p_value:.3f}"
        )
