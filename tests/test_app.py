"""Smoke tests for the Streamlit dashboard (app.py).

Uses streamlit.testing.v1.AppTest to verify the app starts without exceptions,
that a bet can be placed and resolved on the simulated feed, and that the Play
panel keeps ticking, hides outcomes and survives feed failures on its own.
"""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

try:
    from streamlit.testing.v1 import AppTest

    _STREAMLIT_AVAILABLE = True
except ImportError:
    _STREAMLIT_AVAILABLE = False

from digit_option.engine.contract import ContractState, Phase

APP_PATH = str(Path(__file__).resolve().parent.parent / "app.py")

pytestmark = pytest.mark.skipif(not _STREAMLIT_AVAILABLE, reason="streamlit not installed")


@pytest.fixture
def simulated_env(monkeypatch):
    monkeypatch.setenv("DIGIT_OPTION_FEED", "simulated")
    monkeypatch.setenv("DIGIT_OPTION_TICK_INTERVAL_S", "0.01")


def _started(timeout: int = 120) -> "AppTest":
    at = AppTest.from_file(APP_PATH)
    at.run(timeout=timeout)
    return at


def _play_to_resolution(at: "AppTest") -> None:
    at.button(key="place_bet").click().run(timeout=120)
    assert at.session_state["contract"].active
    at.button(key="finish_contract").click().run(timeout=120)


def test_app_runs_without_exception(simulated_env):
    """App renders all three tabs without raising an exception."""
    at = _started()
    assert not at.exception, f"App raised an exception: {at.exception}"


def test_app_has_expected_tabs(simulated_env):
    """App exposes the three expected tab labels."""
    at = _started()
    tab_labels = [t.label for t in at.tabs]
    assert "Play" in tab_labels
    assert "Odds Explorer" in tab_labels
    assert "Simulation" in tab_labels


def test_place_bet_and_finish(simulated_env):
    """Placing a bet and finishing it resolves the contract."""
    at = _started()
    _play_to_resolution(at)
    contract = at.session_state["contract"]
    assert contract.phase is Phase.RESOLVED
    assert len(contract.digits) == 5
    assert any(m.value.startswith(("WIN", "LOSE")) for m in [*at.success, *at.error])
    assert not at.exception


def test_ticks_arrive_without_clicks(simulated_env):
    """Every refresh of the Play panel pulls the ticks that have arrived."""
    at = _started()
    before = at.session_state["history"].tick_index
    at.run(timeout=120)
    assert at.session_state["history"].tick_index > before


def test_outcome_hidden_after_display_timeout(simulated_env, monkeypatch):
    """A resolved outcome goes back to IDLE on the next refresh once the timeout has passed."""
    monkeypatch.setenv("DIGIT_OPTION_DISPLAY_TIMEOUT_S", "0")
    at = _started()
    _play_to_resolution(at)
    assert at.session_state["contract"].phase is Phase.RESOLVED

    at.run(timeout=120)
    contract = at.session_state["contract"]
    assert contract.phase is Phase.IDLE
    assert contract.outcome is None
    assert len(contract.digits) == 5
    assert not at.success
    assert not [e for e in at.error if e.value.startswith("LOSE")]


def test_market_change_clears_board(simulated_env, monkeypatch):
    """Switching market while idle drops the previous contract's digits."""
    monkeypatch.setenv("DIGIT_OPTION_DISPLAY_TIMEOUT_S", "0")
    at = _started()
    _play_to_resolution(at)
    at.run(timeout=120)
    assert at.session_state["contract"].digits

    at.sidebar.selectbox[0].set_value("R_100").run(timeout=120)
    assert at.session_state["contract"] == ContractState()
    assert at.session_state["market"] == ("R_100", "simulated")
    assert not at.exception


def _failing_connection(message: dict) -> MagicMock:
    ws = MagicMock()
    ws.recv.return_value = json.dumps(message)
    return ws


def test_feed_error_is_reported_not_raised(monkeypatch):
    """A server error on the live feed shows an error panel and reopens the feed."""
    monkeypatch.setenv("DIGIT_OPTION_FEED", "live")
    ws = _failing_connection({"msg_type": "error", "error": {"message": "Invalid symbol"}})
    with patch("digit_option.engine.feed.connect", return_value=ws) as mock_connect:
        at = _started()

    assert not at.exception
    assert any("Invalid symbol" in e.value for e in at.error)
    assert mock_connect.call_count == 2
    ws.close.assert_called()
    assert at.session_state["contract"] == ContractState()


def test_connection_failure_is_reported_not_raised(monkeypatch):
    """A live feed that cannot connect leaves the app usable with betting disabled."""
    monkeypatch.setenv("DIGIT_OPTION_FEED", "live")
    with patch("digit_option.engine.feed.connect", side_effect=OSError("network unreachable")):
        at = _started()

    assert not at.exception
    assert any("network unreachable" in e.value for e in at.error)
    assert at.session_state["session"] is None
    assert at.button(key="place_bet").disabled
