"""
Contract lifecycle as an explicit finite-state machine.

    IDLE ──place_bet──▶ COLLECTING(ticks_remaining) ──tick_observed × k──▶
    RESOLVED(outcome) ──display_timeout──▶ IDLE

Every transition is a pure function from one immutable ContractState to
the next. Timers, event queues, and the price feed belong to the caller;
this module only decides what an event does to the state.

Rules modelled here:
    - A bet cannot be placed while a contract is collecting.
    - Placing a bet from RESOLVED skips the display timeout (new contract).
    - Ticks outside COLLECTING do not touch the contract.
    - Digits stay on the state after resolution so the UI can show them
      until the next bet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Iterable

from .digits import DEFAULT_DECIMALS, digit_sum, digits_to_str, last_digit
from .feed import Tick
from .rules import BetType, Outcome, parse_bet_type, settle_contract

logger = logging.getLogger(__name__)


class Phase(Enum):
    IDLE = auto()
    COLLECTING = auto()
    RESOLVED = auto()


class ContractStateError(RuntimeError):
    """Raised when an event is not allowed in the current phase."""


# ─── State ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ContractState:
    """Immutable snapshot of the contract in progress (or the last one)."""
    phase: Phase = Phase.IDLE
    duration: int = 0
    target: int = 0
    bet_type: BetType = BetType.EQUAL
    digits: tuple[int, ...] = ()
    outcome: Outcome | None = None

    @property
    def ticks_remaining(self) -> int:
        if self.phase is not Phase.COLLECTING:
            return 0
        return self.duration - len(self.digits)

    @property
    def running_sum(self) -> int:
        return digit_sum(self.digits)

    @property
    def active(self) -> bool:
        return self.phase is Phase.COLLECTING

    def __str__(self) -> str:
        digits_str = digits_to_str(self.digits, self.ticks_remaining) or '-'
        label = self.phase.name
        if self.phase is Phase.RESOLVED and self.outcome is not None:
            label = f"{label}({self.outcome.name})"
        return (
            f"{label} | {self.bet_type.value} {self.target} over {self.duration} ticks | "
            f"digits: {digits_str} | sum={self.running_sum}"
        )


@dataclass
class ContractResult:
    """A resolved contract, as returned by run_contract()."""
    duration: int
    target: int
    bet_type: BetType
    digits: tuple[int, ...]
    ticks: tuple[Tick, ...]
    outcome: Outcome

    @property
    def digit_sum(self) -> int:
        return digit_sum(self.digits)

    def __str__(self) -> str:
        return (
            f"{self.bet_type.value} {self.target} over {self.duration} ticks | "
            f"digits: {digits_to_str(self.digits)} (sum={self.digit_sum}) | "
            f"{self.outcome.name}"
        )


# ─── Transitions ──────────────────────────────────────────────────────────────

def place_bet(
    state: ContractState,
    duration: int,
    target: int,
    bet_type: BetType | str,
) -> ContractState:
    """Start collecting a new contract.

    Raises:
        ContractStateError: If a contract is already collecting.
        ValueError: If duration < 1.
        UnknownBetTypeError: If bet_type is not a known relation.
    """
    if state.phase is Phase.COLLECTING:
        raise ContractStateError(
            f"Cannot place a bet while a contract is collecting "
            f"({state.ticks_remaining} ticks remaining)."
        )
    if duration < 1:
        raise ValueError(f"Contract duration must be >= 1 tick, got {duration}.")

    new_state = ContractState(
        phase=Phase.COLLECTING,
        duration=duration,
        target=target,
        bet_type=parse_bet_type(bet_type),
    )
    logger.info("Bet placed: %s %d over %d ticks", new_state.bet_type.value, target, duration)
    return new_state


def tick_observed(
    state: ContractState,
    quote: float,
    decimals: int = DEFAULT_DECIMALS,
) -> ContractState:
    """Record one price quote. Resolves the contract on its last tick.

    Outside COLLECTING the state is returned unchanged.
    """
    if state.phase is not Phase.COLLECTING:
        return state

    digits = state.digits + (last_digit(quote, decimals),)
    if len(digits) < state.duration:
        return replace(state, digits=digits)

    outcome = settle_contract(digits, state.target, state.bet_type)
    logger.info(
        "Contract resolved: digits=%s sum=%d %s %d → %s",
        digits, digit_sum(digits), state.bet_type.value, state.target, outcome.name,
    )
    return replace(state, phase=Phase.RESOLVED, digits=digits, outcome=outcome)


def display_timeout(state: ContractState) -> ContractState:
    """Clear a resolved outcome and return to IDLE; no-op in other phases."""
    if state.phase is not Phase.RESOLVED:
        return state
    return replace(state, phase=Phase.IDLE, outcome=None)


# ─── Feed-driven convenience ──────────────────────────────────────────────────

def run_contract(
    feed: Iterable[Tick],
    duration: int,
    target: int,
    bet_type: BetType | str,
    decimals: int = DEFAULT_DECIMALS,
) -> ContractResult:
    """Place a bet and consume ticks from a feed until the contract resolves.

    Ticks are taken with a plain ``for`` loop, so a feed object restarts
    here while an iterator obtained with ``iter(feed)`` carries on from
    where the previous contract stopped.

    Raises:
        ContractStateError: If the feed ends before the contract resolves.
    """
    state = place_bet(ContractState(), duration, target, bet_type)
    ticks: list[Tick] = []

    for tick in feed:
        ticks.append(tick)
        state = tick_observed(state, tick.quote, decimals)
        if state.phase is Phase.RESOLVED:
            break
    else:
        raise ContractStateError(
            f"Feed exhausted after {len(ticks)} ticks; contract needs {duration}."
        )

    assert state.outcome is not None
    return ContractResult(
        duration=state.duration,
        target=state.target,
        bet_type=state.bet_type,
        digits=state.digits,
        ticks=tuple(ticks),
        outcome=state.outcome,
    )
