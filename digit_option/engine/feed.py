"""
Price-tick feeds.

A feed is anything that iterates lazily over Tick values — possibly
forever. The contract engine never cares which feed is active.

    RandomWalkFeed — synthetic geometric random walk (NumPy Generator)
    DerivTickFeed  — live ticks from the Deriv websocket API
    ReplayFeed     — fixed, finite sequence of quotes (tests, replays)

make_feed(config) picks the simulated or live feed from configuration, and
open_session(feed) opens it for polling: the dashboard asks for whatever
ticks have arrived instead of blocking on the next one.
"""

from __future__ import annotations

import json
import logging
import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Iterator, Protocol

import numpy as np
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK
from websockets.sync.client import connect

from .digits import DEFAULT_DECIMALS

if TYPE_CHECKING:
    from digit_option.config import GameConfig

logger = logging.getLogger(__name__)

DERIV_WS_URL: str = "wss://ws.binaryws.com/websockets/v3?l=EN&app_id=1089"  # demo app-id


class FeedError(RuntimeError):
    """Raised when a live feed reports an error or returns an unusable message."""


@dataclass(frozen=True)
class Tick:
    """One price observation."""
    symbol: str
    epoch: int
    quote: float


class TickFeed(Protocol):
    symbol: str

    def __iter__(self) -> Iterator[Tick]: ...


# ─── Simulated feed ───────────────────────────────────────────────────────────

class RandomWalkFeed:
    """Unbounded synthetic quotes from a geometric random walk.

        S_{t+1} = S_t · exp((μ − σ²/2) + σ·Z),  Z ~ N(0, 1)

    Quotes are rounded to ``decimals`` places. Iterating again continues the
    same walk from the last price, so consecutive contracts see one path.

    Args:
        symbol:      Market label carried on each tick.
        start_price: Initial price S_0 (> 0).
        volatility:  Per-tick σ (>= 0).
        drift:       Per-tick μ.
        seed:        Seed for numpy.random.default_rng; None for entropy.
        decimals:    Quote precision.
    """

    def __init__(
        self,
        symbol: str = "SIM",
        start_price: float = 1000.0,
        volatility: float = 0.001,
        drift: float = 0.0,
        seed: int | None = None,
        decimals: int = DEFAULT_DECIMALS,
    ) -> None:
        if start_price <= 0:
            raise ValueError(f"start_price must be positive, got {start_price}.")
        if volatility < 0:
            raise ValueError(f"volatility must be non-negative, got {volatility}.")
        self.symbol = symbol
        self.volatility = volatility
        self.drift = drift
        self.decimals = decimals
        self._rng = np.random.default_rng(seed)
        self._price = float(start_price)
        self._epoch = int(time.time())

    @property
    def price(self) -> float:
        return round(self._price, self.decimals)

    def next_tick(self) -> Tick:
        z = self._rng.standard_normal()
        sigma = self.volatility
        self._price *= math.exp((self.drift - 0.5 * sigma * sigma) + sigma * z)
        self._epoch += 1
        return Tick(symbol=self.symbol, epoch=self._epoch, quote=self.price)

    def __iter__(self) -> Iterator[Tick]:
        while True:
            yield self.next_tick()


# ─── Live feed ────────────────────────────────────────────────────────────────

class DerivTickFeed:
    """Live ticks streamed from the Deriv websocket API.

    Sends ``{"ticks": symbol, "subscribe": 1}`` on connect and yields every
    ``tick`` message. One iteration holds one connection; the socket is
    closed when the iterator is closed or the server ends the stream.

    Raises (while iterating):
        FeedError: On an ``error`` message from the server.
    """

    def __init__(self, symbol: str, url: str = DERIV_WS_URL, open_timeout: float = 10.0) -> None:
        self.symbol = symbol
        self.url = url
        self.open_timeout = open_timeout

    def open(self) -> DerivTickSession:
        """Connect, subscribe and return a pollable session."""
        ws = connect(self.url, open_timeout=self.open_timeout)
        logger.info("Connected to %s, subscribing to %s", self.url, self.symbol)
        ws.send(json.dumps({"ticks": self.symbol, "subscribe": 1}))
        return DerivTickSession(ws, self)

    def __iter__(self) -> Iterator[Tick]:
        session = self.open()
        try:
            while True:
                yield from session.poll(timeout=None)
        except ConnectionClosedOK:
            logger.info("Tick stream for %s closed", self.symbol)
        finally:
            session.close()

    def parse(self, raw: str | bytes) -> Tick | None:
        """Decode one server message; None for anything that is not a tick."""
        msg = json.loads(raw)
        msg_type = msg.get("msg_type")
        if msg_type == "error" or "error" in msg:
            message = msg.get("error", {}).get("message", "unknown error")
            raise FeedError(f"Deriv feed error for {self.symbol}: {message}")
        if msg_type != "tick":
            logger.debug("Ignoring %s message", msg_type)
            return None
        body = msg["tick"]
        return Tick(
            symbol=body.get("symbol", self.symbol),
            epoch=int(body["epoch"]),
            quote=float(body["quote"]),
        )


# ─── Sessions ─────────────────────────────────────────────────────────────────

class TickSession(Protocol):
    """An open feed that hands over whatever ticks have arrived so far."""

    def poll(self, timeout: float | None = 0.0) -> list[Tick]: ...

    def close(self) -> None: ...


class DerivTickSession:
    """Open subscription on one websocket connection.

    ``poll`` waits up to ``timeout`` seconds (forever for None) for the
    first message, then drains every message already received without
    blocking. Quotes that queued up between polls are therefore returned
    together and in order, never skipped.
    """

    def __init__(self, ws, feed: DerivTickFeed) -> None:
        self._ws = ws
        self._feed = feed
        self._closed: ConnectionClosed | None = None

    def poll(self, timeout: float | None = 0.0) -> list[Tick]:
        if self._closed is not None:
            raise self._closed
        ticks: list[Tick] = []
        wait = timeout
        while True:
            try:
                raw = self._ws.recv(timeout=wait)
            except TimeoutError:
                break
            except ConnectionClosed as exc:
                if not ticks:
                    raise
                # hand back what was read; the next poll reports the close
                self._closed = exc
                break
            tick = self._feed.parse(raw)
            if tick is not None:
                ticks.append(tick)
            wait = 0
        return ticks

    def close(self) -> None:
        self._ws.close()


class IteratorSession:
    """Session over a plain tick iterator, releasing at most one tick per ``pace`` seconds."""

    def __init__(self, ticks: Iterator[Tick], pace: float = 0.0) -> None:
        if pace < 0:
            raise ValueError(f"pace must be non-negative, got {pace}.")
        self._ticks = ticks
        self.pace = pace
        self.exhausted = False
        self._due = 0.0

    def poll(self, timeout: float | None = 0.0) -> list[Tick]:
        if self.exhausted:
            return []
        wait = self._due - time.monotonic()
        if wait > 0:
            if timeout is not None and timeout < wait:
                return []
            time.sleep(wait)
        try:
            tick = next(self._ticks)
        except StopIteration:
            self.exhausted = True
            return []
        self._due = time.monotonic() + self.pace
        return [tick]

    def close(self) -> None:
        close = getattr(self._ticks, "close", None)
        if close is not None:
            close()


def open_session(feed: TickFeed, pace: float = 0.0) -> TickSession:
    """Open ``feed`` for polling. Live feeds ignore ``pace``; the server sets the rate."""
    if isinstance(feed, DerivTickFeed):
        return feed.open()
    return IteratorSession(iter(feed), pace=pace)


# ─── Replay feed ──────────────────────────────────────────────────────────────

class ReplayFeed:
    """Finite feed over a fixed list of quotes, one tick per second from epoch 0."""

    def __init__(self, quotes: Iterable[float], symbol: str = "REPLAY") -> None:
        self.symbol = symbol
        self.quotes = tuple(float(q) for q in quotes)

    def __iter__(self) -> Iterator[Tick]:
        for i, quote in enumerate(self.quotes):
            yield Tick(symbol=self.symbol, epoch=i, quote=quote)

    def __len__(self) -> int:
        return len(self.quotes)


# ─── Selection ────────────────────────────────────────────────────────────────

def make_feed(config: GameConfig, seed: int | None = None) -> TickFeed:
    """Return the feed named by ``config.feed`` ('simulated' or 'live')."""
    if config.feed == "live":
        logger.info("Using live Deriv feed for %s", config.symbol)
        return DerivTickFeed(config.symbol, url=config.ws_url)
    if config.feed == "simulated":
        logger.info("Using simulated random-walk feed for %s", config.symbol)
        return RandomWalkFeed(
            symbol=config.symbol,
            start_price=config.start_price,
            volatility=config.volatility,
            seed=seed,
            decimals=config.decimals,
        )
    raise ValueError(f"Unknown feed kind: {config.feed!r}")
