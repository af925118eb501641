"""Data models for NOPE tracking."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from .symbols import Symbol

# Reply capability bound to one chat conversation
Send = Callable[[str], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class MetricReading:
    """Immutable NOPE observation for a symbol at fetch time."""

    value: float
    price: float

    def crosses(self, threshold: float) -> bool:
        """True when the magnitude of the NOPE value reaches the threshold."""
        return abs(self.value) >= threshold

# --- Fetch errors ---


@dataclass(frozen=True, slots=True)
class TransportError:
    """Connection failure or non-success HTTP response."""

    details: str


@dataclass(frozen=True, slots=True)
class DecodeError:
    """Response body is not the expected JSON structure."""


@dataclass(frozen=True, slots=True)
class EmptyDataError:
    """Response decoded fine but holds zero observations."""


FetchError = TransportError | DecodeError | EmptyDataError
FetchResult = MetricReading | FetchError

# Data errors that are expected before the day's data is published
TRANSIENT_ERRORS = (DecodeError, EmptyDataError)


# --- Track / untrack errors ---


@dataclass(frozen=True, slots=True)
class AlreadyTracked:
    symbol: Symbol


@dataclass(frozen=True, slots=True)
class InvalidThreshold:
    threshold: float


@dataclass(frozen=True, slots=True)
class NotTracked:
    symbol: Symbol


TrackError = AlreadyTracked | InvalidThreshold
UntrackError = NotTracked


@dataclass(frozen=True, slots=True, eq=False)
class Subscription:
    """A live binding of a symbol to a threshold and a recurring poll.

    Never mutated after creation. Changing the threshold means untrack + track.
    Identity (not equality) distinguishes a re-created subscription for the
    same symbol from the one an in-flight update cycle was started for.
    """

    symbol: Symbol
    threshold: float
    handle: asyncio.Task
    send: Send

    def to_dict(self) -> dict:
        return {"symbol": str(self.symbol), "threshold": self.threshold}
