"""Chat command dispatcher: now / track / untrack."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..tracking.formatting import format_reading
from ..tracking.manager import SubscriptionManager
from ..tracking.models import (
    TRANSIENT_ERRORS,
    AlreadyTracked,
    InvalidThreshold,
    MetricReading,
    NotTracked,
    Send,
    TransportError,
)
from ..tracking.symbols import SymbolUniverse
from .telegram import extract_message

logger = logging.getLogger(__name__)

GREETING = "Hey there. This is NOPE-bot v0.1"

Handler = Callable[[str, Send], Awaitable[None]]


def parse_command(text: str) -> tuple[str, str] | None:
    """Split '/track@nope_bot GME 30' into ('track', 'GME 30').

    Returns None for text that isn't a slash command.
    """
    text = text.strip()
    if not text.startswith("/"):
        return None
    head, *rest = text.split(maxsplit=1)
    name = head[1:].split("@", 1)[0].lower()
    if not name:
        return None
    return name, rest[0].strip() if rest else ""


def format_threshold(threshold: float) -> str:
    """Threshold as the user would write it: 30, 12.5, 1234567."""
    if threshold.is_integer() and abs(threshold) < 1e16:
        return str(int(threshold))
    return repr(threshold)


def parse_threshold(raw: str) -> float:
    """Numeric value of raw, or NaN when it doesn't parse."""
    try:
        return float(raw)
    except ValueError:
        return float("nan")


class CommandDispatcher:
    """Routes chat commands to the SubscriptionManager and replies.

    Raw ticker input is validated here, once; the manager only ever sees
    Symbol values. Each dispatched command is the outermost boundary for
    unexpected errors: they are logged and answered generically.
    """

    def __init__(self, manager: SubscriptionManager, universe: SymbolUniverse) -> None:
        self._manager = manager
        self._universe = universe
        self._handlers: dict[str, Handler] = {
            "hi": self._hi,
            "now": self._now,
            "track": self._track,
            "untrack": self._untrack,
        }

    async def dispatch(self, text: str, send: Send) -> None:
        if text.strip().lower() == "hi":
            parsed: tuple[str, str] | None = ("hi", "")
        else:
            parsed = parse_command(text)
        if parsed is None:
            return

        name, args = parsed
        handler = self._handlers.get(name)
        if handler is None:
            logger.debug("Ignoring unknown command /%s", name)
            return

        try:
            await handler(args, send)
        except Exception as e:
            logger.exception("Command /%s failed", name)
            try:
                await send(f"Unexpected error: {e}")
            except Exception:
                logger.exception("Failed to deliver error reply for /%s", name)

    async def handle_update(self, update: dict[str, Any], reply_to: Callable[[int], Send]) -> None:
        """Dispatch a raw Telegram update, replying in the chat it came from.

        Never raises: a malformed update is logged and dropped.
        """
        try:
            message = extract_message(update)
            if message is None:
                logger.debug("Ignoring update %s without a text message", update.get("update_id"))
                return
            chat_id, text = message
            await self.dispatch(text, reply_to(chat_id))
        except Exception:
            logger.exception("Handling update %s failed", update.get("update_id"))

    # --- Handlers ---

    async def _hi(self, args: str, send: Send) -> None:
        await send(GREETING)

    async def _now(self, args: str, send: Send) -> None:
        tokens = args.split()
        if not tokens:
            await send("Wrong command format. Correct format is '/now GME'")
            return

        symbol = self._universe.validate(tokens[0])
        if symbol is None:
            await send(f"Ticker {tokens[0]} not in the list")
            return

        result = await self._manager.query_once(symbol)
        if isinstance(result, MetricReading):
            await send(format_reading(symbol, result))
        elif isinstance(result, TRANSIENT_ERRORS):
            await send("Error requesting the NOPE now. Retry.")
        elif isinstance(result, TransportError):
            await send(f"Error requesting the NOPE: {result.details}")

    async def _track(self, args: str, send: Send) -> None:
        tokens = args.split()
        if not tokens:
            await send("Wrong command format. Correct format is '/track GME 30'")
            return

        raw_threshold = tokens[1] if len(tokens) > 1 else ""
        symbol = self._universe.validate(tokens[0])
        if symbol is None:
            await send(f"Ticker {tokens[0]} not in the list")
            return

        threshold = parse_threshold(raw_threshold)
        error = await self._manager.track(symbol, threshold, send)
        if isinstance(error, AlreadyTracked):
            await send("Ticker already being tracked")
        elif isinstance(error, InvalidThreshold):
            await send(f"Invalid threshold {raw_threshold or '(missing)'}. Correct format is '/track GME 30'")
        else:
            await send(f"Tracking ticker {symbol} with threshold {format_threshold(abs(threshold))}")

    async def _untrack(self, args: str, send: Send) -> None:
        tokens = args.split()
        if not tokens:
            await send("Wrong command format. Correct format is '/untrack GME'")
            return

        symbol = self._universe.validate(tokens[0])
        if symbol is None:
            await send(f"Ticker {tokens[0]} not in the list")
            return

        if isinstance(self._manager.untrack(symbol), NotTracked):
            await send("Ticker not tracked")
        else:
            await send(f"{symbol} untracked")
