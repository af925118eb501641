"""Tracking subscription manager: periodic NOPE polling with threshold alerts."""

from __future__ import annotations

import asyncio
import logging
import math

from .formatting import format_alert, format_reading
from .interface import FetchClient
from .models import (
    TRANSIENT_ERRORS,
    AlreadyTracked,
    FetchResult,
    InvalidThreshold,
    MetricReading,
    NotTracked,
    Send,
    Subscription,
    TrackError,
    TransportError,
    UntrackError,
)
from .registry import SubscriptionRegistry
from .symbols import Symbol

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 30.0

class SubscriptionManager:
    """Owns the registry of tracked symbols and their polling timers.

    Each subscription gets a timer task that wakes every `tick_interval`
    seconds and launches an update cycle as a separate task, so a slow fetch
    never delays the next tick. Cycles of the same symbol may overlap.

    Update cycle outcomes:
      - reading with abs(value) >= threshold → alert
      - reading below threshold → silent (or plain reading when verbose)
      - DecodeError / EmptyDataError → silent, stays tracked
      - TransportError → error reply, then auto-untrack
    """

    def __init__(
        self,
        client: FetchClient,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        verbose: bool = False,
    ) -> None:
        self._client = client
        self._interval = tick_interval
        self._verbose = verbose
        self._registry = SubscriptionRegistry()
        self._cycles: set[asyncio.Task] = set()  # In-flight update cycles

    # --- Public API ---

    async def track(self, symbol: Symbol, threshold: float, send: Send) -> TrackError | None:
        """Start tracking symbol. Returns an error value, or None on success.

        The first update cycle is launched right away; this call does not
        wait for it to finish.
        """
        if symbol in self._registry:
            return AlreadyTracked(symbol)
        if math.isnan(threshold) or math.isinf(threshold):
            return InvalidThreshold(threshold)

        threshold = abs(threshold)
        handle = asyncio.create_task(self._tick_loop(symbol), name=f"nope-timer-{symbol}")
        subscription = Subscription(symbol=symbol, threshold=threshold, handle=handle, send=send)
        self._registry.add(subscription)
        logger.info("Tracking %s with threshold %s (every %.1fs)", symbol, threshold, self._interval)

        self._spawn_cycle(subscription)
        return None

    def untrack(self, symbol: Symbol) -> UntrackError | None:
        """Stop tracking symbol. No cycle starts for it after this returns."""
        subscription = self._registry.remove(symbol)
        if subscription is None:
            return NotTracked(symbol)

        subscription.handle.cancel()
        logger.info("Untracked %s", symbol)
        return None

    async def query_once(self, symbol: Symbol) -> FetchResult:
        """One fetch, no registry interaction."""
        return await self._client.fetch_metric(symbol)

    def is_tracked(self, symbol: Symbol) -> bool:
        return symbol in self._registry

    def subscriptions(self) -> list[Subscription]:
        """Snapshot of live subscriptions in the order they were created."""
        return self._registry.get_all()

    async def wait_for_pending(self) -> None:
        """Wait until every in-flight update cycle has finished."""
        while self._cycles:
            await asyncio.gather(*list(self._cycles), return_exceptions=True)

    async def stop(self) -> None:
        """Cancel every timer and drain in-flight cycles. Safe to call twice."""
        removed = self._registry.clear()
        for subscription in removed:
            subscription.handle.cancel()
        for subscription in removed:
            try:
                await subscription.handle
            except asyncio.CancelledError:
                pass
        await self.wait_for_pending()
        if removed:
            logger.info("Subscription manager stopped (%d subscriptions dropped)", len(removed))

    def __len__(self) -> int:
        return len(self._registry)

    # --- Internal ---

    async def _tick_loop(self, symbol: Symbol) -> None:
        """Timer for one subscription. The immediate first cycle runs from track()."""
        while True:
            await asyncio.sleep(self._interval)
            subscription = self._registry.get(symbol)
            if subscription is None:
                return
            self._spawn_cycle(subscription)

    def _spawn_cycle(self, subscription: Subscription) -> None:
        task = asyncio.create_task(
            self._update_cycle(subscription), name=f"nope-cycle-{subscription.symbol}"
        )
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)

    async def _update_cycle(self, subscription: Subscription) -> None:
        """One fetch-evaluate-notify pass. Never raises."""
        symbol = subscription.symbol
        if not self._registry.is_live(subscription):
            return

        try:
            result = await self._client.fetch_metric(symbol)

            # Untracked (or re-tracked) while the fetch was in flight
            if not self._registry.is_live(subscription):
                logger.debug("Dropping result for %s: no longer tracked", symbol)
                return

            if isinstance(result, MetricReading):
                if result.crosses(subscription.threshold):
                    await subscription.send(format_alert(symbol, result, subscription.threshold))
                elif self._verbose:
                    await subscription.send(format_reading(symbol, result))
                else:
                    logger.debug(
                        "%s NOPE %.2f below threshold %s", symbol, result.value, subscription.threshold
                    )
            elif isinstance(result, TRANSIENT_ERRORS):
                logger.debug("%s: %s, retrying next tick", symbol, type(result).__name__)
            elif isinstance(result, TransportError):
                # Untrack before replying so a failed reply can't keep it alive
                if self.untrack(symbol) is None:
                    logger.warning("Auto-untracked %s after transport error: %s", symbol, result.details)
                await subscription.send(f"Error requesting the NOPE: {result.details}")

        except Exception as e:
            logger.exception("Update cycle for %s failed", symbol)
            await _send_quietly(subscription.send, f"Unexpected error: {e}")

async def _send_quietly(send: Send, text: str) -> None:
    """Last-resort reply from a catch-all boundary; failures are only logged."""
    try:
        await send(text)
    except Exception:
        logger.exception("Failed to deliver error reply")
