"""In-memory registry of live subscriptions."""

from __future__ import annotations

from .models import Subscription
from .symbols import Symbol

class SubscriptionRegistry:
    """Ordered collection of live subscriptions, at most one per symbol.

    Owned by a single SubscriptionManager, which is the only writer. All
    access happens on the event loop thread, so no locking is needed: each
    method runs to completion without suspending.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[Symbol, Subscription] = {}

    def add(self, subscription: Subscription) -> None:
        """Insert a subscription. The symbol must not already be present."""
        if subscription.symbol in self._subscriptions:
            raise KeyError(f"{subscription.symbol} is already registered")
        self._subscriptions[subscription.symbol] = subscription

    def get(self, symbol: Symbol) -> Subscription | None:
        return self._subscriptions.get(symbol)

    def remove(self, symbol: Symbol) -> Subscription | None:
        """Remove and return the subscription for symbol, or None if absent."""
        return self._subscriptions.pop(symbol, None)

    def is_live(self, subscription: Subscription) -> bool:
        """True if this exact subscription object is still registered."""
        return self._subscriptions.get(subscription.symbol) is subscription

    def get_all(self) -> list[Subscription]:
        """Snapshot of all subscriptions in insertion order."""
        return list(self._subscriptions.values())

    def clear(self) -> list[Subscription]:
        """Remove everything, returning what was registered."""
        removed = list(self._subscriptions.values())
        self._subscriptions.clear()
        return removed

    def __len__(self) -> int:
        return len(self._subscriptions)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._subscriptions
