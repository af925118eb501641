"""Abstract interface for NOPE data sources."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import FetchResult
from .symbols import Symbol


class FetchClient(ABC):
    """Contract for NOPE providers.

    A client performs exactly one lookup per fetch_metric() call and reports
    failure as a value, never by raising:

        client = create_fetch_client(settings)
        await client.start()
        result = await client.fetch_metric(symbol)
        if isinstance(result, MetricReading):
            ...
        await client.stop()

    No caching and no retry: the caller decides what to do with an error.
    """

    async def start(self) -> None:
        """Acquire resources (connection pools etc.). Default: nothing to do."""

    async def stop(self) -> None:
        """Release resources. Safe to call multiple times."""

    @abstractmethod
    async def fetch_metric(self, symbol: Symbol) -> FetchResult:
        """Fetch the most recent NOPE reading for symbol.

        Returns a MetricReading on success, or one of TransportError,
        DecodeError, EmptyDataError.
        """
