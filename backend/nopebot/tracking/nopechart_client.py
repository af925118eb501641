"""nopechart.com client for real NOPE data."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx

from .interface import FetchClient
from .models import DecodeError, EmptyDataError, FetchResult, MetricReading, TransportError
from .symbols import Symbol

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://nopechart.com/cache"


def build_url(base_url: str, symbol: Symbol, now: datetime) -> str:
    """Request URL for symbol's data on now's calendar day.

    The cache is partitioned per day (MM-DD-YYYY). The trailing millisecond
    timestamp is a cache-busting nonce.
    """
    date = now.strftime("%m-%d-%Y")
    nonce = int(now.timestamp() * 1000)
    return f"{base_url.rstrip('/')}/{symbol}_{date}.json?={nonce}"


def parse_observations(payload: Any) -> FetchResult:
    """Pick the newest observation out of a decoded response body.

    The body is a JSON array ordered oldest to newest. The metric field is
    called ``nope`` upstream; ``value`` is accepted as well.
    """
    if not isinstance(payload, list):
        return DecodeError()
    if not payload:
        return EmptyDataError()

    latest = payload[-1]
    if not isinstance(latest, dict):
        return DecodeError()

    value = latest.get("nope", latest.get("value"))
    price = latest.get("price")
    try:
        value, price = float(value), float(price)
    except (TypeError, ValueError):
        return DecodeError()
    if not (math.isfinite(value) and math.isfinite(price)):
        return DecodeError()
    return MetricReading(value=value, price=price)


class NopeChartClient(FetchClient):
    """FetchClient backed by the nopechart.com JSON cache.

    GET <base>/<SYMBOL>_<MM-DD-YYYY>.json?=<unix-ms> returns every observation
    published so far today. One request per call, no retry.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._clock = clock

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        logger.info("nopechart client started: %s", self._base_url)

    async def stop(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
        logger.info("nopechart client stopped")

    async def fetch_metric(self, symbol: Symbol) -> FetchResult:
        if self._client is None:
            await self.start()

        url = build_url(self._base_url, symbol, self._clock())
        logger.debug("Fetching %s", url)

        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            logger.warning("nopechart request for %s failed: %s", symbol, e)
            return TransportError(details=str(e) or type(e).__name__)

        if not response.is_success:
            logger.warning("nopechart returned HTTP %d for %s", response.status_code, symbol)
            return TransportError(details=f"HTTP {response.status_code} {response.reason_phrase}".strip())

        try:
            payload = response.json()
        except ValueError:
            logger.debug("Undecodable body for %s", symbol)
            return DecodeError()

        return parse_observations(payload)
