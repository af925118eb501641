"""Factory for creating NOPE fetch clients."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .interface import FetchClient

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)


def create_fetch_client(settings: Settings) -> FetchClient:
    """Create the appropriate fetch client based on settings.

    - data_source == "simulator" → SimulatedFetchClient (no network)
    - Otherwise → NopeChartClient (real data from nopechart.com)

    Returns an unstarted client. Caller must await client.start().
    """
    if settings.data_source == "simulator":
        from .simulator import SimulatedFetchClient

        logger.info("NOPE data source: simulator")
        return SimulatedFetchClient()
    else:
        from .nopechart_client import NopeChartClient

        logger.info("NOPE data source: %s", settings.nope_base_url)
        return NopeChartClient(base_url=settings.nope_base_url, timeout=settings.http_timeout)
