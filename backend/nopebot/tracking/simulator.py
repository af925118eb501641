"""Simulated NOPE data source for running without network access."""

from __future__ import annotations

import logging
import math
import random

import numpy as np

from .interface import FetchClient
from .models import EmptyDataError, FetchResult, MetricReading
from .symbols import DEFAULT_PARAMS, NOPE_MEAN_REVERSION, SEED_PRICES, SYMBOL_PARAMS, Symbol

logger = logging.getLogger(__name__)

class NopeSimulator:
    """Per-symbol NOPE and price processes.

    Price follows Geometric Brownian Motion:
        S(t+dt) = S(t) * exp(-sigma^2/2 * dt + sigma * sqrt(dt) * Z1)

    NOPE follows a discrete Ornstein-Uhlenbeck process around zero:
        N(t+1) = N(t) * (1 - theta) + nope_sigma * Z2

    with an occasional shock that pushes NOPE well past typical alert
    thresholds. dt is one 30-second poll as a fraction of a trading year.
    """

    TRADING_SECONDS_PER_YEAR = 252 * 6.5 * 3600  # 5,896,800
    DEFAULT_DT = 30.0 / TRADING_SECONDS_PER_YEAR

    def __init__(
        self,
        dt: float = DEFAULT_DT,
        shock_probability: float = 0.02,
        seed: int | None = None,
    ) -> None:
        self._dt = dt
        self._shock_prob = shock_probability
        self._rng = np.random.default_rng(seed)
        self._random = random.Random(seed)
        self._prices: dict[str, float] = {}
        self._nope: dict[str, float] = {}

    def step(self, symbol: str) -> tuple[float, float]:
        """Advance symbol by one step. Returns (nope, price)."""
        if symbol not in self._prices:
            self._prices[symbol] = SEED_PRICES.get(symbol, self._random.uniform(5.0, 300.0))
            self._nope[symbol] = 0.0

        params = SYMBOL_PARAMS.get(symbol, DEFAULT_PARAMS)
        sigma = params["sigma"]
        z_price, z_nope = self._rng.standard_normal(2)

        drift = -0.5 * sigma**2 * self._dt
        diffusion = sigma * math.sqrt(self._dt) * z_price
        self._prices[symbol] *= math.exp(drift + diffusion)

        nope = self._nope[symbol] * (1 - NOPE_MEAN_REVERSION) + params["nope_sigma"] * z_nope
        if self._random.random() < self._shock_prob:
            shock = self._random.uniform(20.0, 60.0) * self._random.choice([-1, 1])
            nope += shock
            logger.debug("NOPE shock on %s: %+.1f", symbol, shock)
        self._nope[symbol] = float(nope)

        return round(self._nope[symbol], 4), round(self._prices[symbol], 4)


class SimulatedFetchClient(FetchClient):
    """FetchClient backed by NopeSimulator.

    Each fetch advances the symbol one step. A non-zero error_probability
    makes that fraction of calls return EmptyDataError, which is what the
    real endpoint does before the day's first observation is published.
    """

    def __init__(
        self,
        simulator: NopeSimulator | None = None,
        error_probability: float = 0.0,
    ) -> None:
        self._sim = simulator or NopeSimulator()
        self._error_prob = error_probability
        self._random = random.Random()

    async def start(self) -> None:
        logger.info("NOPE simulator started")

    async def stop(self) -> None:
        logger.info("NOPE simulator stopped")

    async def fetch_metric(self, symbol: Symbol) -> FetchResult:
        if self._error_prob and self._random.random() < self._error_prob:
            return EmptyDataError()
        nope, price = self._sim.step(str(symbol))
        return MetricReading(value=nope, price=price)
