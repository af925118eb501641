"""Allow-listed tickers, the validated Symbol type, and simulator seeds."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

# Tickers published by nopechart.com (as of project creation)
DEFAULT_SYMBOLS: tuple[str, ...] = (
    "AAPL",
    "AMZN",
    "ARKK",
    "BALY",
    "BB",
    "BLI",
    "CLOV",
    "CRSA",
    "EEM",
    "GME",
    "GRWG",
    "IWM",
    "MGNI",
    "NOK",
    "PLTR",
    "QQQ",
    "SPY",
    "SSPK",
    "TLRY",
    "TSLA",
)

_VALIDATED = object()


class Symbol(str):
    """A ticker that passed the allow-list check.

    Only SymbolUniverse.validate() can build one; downstream code takes a
    Symbol and never re-validates.
    """

    __slots__ = ()

    def __new__(cls, value: str, _key: object = None) -> Symbol:
        if _key is not _VALIDATED:
            raise TypeError("Symbol instances are created by SymbolUniverse.validate()")
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"Symbol({str.__repr__(self)})"


class SymbolUniverse:
    """The fixed allow-list of trackable tickers, known at startup."""

    def __init__(self, symbols: Iterable[str] = DEFAULT_SYMBOLS) -> None:
        self._symbols: dict[str, Symbol] = {}
        for raw in symbols:
            name = raw.upper().strip()
            if name:
                self._symbols[name] = Symbol(name, _VALIDATED)

    def validate(self, raw: str) -> Symbol | None:
        """Return the Symbol for raw input, or None if it isn't allow-listed."""
        return self._symbols.get(raw.upper().strip())

    def __contains__(self, raw: object) -> bool:
        return isinstance(raw, str) and self.validate(raw) is not None

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())

    def __len__(self) -> int:
        return len(self._symbols)


# Starting prices for the simulator (approximate, early 2021)
SEED_PRICES: dict[str, float] = {
    "AAPL": 135.00,
    "AMZN": 3200.00,
    "ARKK": 125.00,
    "BALY": 55.00,
    "BB": 12.00,
    "BLI": 70.00,
    "CLOV": 10.00,
    "CRSA": 30.00,
    "EEM": 55.00,
    "GME": 150.00,
    "GRWG": 45.00,
    "IWM": 220.00,
    "MGNI": 40.00,
    "NOK": 4.50,
    "PLTR": 25.00,
    "QQQ": 320.00,
    "SPY": 390.00,
    "SSPK": 25.00,
    "TLRY": 20.00,
    "TSLA": 700.00,
}

# Per-ticker simulator parameters
# sigma: annualized price volatility
# nope_sigma: NOPE noise per step (NOPE is a percentage-like figure)
SYMBOL_PARAMS: dict[str, dict[str, float]] = {
    "GME": {"sigma": 1.50, "nope_sigma": 6.0},  # Meme-level volatility
    "CLOV": {"sigma": 1.00, "nope_sigma": 5.0},
    "TLRY": {"sigma": 0.90, "nope_sigma": 4.5},
    "TSLA": {"sigma": 0.60, "nope_sigma": 3.5},
    "SPY": {"sigma": 0.15, "nope_sigma": 1.5},  # Index ETFs are calm
    "QQQ": {"sigma": 0.20, "nope_sigma": 1.8},
    "IWM": {"sigma": 0.22, "nope_sigma": 1.8},
}

DEFAULT_PARAMS: dict[str, float] = {"sigma": 0.50, "nope_sigma": 3.0}

# Ornstein-Uhlenbeck pull of NOPE back towards zero, per step
NOPE_MEAN_REVERSION = 0.15
