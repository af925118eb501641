"""Chat message formatting for readings and alerts."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext

from .models import MetricReading
from .symbols import Symbol

_CENTS = Decimal("0.01")


def two_decimals(number: float) -> str:
    """Round half-up on the decimal text of number, e.g. 12.345 -> '12.35'.

    Going through repr avoids binary artefacts (12.345 is stored as
    12.3449999...), so the output matches what a person reading the raw
    value expects.
    """
    value = Decimal(repr(float(number)))
    with localcontext() as ctx:
        # Enough digits for every integer place plus the two decimals
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return str(value.quantize(_CENTS, rounding=ROUND_HALF_UP))


def format_reading(symbol: Symbol, reading: MetricReading) -> str:
    return f"{symbol} NOPE: {two_decimals(reading.value)}, price: {two_decimals(reading.price)}"


def format_alert(symbol: Symbol, reading: MetricReading, threshold: float) -> str:
    return (
        f"{symbol} NOPE: {two_decimals(reading.value)} "
        f"(threshold {two_decimals(threshold)}), price: {two_decimals(reading.price)}"
    )
