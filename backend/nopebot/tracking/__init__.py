"""NOPE tracking subsystem.

Public API:
    Symbol, SymbolUniverse - Allow-list and the validated ticker type
    MetricReading          - Immutable NOPE observation
    FetchClient            - Abstract interface for NOPE data providers
    create_fetch_client    - Factory that selects nopechart.com or the simulator
    SubscriptionManager    - Registry of tracked symbols with periodic polling
"""

from .factory import create_fetch_client
from .formatting import format_alert, format_reading
from .interface import FetchClient
from .manager import SubscriptionManager
from .models import (
    AlreadyTracked,
    DecodeError,
    EmptyDataError,
    FetchError,
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
from .symbols import Symbol, SymbolUniverse

__all__ = [
    "AlreadyTracked",
    "DecodeError",
    "EmptyDataError",
    "FetchClient",
    "FetchError",
    "FetchResult",
    "InvalidThreshold",
    "MetricReading",
    "NotTracked",
    "Send",
    "Subscription",
    "SubscriptionManager",
    "Symbol",
    "SymbolUniverse",
    "TrackError",
    "TransportError",
    "UntrackError",
    "create_fetch_client",
    "format_alert",
    "format_reading",
]
