"""Telegram-facing adapters.

Public API:
    CommandDispatcher  - Parses chat commands and drives the SubscriptionManager
    TelegramClient     - Bot API wrapper (sendMessage, getUpdates, setWebhook)
    TelegramPoller     - Long-polling update loop
    create_api_router  - FastAPI router factory for the webhook and status endpoints
"""

from .commands import CommandDispatcher
from .telegram import TelegramClient, TelegramError, TelegramPoller
from .webhook import create_api_router

__all__ = [
    "CommandDispatcher",
    "TelegramClient",
    "TelegramError",
    "TelegramPoller",
    "create_api_router",
]
