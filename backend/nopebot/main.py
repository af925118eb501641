"""FastAPI application wiring the tracker, the data source and Telegram.

The served instance lives in nopebot.asgi.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI

from . import __version__
from .bot.commands import CommandDispatcher
from .bot.telegram import TelegramClient, TelegramPoller
from .bot.webhook import create_api_router
from .config import Settings, load_settings
from .tracking.factory import create_fetch_client
from .tracking.interface import FetchClient
from .tracking.manager import SubscriptionManager
from .tracking.symbols import SymbolUniverse

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    client: FetchClient | None = None,
    telegram: TelegramClient | None = None,
) -> FastAPI:
    """Build the application. Components start and stop with its lifespan."""
    settings = settings or load_settings()
    client = client or create_fetch_client(settings)
    manager = SubscriptionManager(client, tick_interval=settings.poll_interval, verbose=settings.verbose)
    dispatcher = CommandDispatcher(manager, SymbolUniverse(settings.symbols))
    telegram = telegram or TelegramClient(settings.telegram_token, timeout=settings.http_timeout)
    on_update = partial(dispatcher.handle_update, reply_to=telegram.reply_to)
    poller = TelegramPoller(telegram, on_update)
    polling = bool(settings.telegram_token) and settings.telegram_mode != "webhook"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await client.start()
        await telegram.start()

        if not settings.telegram_token:
            logger.warning("TELEGRAM_TOKEN is not set: commands only arrive via the webhook route")
        elif polling:
            try:
                await telegram.delete_webhook()
            except Exception:
                logger.exception("Failed to clear the Telegram webhook before polling")
            await poller.start()
        elif settings.telegram_webhook_url:
            try:
                await telegram.set_webhook(settings.telegram_webhook_url, settings.telegram_webhook_secret)
            except Exception:
                logger.exception("Failed to register the Telegram webhook")
        else:
            logger.warning("Webhook mode without TELEGRAM_WEBHOOK_URL: assuming it is registered already")

        logger.info("NOPE-bot %s started (%d symbols)", __version__, len(settings.symbols))
        try:
            yield
        finally:
            if polling:
                await poller.stop()
            await manager.stop()
            await client.stop()
            await telegram.stop()
            logger.info("NOPE-bot stopped")

    app = FastAPI(title="NOPE-bot", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.manager = manager
    app.state.dispatcher = dispatcher
    app.include_router(create_api_router(manager, on_update, settings.telegram_webhook_secret))
    return app

