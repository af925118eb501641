"""HTTP endpoints: Telegram webhook and subscription status."""

from __future__ import annotations

import hmac
import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Request

from ..tracking.manager import SubscriptionManager
from .telegram import UpdateHandler

logger = logging.getLogger(__name__)


def create_api_router(
    manager: SubscriptionManager,
    on_update: UpdateHandler,
    webhook_secret: str = "",
) -> APIRouter:
    """Create the API router bound to a manager and an update handler.

    This factory pattern lets us inject the manager without globals.
    """
    router = APIRouter(prefix="/api")

    @router.post("/telegram/webhook", tags=["telegram"])
    async def telegram_webhook(
        request: Request,
        background_tasks: BackgroundTasks,
        x_telegram_bot_api_secret_token: str | None = Header(default=None),
    ) -> dict[str, bool]:
        """Receive a Telegram Update.

        Telegram retries deliveries that don't get a 2xx quickly, so the
        command is handled after the response is sent.
        """
        if webhook_secret and not hmac.compare_digest(
            x_telegram_bot_api_secret_token or "", webhook_secret
        ):
            logger.warning("Rejected webhook call with a bad secret token")
            raise HTTPException(status_code=403, detail="Invalid secret token")

        try:
            update: Any = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Body must be a JSON object")
        if not isinstance(update, dict):
            raise HTTPException(status_code=400, detail="Body must be a JSON object")

        background_tasks.add_task(on_update, update)
        return {"ok": True}

    @router.get("/subscriptions", tags=["tracking"])
    async def list_subscriptions() -> list[dict]:
        """Live subscriptions in the order they were created."""
        return [subscription.to_dict() for subscription in manager.subscriptions()]

    @router.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return router
