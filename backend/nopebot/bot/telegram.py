"""Telegram Bot API client and long-polling update loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

logger = logging.getLogger(__name__)

API_BASE = "https://api.telegram.org"
MAX_MESSAGE_LENGTH = 4096

UpdateHandler = Callable[[dict[str, Any]], Awaitable[None]]


class TelegramError(Exception):
    """The Bot API answered with ok=false or an unusable response."""


def extract_message(update: dict[str, Any]) -> tuple[int, str] | None:
    """(chat_id, text) of a text message update, or None for anything else."""
    message = update.get("message") or update.get("edited_message")
    if not isinstance(message, dict):
        return None
    text = message.get("text")
    chat = message.get("chat")
    if not isinstance(text, str) or not isinstance(chat, dict):
        return None
    chat_id = chat.get("id")
    if not isinstance(chat_id, int) or isinstance(chat_id, bool):
        return None
    return chat_id, text


def chunk_text(text: str, limit: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """Split text into pieces Telegram will accept."""
    if not text:
        return [""]
    return [text[i : i + limit] for i in range(0, len(text), limit)]


class TelegramClient:
    """Thin async wrapper over the Bot API methods this bot uses."""

    def __init__(
        self,
        token: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
        api_base: str = API_BASE,
    ) -> None:
        self._token = token
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._api_base = api_base.rstrip("/")

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True

    async def stop(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def call(self, method: str, payload: dict[str, Any], timeout: float | None = None) -> Any:
        """POST a Bot API method and return its `result`.

        Raises TelegramError for ok=false answers and httpx.HTTPError for
        transport failures.
        """
        if self._client is None:
            await self.start()

        url = f"{self._api_base}/bot{self._token}/{method}"
        response = await self._client.post(url, json=payload, timeout=timeout or self._timeout)
        try:
            body = response.json()
        except ValueError as e:
            raise TelegramError(f"{method}: HTTP {response.status_code}, undecodable body") from e

        if not isinstance(body, dict) or not body.get("ok"):
            description = body.get("description") if isinstance(body, dict) else None
            raise TelegramError(f"{method}: {description or f'HTTP {response.status_code}'}")
        return body.get("result")

    async def send_message(self, chat_id: int, text: str) -> None:
        for chunk in chunk_text(text):
            await self.call(
                "sendMessage",
                {"chat_id": chat_id, "text": chunk, "disable_web_page_preview": True},
            )

    def reply_to(self, chat_id: int) -> Callable[[str], Awaitable[None]]:
        """A send(text) capability bound to one chat."""

        async def send(text: str) -> None:
            await self.send_message(chat_id, text)

        return send

    async def get_updates(self, offset: int | None, timeout: int = 25) -> list[dict[str, Any]]:
        payload: dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message", "edited_message"]}
        if offset is not None:
            payload["offset"] = offset
        result = await self.call("getUpdates", payload, timeout=timeout + self._timeout)
        return result if isinstance(result, list) else []

    async def set_webhook(self, url: str, secret_token: str = "") -> None:
        payload: dict[str, Any] = {"url": url}
        if secret_token:
            payload["secret_token"] = secret_token
        await self.call("setWebhook", payload)
        logger.info("Telegram webhook registered: %s", url)

    async def delete_webhook(self) -> None:
        await self.call("deleteWebhook", {})


class TelegramPoller:
    """Long-polls getUpdates and hands each update to a handler task.

    Handlers run as separate tasks so a slow command never stalls polling.
    Polling errors are logged and retried after `retry_delay` seconds.
    """

    def __init__(
        self,
        api: TelegramClient,
        handler: UpdateHandler,
        long_poll_timeout: int = 25,
        retry_delay: float = 5.0,
    ) -> None:
        self._api = api
        self._handler = handler
        self._long_poll_timeout = long_poll_timeout
        self._retry_delay = retry_delay
        self._offset: int | None = None
        self._task: asyncio.Task | None = None
        self._handlers: set[asyncio.Task] = set()

    async def start(self) -> None:
        self._task = asyncio.create_task(self._poll_loop(), name="telegram-poller")
        logger.info("Telegram poller started")

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        if self._handlers:
            await asyncio.gather(*list(self._handlers), return_exceptions=True)
        logger.info("Telegram poller stopped")

    @property
    def offset(self) -> int | None:
        return self._offset

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self._poll_once()
            except Exception as e:
                logger.error("Telegram getUpdates failed: %s", e)
                await asyncio.sleep(self._retry_delay)
                continue
            # Let handler tasks run between batches
            await asyncio.sleep(0)

    async def _poll_once(self) -> None:
        """Fetch one batch of updates and dispatch them."""
        updates = await self._api.get_updates(self._offset, timeout=self._long_poll_timeout)
        for update in updates:
            update_id = update.get("update_id")
            if isinstance(update_id, int):
                self._offset = update_id + 1
            task = asyncio.create_task(self._run_handler(update))
            self._handlers.add(task)
            task.add_done_callback(self._handlers.discard)

    async def _run_handler(self, update: dict[str, Any]) -> None:
        try:
            await self._handler(update)
        except Exception:
            logger.exception("Handling update %s failed", update.get("update_id"))
