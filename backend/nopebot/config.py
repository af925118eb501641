"""Environment-driven settings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .tracking.nopechart_client import DEFAULT_BASE_URL
from .tracking.symbols import DEFAULT_SYMBOLS

logger = logging.getLogger(__name__)


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring malformed %s=%r, using %s", name, raw, default)
        return default
    return value if value > 0 else default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name)
    if not raw:
        return default
    items = tuple(token.strip().upper() for token in raw.split(",") if token.strip())
    return items or default


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    log_level: str = "INFO"

    telegram_token: str = ""
    telegram_mode: str = "polling"  # "polling" | "webhook"
    telegram_webhook_url: str = ""
    telegram_webhook_secret: str = ""

    data_source: str = "nopechart"  # "nopechart" | "simulator"
    nope_base_url: str = DEFAULT_BASE_URL
    poll_interval: float = 30.0
    http_timeout: float = 10.0
    symbols: tuple[str, ...] = DEFAULT_SYMBOLS
    verbose: bool = False


def load_settings() -> Settings:
    """Build Settings from the environment.

    Outside production a .env file is read first. Variables already set in
    the real environment win.
    """
    environment = _env("APP_ENV", "development").lower()
    if environment != "production":
        load_dotenv(override=False)

    return Settings(
        environment=environment,
        log_level=_env("LOG_LEVEL", "INFO").upper(),
        telegram_token=_env("TELEGRAM_TOKEN"),
        telegram_mode=_env("TELEGRAM_MODE", "polling").lower(),
        telegram_webhook_url=_env("TELEGRAM_WEBHOOK_URL"),
        telegram_webhook_secret=_env("TELEGRAM_WEBHOOK_SECRET"),
        data_source=_env("NOPE_DATA_SOURCE", "nopechart").lower(),
        nope_base_url=_env("NOPE_BASE_URL", DEFAULT_BASE_URL) or DEFAULT_BASE_URL,
        poll_interval=_env_float("NOPE_POLL_INTERVAL", 30.0),
        http_timeout=_env_float("NOPE_HTTP_TIMEOUT", 10.0),
        symbols=_env_list("NOPE_SYMBOLS", DEFAULT_SYMBOLS),
        verbose=_env_bool("NOPE_VERBOSE"),
    )


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        force=True,
    )
    # httpx logs every request at INFO, including the bot token in the URL
    logging.getLogger("httpx").setLevel(logging.WARNING)
