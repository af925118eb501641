"""NOPE-bot: Telegram alerts when a ticker's NOPE crosses a threshold."""

__version__ = "0.1.0"
