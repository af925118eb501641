"""Served application instance.

Run with:  fastapi run backend/nopebot/asgi.py
"""

from .config import configure_logging, load_settings
from .main import create_app

settings = load_settings()
configure_logging(settings.log_level)
app = create_app(settings)
