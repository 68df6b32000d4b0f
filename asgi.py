"""
ASGI entry point.

Run with:
    uvicorn asgi:app --reload
"""

from app import create_app
from config import AppSettings
from shared.logging import setup_logging

settings = AppSettings()
setup_logging(settings.logging, settings.sentry)

app = create_app(settings)
