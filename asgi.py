"""
asgi.py -- Process entry point for Quill.

The only place the app is built from the environment. Everything below it
receives Settings explicitly via create_app().

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app
from core.config import get_settings

app = create_app(get_settings())
