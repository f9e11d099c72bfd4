"""REST front end (FastAPI)."""

from .main import create_app

__all__ = ["create_app"]
