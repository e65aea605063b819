"""Hybrid Recommendation API: use uvicorn rec_server:app."""

from .app import create_app

app = create_app()

__all__ = ["app", "create_app"]
