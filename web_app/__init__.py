"""FastAPI web layer for the go links registry."""

from .app_factory import create_app

__all__ = ["create_app"]
