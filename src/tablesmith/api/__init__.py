"""HTTP API for TableSmith."""

from .app import create_app

__all__ = ["create_app"]
