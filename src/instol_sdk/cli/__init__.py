"""Command line interface entrypoint for the instol SDK."""

from __future__ import annotations
from .app import app, main


__all__ = ["app", "main"]
