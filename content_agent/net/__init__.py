"""Networking utilities for resilient HTTP access."""

from .http import retry_session

__all__ = ["retry_session"]
