"""HTTP middleware."""

from .cors import configure_cors

__all__ = ["configure_cors"]
