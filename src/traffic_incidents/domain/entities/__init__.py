"""Domain entities."""

from .incident import Incident

__all__ = ["Incident"]
