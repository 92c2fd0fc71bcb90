"""Domain value objects."""

from .location import BoundingBox, GeoPoint

__all__ = ["BoundingBox", "GeoPoint"]
