"""Geographic value objects: points and bounding boxes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ...core.exceptions import InvalidBoundingBoxError, InvalidLocationError


@dataclass(frozen=True)
class GeoPoint:
    """A WGS84 point stored as (longitude, latitude)."""

    lon: float
    lat: float

    def __post_init__(self) -> None:
        if not -180.0 <= self.lon <= 180.0:
            raise InvalidLocationError(f"Longitude {self.lon} is outside [-180, 180]")
        if not -90.0 <= self.lat <= 90.0:
            raise InvalidLocationError(f"Latitude {self.lat} is outside [-90, 90]")

    @classmethod
    def from_coordinates(cls, coordinates: Sequence[float]) -> GeoPoint:
        """Build a point from a ``[lon, lat]`` pair.

        Raises:
            InvalidLocationError: If the pair is malformed or out of range
        """
        if coordinates is None or isinstance(coordinates, (str, bytes)) or len(coordinates) != 2:
            raise InvalidLocationError("Coordinates must be a [lon, lat] pair")
        try:
            lon, lat = (float(value) for value in coordinates)
        except (TypeError, ValueError) as e:
            raise InvalidLocationError("Coordinates must be numeric") from e
        return cls(lon=lon, lat=lat)

    def to_list(self) -> list[float]:
        return [self.lon, self.lat]


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box ``minLon,minLat,maxLon,maxLat``; edges are inclusive."""

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    def __post_init__(self) -> None:
        try:
            GeoPoint(self.min_lon, self.min_lat)
            GeoPoint(self.max_lon, self.max_lat)
        except InvalidLocationError as e:
            raise InvalidBoundingBoxError(f"Bounding box corner out of range: {e.message}") from e
        if self.min_lon > self.max_lon or self.min_lat > self.max_lat:
            raise InvalidBoundingBoxError("Bounding box minimum corner must not exceed its maximum corner")

    @classmethod
    def parse(cls, raw: str | None) -> BoundingBox:
        """Parse the ``bbox`` query parameter.

        Args:
            raw: Comma separated ``minLon,minLat,maxLon,maxLat``

        Returns:
            BoundingBox: The parsed box

        Raises:
            InvalidBoundingBoxError: If the value is missing, not four numbers,
                out of range or inverted
        """
        if raw is None or not raw.strip():
            raise InvalidBoundingBoxError("bbox is required as minLon,minLat,maxLon,maxLat")
        parts = [part.strip() for part in raw.split(",")]
        if len(parts) != 4:
            raise InvalidBoundingBoxError("bbox must contain exactly 4 numbers: minLon,minLat,maxLon,maxLat")
        try:
            values = [float(part) for part in parts]
        except ValueError as e:
            raise InvalidBoundingBoxError("bbox must contain exactly 4 numbers: minLon,minLat,maxLon,maxLat") from e
        return cls(*values)

    @classmethod
    def from_tuple(cls, values: Sequence[float]) -> BoundingBox:
        return cls(*(float(value) for value in values))

    def contains(self, point: GeoPoint) -> bool:
        return self.min_lon <= point.lon <= self.max_lon and self.min_lat <= point.lat <= self.max_lat

    def to_query_param(self) -> str:
        """Format the box the way the traffic feed expects it."""
        return f"{self.min_lon},{self.min_lat},{self.max_lon},{self.max_lat}"
