"""Traffic incidents service: vendor feed ingestion, user reports and bounding-box queries."""

__version__ = "0.1.0"
