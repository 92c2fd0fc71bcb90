"""Domain services."""

from .geo_matcher import GeoMatcher, LinearGeoMatcher, RepositoryGeoMatcher
from .taxonomy_mapper import TaxonomyMapper

__all__ = ["GeoMatcher", "LinearGeoMatcher", "RepositoryGeoMatcher", "TaxonomyMapper"]
