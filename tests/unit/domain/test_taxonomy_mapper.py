"""Unit tests for the feed code to incident taxonomy mapping."""

import pytest

from traffic_incidents.domain.enums import IncidentType, Severity
from traffic_incidents.domain.services import TaxonomyMapper
from traffic_incidents.domain.services.taxonomy_mapper import CATEGORY_TYPES


@pytest.fixture
def mapper():
    return TaxonomyMapper()


class TestCategoryMapping:
    """Icon category to incident type."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            (1, IncidentType.ACCIDENT),
            (2, IncidentType.CONGESTION),
            (3, IncidentType.ROAD_CLOSED),
            (4, IncidentType.ROADWORKS),
            (5, IncidentType.HAZARD),
            (6, IncidentType.POLICE),
            (7, IncidentType.ACCIDENT),
            (8, IncidentType.ROAD_CLOSED),
            (9, IncidentType.ROADWORKS),
            (10, IncidentType.HAZARD),
            (11, IncidentType.POLICE),
            (12, IncidentType.CONGESTION),
        ],
    )
    def test_documented_codes(self, mapper, code, expected):
        incident_type, _ = mapper.map(code, 2)
        assert incident_type is expected

    def test_every_documented_code_is_mapped(self):
        assert set(CATEGORY_TYPES) == set(range(1, 13))

    @pytest.mark.parametrize("code", [0, 13, 14, -1, 999, None, "abc", 1.5, True, [1], {"code": 1}])
    def test_unknown_codes_fall_back_to_hazard(self, mapper, code):
        incident_type, _ = mapper.map(code, 2)
        assert incident_type is IncidentType.HAZARD

    def test_numeric_strings_are_accepted(self, mapper):
        assert mapper.map("9", "3") == (IncidentType.ROADWORKS, Severity.HIGH)

    def test_integral_floats_are_accepted(self, mapper):
        assert mapper.map(6.0, 5.0) == (IncidentType.POLICE, Severity.SEVERE)


class TestMagnitudeMapping:
    """Magnitude of delay to severity."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            (0, Severity.LOW),
            (1, Severity.LOW),
            (2, Severity.MODERATE),
            (3, Severity.HIGH),
            (4, Severity.SEVERE),
        ],
    )
    def test_documented_codes(self, mapper, code, expected):
        _, severity = mapper.map(1, code)
        assert severity is expected

    @pytest.mark.parametrize("code", [None, 42, "major"])
    def test_unknown_codes_fall_back_to_moderate(self, mapper, code):
        _, severity = mapper.map(1, code)
        assert severity is Severity.MODERATE

    def test_fields_fall_back_independently(self, mapper):
        assert mapper.map(None, 3) == (IncidentType.HAZARD, Severity.HIGH)
        assert mapper.map(1, None) == (IncidentType.ACCIDENT, Severity.MODERATE)

    def test_both_missing(self, mapper):
        assert mapper.map(None, None) == (IncidentType.HAZARD, Severity.MODERATE)
