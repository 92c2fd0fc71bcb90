"""Translation of traffic feed codes into the internal incident taxonomy."""

from __future__ import annotations

from typing import Any

import structlog

from ..enums import IncidentType, Severity

logger = structlog.get_logger(__name__)

# Feed icon categories; 0 (unknown) and anything undocumented use the default
CATEGORY_TYPES: dict[int, IncidentType] = {
    1: IncidentType.ACCIDENT,
    2: IncidentType.CONGESTION,
    3: IncidentType.ROAD_CLOSED,
    4: IncidentType.ROADWORKS,
    5: IncidentType.HAZARD,
    6: IncidentType.POLICE,
    7: IncidentType.ACCIDENT,
    8: IncidentType.ROAD_CLOSED,
    9: IncidentType.ROADWORKS,
    10: IncidentType.HAZARD,
    11: IncidentType.POLICE,
    12: IncidentType.CONGESTION,
}

# Feed magnitude of delay; 4 is "undefined" and is sent for closures
MAGNITUDE_SEVERITIES: dict[int, Severity] = {
    0: Severity.LOW,
    1: Severity.LOW,
    2: Severity.MODERATE,
    3: Severity.HIGH,
    4: Severity.SEVERE,
    5: Severity.SEVERE,
}

DEFAULT_TYPE = IncidentType.HAZARD
DEFAULT_SEVERITY = Severity.MODERATE


class TaxonomyMapper:
    """Pure lookup from feed ``(iconCategory, magnitudeOfDelay)`` to ``(IncidentType, Severity)``.

    Never raises: anything outside the documented code range falls back to
    ``(hazard, moderate)`` field by field.
    """

    def map(self, category_code: Any, magnitude_code: Any) -> tuple[IncidentType, Severity]:
        category = _as_code(category_code)
        magnitude = _as_code(magnitude_code)

        incident_type = CATEGORY_TYPES.get(category, DEFAULT_TYPE) if category is not None else DEFAULT_TYPE
        severity = MAGNITUDE_SEVERITIES.get(magnitude, DEFAULT_SEVERITY) if magnitude is not None else DEFAULT_SEVERITY

        if category not in CATEGORY_TYPES or magnitude not in MAGNITUDE_SEVERITIES:
            logger.debug(
                "Unmapped feed code, using default",
                category_code=category_code,
                magnitude_code=magnitude_code,
                incident_type=incident_type.value,
                severity=severity.value,
            )
        return incident_type, severity


def _as_code(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None
