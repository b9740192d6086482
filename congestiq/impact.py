"""Deterministic weather-to-traffic classification and unit helpers.

Everything here is a pure function of its arguments. The impact tier depends
on the provider condition code alone, never on temperature, wind or any other
observed field.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

from congestiq.domain import TrafficImpact

DEFAULT_CONDITION_CODE = 800  # "clear sky"
DEFAULT_VISIBILITY_METERS = 10000
METERS_PER_MILE = 1609.34

# (low, high, description, level); ranges are half-open [low, high), first match wins.
IMPACT_TABLE: Tuple[Tuple[int, int, str, int], ...] = (
    (200, 300, "Severe - Thunderstorm", 3),
    (300, 400, "Light - Drizzle", 1),
    (500, 502, "Moderate - Rain", 1),
    (502, 600, "Heavy - Rain", 2),
    (600, 700, "Severe - Snow", 3),
    (700, 800, "Moderate - Low Visibility", 2),
)
NO_IMPACT = ("None", 0)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves up (72.5 -> 73, unlike round())."""
    return int(math.floor(value + 0.5))


def classify_impact(code: int) -> TrafficImpact:
    """Map a weather condition code to its traffic-impact tier."""
    for low, high, description, level in IMPACT_TABLE:
        if low <= code < high:
            return TrafficImpact(description=description, level=level)
    description, level = NO_IMPACT
    return TrafficImpact(description=description, level=level)


def meters_to_miles(meters: float) -> int:
    """Convert a visibility distance in meters to whole miles."""
    return round_half_up(meters / METERS_PER_MILE)


def visibility_miles(raw_meters: Optional[float]) -> int:
    """Default a missing visibility to 10 km, then convert (10 km -> 6 mi)."""
    return meters_to_miles(raw_meters or DEFAULT_VISIBILITY_METERS)

