"""
Venue-city geography for travel annotation.

Distance and time-zone change between two venue cities are reported on the
fatigue snapshot for context only; they do not move the fatigue score.
"""
from __future__ import annotations

import math
from typing import Dict, Optional, Tuple

# =============================================================================
# CITY COORDINATES (lat, lon)
# =============================================================================

CITY_LOCATIONS: Dict[str, Tuple[float, float]] = {
    "Albuquerque": (35.0844, -106.6504),
    "Atlanta": (33.7490, -84.3880),
    "Austin": (30.2672, -97.7431),
    "Baltimore": (39.2904, -76.6122),
    "Boston": (42.3601, -71.0589),
    "Charlotte": (35.2271, -80.8431),
    "Chicago": (41.8781, -87.6298),
    "Cincinnati": (39.1031, -84.5120),
    "Cleveland": (41.4993, -81.6944),
    "Colorado Springs": (38.8339, -104.8214),
    "Columbus": (39.9612, -82.9988),
    "Dallas": (32.7767, -96.7970),
    "Denver": (39.7392, -104.9903),
    "Detroit": (42.3314, -83.0458),
    "Fort Worth": (32.7555, -97.3308),
    "Fresno": (36.7378, -119.7871),
    "Houston": (29.7604, -95.3698),
    "Indianapolis": (39.7684, -86.1581),
    "Jacksonville": (30.3322, -81.6557),
    "Kansas City": (39.0997, -94.5786),
    "Las Vegas": (36.1699, -115.1398),
    "Los Angeles": (34.0522, -118.2437),
    "Louisville": (38.2527, -85.7585),
    "Memphis": (35.1495, -90.0490),
    "Mesa": (33.4152, -111.8315),
    "Miami": (25.7617, -80.1918),
    "Milwaukee": (43.0389, -87.9065),
    "Minneapolis": (44.9778, -93.2650),
    "Nashville": (36.1627, -86.7816),
    "New Orleans": (29.9511, -90.0715),
    "New York": (40.7128, -74.0060),
    "Oklahoma City": (35.4676, -97.5164),
    "Omaha": (41.2565, -95.9345),
    "Orlando": (28.5383, -81.3792),
    "Philadelphia": (39.9526, -75.1652),
    "Phoenix": (33.4484, -112.0740),
    "Pittsburgh": (40.4406, -79.9959),
    "Portland": (45.5152, -122.6784),
    "Raleigh": (35.7796, -78.6382),
    "Sacramento": (38.5816, -121.4944),
    "Salt Lake City": (40.7608, -111.8910),
    "San Antonio": (29.4241, -98.4936),
    "San Diego": (32.7157, -117.1611),
    "San Francisco": (37.7749, -122.4194),
    "San Jose": (37.3382, -121.8863),
    "Seattle": (47.6062, -122.3321),
    "Tampa": (27.9506, -82.4572),
    "Tucson": (32.2226, -110.9747),
    "Washington": (38.9072, -77.0369),
}


# =============================================================================
# TIME ZONES (standard-time hours offset from UTC)
# =============================================================================

_EASTERN = ("Atlanta", "Baltimore", "Boston", "Charlotte", "Cincinnati", "Cleveland",
            "Columbus", "Detroit", "Indianapolis", "Jacksonville", "Louisville", "Miami",
            "New York", "Orlando", "Philadelphia", "Pittsburgh", "Raleigh", "Tampa",
            "Washington")
_CENTRAL = ("Austin", "Chicago", "Dallas", "Fort Worth", "Houston", "Kansas City",
            "Memphis", "Milwaukee", "Minneapolis", "Nashville", "New Orleans",
            "Oklahoma City", "Omaha", "San Antonio")
_MOUNTAIN = ("Albuquerque", "Colorado Springs", "Denver", "Mesa", "Phoenix",
             "Salt Lake City", "Tucson")
_PACIFIC = ("Fresno", "Las Vegas", "Los Angeles", "Portland", "Sacramento",
            "San Diego", "San Francisco", "San Jose", "Seattle")

CITY_UTC_OFFSET: Dict[str, int] = {
    **{city: -5 for city in _EASTERN},
    **{city: -6 for city in _CENTRAL},
    **{city: -7 for city in _MOUNTAIN},
    **{city: -8 for city in _PACIFIC},
}

DEFAULT_UTC_OFFSET = -5


def _lookup(city: Optional[str]) -> Optional[str]:
    if not city:
        return None
    needle = city.strip().lower()
    for name in CITY_LOCATIONS:
        if name.lower() == needle:
            return name
    # "Los Angeles, CA" / "Boston Garden" style values
    for name in CITY_LOCATIONS:
        if name.lower() in needle:
            return name
    return None


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points on Earth.

    Args:
        lat1, lon1: Coordinates of first point (degrees)
        lat2, lon2: Coordinates of second point (degrees)

    Returns:
        Distance in miles
    """
    R = 3959  # Earth's radius in miles

    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    return R * 2 * math.asin(math.sqrt(a))


def travel_between(from_city: Optional[str], to_city: Optional[str]) -> Tuple[float, int]:
    """
    (miles, time zones crossed) between two venue cities.

    Unknown or missing cities give (0.0, 0).
    """
    origin = _lookup(from_city)
    destination = _lookup(to_city)
    if origin is None or destination is None:
        return 0.0, 0

    lat1, lon1 = CITY_LOCATIONS[origin]
    lat2, lon2 = CITY_LOCATIONS[destination]
    miles = round(haversine_distance(lat1, lon1, lat2, lon2))
    zones = abs(
        CITY_UTC_OFFSET.get(origin, DEFAULT_UTC_OFFSET)
        - CITY_UTC_OFFSET.get(destination, DEFAULT_UTC_OFFSET)
    )
    return float(miles), zones
