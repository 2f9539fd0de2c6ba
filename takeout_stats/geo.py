"""Distances between consecutive samples and the implausible-jump filter."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Final

from takeout_stats.timeutils import whole_seconds


EARTH_RADIUS_M: Final[float] = 6_371_000.0
MAX_PLAUSIBLE_SPEED_KMH: Final[float] = 1200.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters on a sphere of radius ``EARTH_RADIUS_M``.

    Takes latitude first. plausible_distance_m takes longitude first (the order of
    the record pair) and swaps when calling this. Coordinates are decimal degrees,
    i.e. ``Location.latitude`` rather than the raw E7 integers.
    """

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    h = (
        math.sin((phi2 - phi1) / 2.0) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(math.radians(lon2 - lon1) / 2.0) ** 2
    )
    # h can drift past 1.0 for antipodal points
    return 2.0 * EARTH_RADIUS_M * math.asin(math.sqrt(min(h, 1.0)))


def plausible_distance_m(
    lon1: float,
    lat1: float,
    lon2: float,
    lat2: float,
    t1: datetime,
    t2: datetime,
) -> float | None:
    """Distance between two consecutive samples, or None if the jump is implausible.

    The implied speed is distance / whole elapsed seconds. When it exceeds
    ``MAX_PLAUSIBLE_SPEED_KMH`` the pair is treated as sensor noise and rejected.
    If elapsed time is zero or negative the speed check is skipped.

    Returns:
        Distance in meters, or None if rejected.
    """

    distance = haversine_m(lat1, lon1, lat2, lon2)
    elapsed_s = whole_seconds(t2 - t1)
    if elapsed_s > 0:
        speed_kmh = distance / elapsed_s * 3.6
        if speed_kmh > MAX_PLAUSIBLE_SPEED_KMH:
            return None
    return distance
