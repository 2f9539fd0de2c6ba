"""Per-day movement statistics accumulated in a single pass."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Final, Iterator

from takeout_stats.models import Location


CONFIDENCE_THRESHOLD: Final[int] = 50

FOOT_TYPES: Final[frozenset[str]] = frozenset({"ON_FOOT", "WALKING", "RUNNING"})
BICYCLE_TYPES: Final[frozenset[str]] = frozenset({"ON_BICYCLE"})
VEHICLE_TYPES: Final[frozenset[str]] = frozenset({"IN_VEHICLE", "IN_CAR", "IN_BUS"})


@dataclass(frozen=True, slots=True)
class DayStats:
    """Statistics of one calendar day. The default instance is the zero value."""

    point_count: int = 0
    total_distance_m: float = 0.0
    active_time_min: int = 0
    foot_distance_m: float = 0.0
    bicycle_distance_m: float = 0.0
    vehicle_distance_m: float = 0.0
    vehicle_max_speed_mps: float = 0.0
    vehicle_avg_speed_mps: float = 0.0
    vehicle_time_min: int = 0


ZERO_DAY: Final[DayStats] = DayStats()


def classify(location: Location) -> str | None:
    """Return "foot", "bicycle" or "vehicle" for the first confident recognised activity.

    Observations and their classifications are scanned in document order; the
    first pair with confidence above the threshold and a known type decides.
    Confident pairs of unknown types (e.g. STILL) are passed over.
    """

    for observation in location.activities:
        for act in observation.activity:
            if act.confidence <= CONFIDENCE_THRESHOLD:
                continue
            if act.type in FOOT_TYPES:
                return "foot"
            if act.type in BICYCLE_TYPES:
                return "bicycle"
            if act.type in VEHICLE_TYPES:
                return "vehicle"
    return None


class DailyStatistics:
    """Accumulates DayStats keyed by "YYYY-MM-DD", in first-seen date order."""

    def __init__(self) -> None:
        self._days: dict[str, DayStats] = {}

    def __len__(self) -> int:
        return len(self._days)

    def __contains__(self, date: object) -> bool:
        return date in self._days

    @property
    def dates(self) -> Iterator[str]:
        return iter(self._days)

    def get(self, date: str) -> DayStats:
        """Stats for ``date``; the zero value if nothing was recorded (not inserted)."""

        return self._days.get(date, ZERO_DAY)

    def count_point(self, date: str) -> None:
        """Count a point that has no usable distance to its predecessor."""

        day = self.get(date)
        self._days[date] = replace(day, point_count=day.point_count + 1)

    def update(self, date: str, location: Location, distance_m: float, elapsed_min: int) -> None:
        """Add one point and the movement since the previous point.

        Args:
            date: Local calendar date "YYYY-MM-DD" of ``location``.
            location: The current record; its activities decide the travel mode.
            distance_m: Distance from the previous record in meters.
            elapsed_min: Whole minutes since the previous record.
        """

        day = self.get(date)
        day = replace(
            day,
            point_count=day.point_count + 1,
            total_distance_m=day.total_distance_m + distance_m,
        )

        mode = classify(location)
        if mode == "foot":
            day = replace(
                day,
                foot_distance_m=day.foot_distance_m + distance_m,
                active_time_min=day.active_time_min + elapsed_min,
            )
        elif mode == "bicycle":
            day = replace(
                day,
                bicycle_distance_m=day.bicycle_distance_m + distance_m,
                active_time_min=day.active_time_min + elapsed_min,
            )
        elif mode == "vehicle":
            velocity = float(location.velocity or 0)
            vehicle_time = day.vehicle_time_min + elapsed_min
            avg = day.vehicle_avg_speed_mps
            # Count-weighted running mean: vehicle minutes stand in for the number of updates.
            if vehicle_time != 0:
                avg = (avg * (vehicle_time - 1) + velocity) / vehicle_time
            day = replace(
                day,
                vehicle_distance_m=day.vehicle_distance_m + distance_m,
                vehicle_time_min=vehicle_time,
                vehicle_max_speed_mps=max(day.vehicle_max_speed_mps, velocity),
                vehicle_avg_speed_mps=avg,
            )

        self._days[date] = day

    def snapshot(self) -> dict[str, DayStats]:
        """Copy of all days in first-seen order. Values are immutable."""

        return dict(self._days)

    def clear(self) -> None:
        """Forget all days (year rollover)."""

        self._days.clear()
