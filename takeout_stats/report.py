"""Per-year report output: statistics workbook and GeoJSON point features."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Protocol

from openpyxl import Workbook

from takeout_stats.models import Activity, Location
from takeout_stats.stats import DayStats

logger = logging.getLogger(__name__)

STATISTICS_HEADERS: Final[tuple[str, ...]] = (
    "Date",
    "Point Count",
    "Total Distance (m)",
    "Active Time (min)",
    "Foot Distance (m)",
    "Bicycle Distance (m)",
    "Vehicle Distance (m)",
    "Vehicle Max Speed (m/s)",
    "Vehicle Avg Speed (m/s)",
    "Vehicle Time (min)",
)


class OutputWriteError(OSError):
    """Raised when a report file cannot be written."""


@dataclass(frozen=True, slots=True)
class YearReport:
    """Everything flushed for one calendar year."""

    year: int
    days: dict[str, DayStats]
    features: list[dict[str, Any]] = field(default_factory=list)


class ReportSink(Protocol):
    def write_year(self, report: YearReport) -> None: ...


def statistics_row(date: str, day: DayStats) -> list[Any]:
    """One workbook row, in ``STATISTICS_HEADERS`` order."""

    return [
        date,
        day.point_count,
        day.total_distance_m,
        day.active_time_min,
        day.foot_distance_m,
        day.bicycle_distance_m,
        day.vehicle_distance_m,
        day.vehicle_max_speed_mps,
        day.vehicle_avg_speed_mps,
        day.vehicle_time_min,
    ]


def format_activities(activities: tuple[Activity, ...]) -> str:
    """Render activity observations as text, e.g. "[WALKING 80, STILL 15]; [IN_CAR 60]"."""

    return "; ".join(
        "[" + ", ".join(f"{a.type} {a.confidence}" for a in obs.activity) + "]" for obs in activities
    )


def location_feature(location: Location) -> dict[str, Any]:
    """GeoJSON point feature for one record."""

    return {
        "type": "Feature",
        "geometry": {
            "type": "Point",
            "coordinates": [location.longitude, location.latitude],
        },
        "properties": {
            "timestamp": location.timestamp.isoformat(),
            "accuracy": location.accuracy,
            "velocity": location.velocity,
            "altitude": location.altitude,
            "activity": format_activities(location.activities),
        },
    }


def write_statistics_xlsx(year: int, days: dict[str, DayStats], out_dir: str | Path) -> Path:
    """Write Statistics_<year>.xlsx with one row per date (first-seen order).

    Raises:
        OutputWriteError: If the file cannot be written.
    """

    out = Path(out_dir) / f"Statistics_{year}.xlsx"
    wb = Workbook(write_only=True)
    ws = wb.create_sheet(f"Statistics_{year}")
    ws.append(list(STATISTICS_HEADERS))
    for date, day in days.items():
        ws.append(statistics_row(date, day))
    try:
        wb.save(out)
    except OSError as exc:
        raise OutputWriteError(f"无法写入：{out}") from exc
    return out


def write_geojson(year: int, features: list[dict[str, Any]], out_dir: str | Path) -> Path:
    """Write Locations_<year>.geojson as a FeatureCollection.

    Raises:
        OutputWriteError: If the file cannot be written.
    """

    out = Path(out_dir) / f"Locations_{year}.geojson"
    collection = {"type": "FeatureCollection", "features": features}
    try:
        with out.open("w", encoding="utf-8") as f:
            json.dump(collection, f, ensure_ascii=False)
    except OSError as exc:
        raise OutputWriteError(f"无法写入：{out}") from exc
    return out


class FileReportSink:
    """Writes each flushed year to ``output_dir``."""

    def __init__(self, output_dir: str | Path, *, write_geojson: bool = True) -> None:
        self._out_dir = Path(output_dir)
        self._write_geojson = write_geojson
        self.written: list[Path] = []

    def write_year(self, report: YearReport) -> None:
        try:
            self._out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputWriteError(f"无法创建输出目录：{self._out_dir}") from exc

        path = write_statistics_xlsx(report.year, report.days, self._out_dir)
        self.written.append(path)
        logger.info("已导出 %s（%s 天）", path, len(report.days))

        if self._write_geojson:
            path = write_geojson(report.year, report.features, self._out_dir)
            self.written.append(path)
            logger.info("已导出 %s（%s 个点）", path, len(report.features))


class CollectingSink:
    """Keeps flushed reports in memory."""

    def __init__(self) -> None:
        self.reports: list[YearReport] = []

    def write_year(self, report: YearReport) -> None:
        self.reports.append(report)

    def by_year(self) -> dict[int, YearReport]:
        return {r.year: r for r in self.reports}
