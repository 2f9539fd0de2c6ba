"""Single pass over the records: distances, per-day stats and yearly flushes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from time import perf_counter
from typing import Any, Iterable

from takeout_stats.geo import plausible_distance_m
from takeout_stats.models import LOCATIONS_KEY, Location
from takeout_stats.reader import DEFAULT_CHUNK_SIZE, DecodedElement, log_decode_error, read_locations
from takeout_stats.report import ReportSink, YearReport, location_feature
from takeout_stats.stats import DailyStatistics
from takeout_stats.timeutils import local_date, tzinfo_from_name, whole_minutes

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RunSummary:
    """Counters for one processing run."""

    records: int = 0
    skipped: int = 0
    rejected_pairs: int = 0
    years: list[int] = field(default_factory=list)
    elapsed_seconds: float = 0.0


def process_locations(
    locations: Iterable[Location],
    sink: ReportSink,
    *,
    tz_name: str | None = None,
    collect_features: bool = True,
    summary: RunSummary | None = None,
) -> RunSummary:
    """Aggregate records into per-day statistics and flush them to ``sink`` per year.

    Dates and years are local calendar dates of each record's timestamp in
    ``tz_name`` (None = system local zone). The distance between a record and its
    immediate predecessor is attributed to the record's own date; a year change
    flushes the previous year before the new record is counted.

    Args:
        locations: Records in document order.
        sink: Receives one YearReport per year.
        tz_name: IANA timezone name for the calendar date.
        collect_features: Also buffer one GeoJSON feature per record.
        summary: Existing summary to fill in (used by process_file).

    Returns:
        RunSummary.
    """

    started = perf_counter()
    tz = tzinfo_from_name(tz_name)
    summary = summary if summary is not None else RunSummary()
    statistics = DailyStatistics()
    features: list[dict[str, Any]] = []
    current_year: int | None = None
    prev: Location | None = None

    def flush(year: int) -> None:
        sink.write_year(YearReport(year=year, days=statistics.snapshot(), features=list(features)))
        summary.years.append(year)
        logger.info("%s 年：%s 天", year, len(statistics))
        statistics.clear()
        features.clear()

    for loc in locations:
        summary.records += 1
        day = local_date(loc.timestamp, tz)
        if current_year != day.year:
            if current_year is not None:
                flush(current_year)
            current_year = day.year

        date = day.isoformat()
        if prev is None:
            statistics.count_point(date)
        else:
            distance = plausible_distance_m(
                prev.longitude,
                prev.latitude,
                loc.longitude,
                loc.latitude,
                prev.timestamp,
                loc.timestamp,
            )
            if distance is None:
                summary.rejected_pairs += 1
                statistics.count_point(date)
            else:
                statistics.update(date, loc, distance, whole_minutes(loc.timestamp - prev.timestamp))

        if collect_features:
            features.append(location_feature(loc))
        prev = loc

    if current_year is not None:
        flush(current_year)

    summary.elapsed_seconds += perf_counter() - started
    return summary


def process_file(
    path: str | Path,
    sink: ReportSink,
    *,
    tz_name: str | None = None,
    collect_features: bool = True,
    key: str = LOCATIONS_KEY,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> RunSummary:
    """Stream ``path`` through process_locations.

    Elements that fail to decode are logged and counted in ``RunSummary.skipped``.

    Raises:
        SourceNotFound: If the input cannot be opened. Nothing is written in that case.
    """

    summary = RunSummary()

    def on_error(element: DecodedElement) -> None:
        summary.skipped += 1
        log_decode_error(element)

    locations = read_locations(path, key=key, chunk_size=chunk_size, on_error=on_error)
    process_locations(
        locations,
        sink,
        tz_name=tz_name,
        collect_features=collect_features,
        summary=summary,
    )
    if summary.skipped > 0:
        logger.warning("有 %s 个元素解析失败已跳过", summary.skipped)
    return summary
