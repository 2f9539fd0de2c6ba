"""Tests for workbook/GeoJSON report output."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from openpyxl import load_workbook

from conftest import make_location
from takeout_stats.report import (
    STATISTICS_HEADERS,
    CollectingSink,
    FileReportSink,
    OutputWriteError,
    YearReport,
    format_activities,
    location_feature,
    write_statistics_xlsx,
)
from takeout_stats.stats import DayStats


def _days() -> dict[str, DayStats]:
    return {
        "2024-03-02": DayStats(point_count=3, total_distance_m=1500.5, active_time_min=12, foot_distance_m=800.0),
        "2024-03-01": DayStats(
            point_count=1,
            total_distance_m=20000.0,
            vehicle_distance_m=20000.0,
            vehicle_max_speed_mps=25.0,
            vehicle_avg_speed_mps=17.5,
            vehicle_time_min=20,
        ),
    }


@pytest.mark.unit
class TestWorkbook:
    def test_layout_and_row_order(self, tmp_path: Path) -> None:
        path = write_statistics_xlsx(2024, _days(), tmp_path)
        assert path.name == "Statistics_2024.xlsx"

        wb = load_workbook(path)
        assert wb.sheetnames == ["Statistics_2024"]
        rows = list(wb["Statistics_2024"].iter_rows(values_only=True))
        assert rows[0] == STATISTICS_HEADERS
        assert rows[1] == ("2024-03-02", 3, 1500.5, 12, 800.0, 0, 0, 0, 0, 0)
        assert rows[2] == ("2024-03-01", 1, 20000, 0, 0, 0, 20000, 25, 17.5, 20)
        assert len(rows) == 3

    def test_unwritable_directory(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(OutputWriteError):
            write_statistics_xlsx(2024, _days(), blocker)


@pytest.mark.unit
class TestFeatures:
    def test_location_feature(self) -> None:
        loc = make_location(
            "2024-03-01T10:00:00Z",
            lat_e7=525200000,
            lon_e7=134050000,
            activity=[("WALKING", 80), ("STILL", 15)],
            velocity=2,
            altitude=35,
        )
        feature = location_feature(loc)
        assert feature["geometry"] == {"type": "Point", "coordinates": [13.405, 52.52]}
        assert feature["properties"] == {
            "timestamp": "2024-03-01T10:00:00+00:00",
            "accuracy": 10,
            "velocity": 2,
            "altitude": 35,
            "activity": "[WALKING 80, STILL 15]",
        }

    def test_format_activities_empty(self) -> None:
        assert format_activities(()) == ""


@pytest.mark.unit
class TestSinks:
    def test_file_sink_creates_directory_and_files(self, tmp_path: Path) -> None:
        out = tmp_path / "a" / "b"
        sink = FileReportSink(out)
        feature = location_feature(make_location())
        sink.write_year(YearReport(year=2023, days=_days(), features=[feature]))

        assert [p.name for p in sink.written] == ["Statistics_2023.xlsx", "Locations_2023.geojson"]
        collection = json.loads((out / "Locations_2023.geojson").read_text(encoding="utf-8"))
        assert collection["type"] == "FeatureCollection"
        assert collection["features"] == [feature]

    def test_file_sink_without_geojson(self, tmp_path: Path) -> None:
        sink = FileReportSink(tmp_path, write_geojson=False)
        sink.write_year(YearReport(year=2023, days=_days()))
        assert [p.name for p in sink.written] == ["Statistics_2023.xlsx"]
        assert not (tmp_path / "Locations_2023.geojson").exists()

    def test_file_sink_output_dir_is_a_file(self, tmp_path: Path) -> None:
        blocker = tmp_path / "out"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(OutputWriteError):
            FileReportSink(blocker).write_year(YearReport(year=2023, days=_days()))

    def test_collecting_sink(self) -> None:
        sink = CollectingSink()
        sink.write_year(YearReport(year=2022, days={}))
        sink.write_year(YearReport(year=2023, days=_days()))
        assert list(sink.by_year()) == [2022, 2023]
