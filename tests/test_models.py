"""Tests for Location.from_json and timestamp parsing."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from conftest import make_raw
from takeout_stats.models import Location, RecordDecodeError
from takeout_stats.timeutils import local_date, parse_timestamp, tzinfo_from_name, whole_minutes


@pytest.mark.unit
class TestLocationFromJson:
    def test_required_fields(self) -> None:
        loc = Location.from_json(make_raw("2024-03-01T10:00:00.123Z", lat_e7=525200000, lon_e7=-134050000))
        assert loc.latitude == pytest.approx(52.52)
        assert loc.longitude == pytest.approx(-13.405)
        assert loc.accuracy == 10
        assert loc.source == "GPS"
        assert loc.device_tag == 42
        assert loc.timestamp == datetime(2024, 3, 1, 10, 0, 0, 123000, tzinfo=UTC)
        assert loc.activities == ()
        assert loc.velocity is None

    def test_optional_fields(self) -> None:
        raw = make_raw(
            activity=[("WALKING", 80), ("STILL", 10)],
            velocity=3,
            altitude=120,
            verticalAccuracy=4,
            platformType="ANDROID",
            osLevel=33,
            serverTimestamp="2024-03-01T10:00:05Z",
            deviceTimestamp="2024-03-01T10:00:01Z",
            batteryCharging=False,
            formFactor="PHONE",
            locationMetadata=[
                {
                    "timestamp": "2024-03-01T10:00:00Z",
                    "wifiScan": {"accessPoints": [{"mac": 1234567, "strength": -60, "frequencyMhz": 2437}]},
                },
                {"timestamp": "2024-03-01T10:00:00Z"},
            ],
            inferredLocation=[
                {"timestamp": "2024-03-01T09:59:00Z", "latitudeE7": 1, "longitudeE7": 2, "accuracy": 30}
            ],
        )
        loc = Location.from_json(raw)
        assert [(a.type, a.confidence) for a in loc.activities[0].activity] == [("WALKING", 80), ("STILL", 10)]
        assert loc.velocity == 3
        assert loc.altitude == 120
        assert loc.vertical_accuracy == 4
        assert loc.platform_type == "ANDROID"
        assert loc.os_level == 33
        assert loc.server_timestamp == datetime(2024, 3, 1, 10, 0, 5, tzinfo=UTC)
        assert loc.battery_charging is False
        assert loc.form_factor == "PHONE"
        scan = loc.location_metadata[0].wifi_scan
        assert scan is not None
        assert scan.access_points[0].mac == "1234567"
        assert scan.access_points[0].frequency_mhz == 2437
        assert loc.location_metadata[1].wifi_scan is None
        assert loc.inferred_location[0].accuracy == 30

    @pytest.mark.parametrize("missing", ["latitudeE7", "longitudeE7", "accuracy", "source", "deviceTag", "timestamp"])
    def test_missing_required_field(self, missing: str) -> None:
        raw = make_raw()
        del raw[missing]
        with pytest.raises(RecordDecodeError):
            Location.from_json(raw)

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("latitudeE7", "525200000"),
            ("latitudeE7", 52.52),
            ("accuracy", True),
            ("source", 5),
            ("timestamp", "yesterday"),
            ("velocity", "fast"),
            ("activity", {"type": "WALKING"}),
            ("batteryCharging", "yes"),
        ],
    )
    def test_wrong_type(self, key: str, value: object) -> None:
        raw = make_raw()
        raw[key] = value
        with pytest.raises(RecordDecodeError):
            Location.from_json(raw)

    def test_not_an_object(self) -> None:
        with pytest.raises(RecordDecodeError):
            Location.from_json([1, 2, 3])

    def test_legacy_timestamp_ms(self) -> None:
        raw = make_raw()
        del raw["timestamp"]
        raw["timestampMs"] = "1709287200000"
        loc = Location.from_json(raw)
        assert loc.timestamp == datetime(2024, 3, 1, 10, 0, 0, tzinfo=UTC)

    def test_null_optionals_are_unset(self) -> None:
        loc = Location.from_json(make_raw(velocity=None, activity=None, altitude=None))
        assert loc.velocity is None
        assert loc.altitude is None

    def test_records_are_immutable(self) -> None:
        loc = Location.from_json(make_raw())
        with pytest.raises(AttributeError):
            loc.accuracy = 5  # type: ignore[misc]


@pytest.mark.unit
class TestTimeutils:
    def test_offset_preserved(self) -> None:
        dt = parse_timestamp("2024-03-01T10:00:00+02:00")
        assert dt.utcoffset() == timedelta(hours=2)

    def test_naive_is_utc(self) -> None:
        assert parse_timestamp("2024-03-01T10:00:00") == datetime(2024, 3, 1, 10, tzinfo=UTC)

    def test_local_date_crosses_midnight(self) -> None:
        dt = parse_timestamp("2023-12-31T20:00:00Z")
        assert local_date(dt, timezone(timedelta(hours=8))).isoformat() == "2024-01-01"
        assert local_date(dt, UTC).isoformat() == "2023-12-31"

    def test_invalid_tz_name(self) -> None:
        with pytest.raises(ValueError):
            tzinfo_from_name("Not/AZone")

    def test_whole_minutes_truncates(self) -> None:
        assert whole_minutes(timedelta(minutes=9, seconds=59)) == 9
        assert whole_minutes(timedelta(seconds=-90)) == -1

    @pytest.mark.parametrize(
        "value",
        ["0001-01-01T00:30:00+01:00", "0001-01-01T12:00:00Z", "9999-12-31T20:00:00Z", "9999-12-31T23:59:59-05:00"],
    )
    def test_instants_without_a_date_in_every_zone(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_timestamp(value)
        with pytest.raises(RecordDecodeError):
            Location.from_json(make_raw(value))

    def test_instants_near_the_edges_still_have_dates(self) -> None:
        early = parse_timestamp("0001-01-03T00:00:00Z")
        late = parse_timestamp("9999-12-29T23:00:00Z")
        assert local_date(early, timezone(timedelta(hours=-12))).isoformat() == "0001-01-02"
        assert local_date(late, timezone(timedelta(hours=14))).isoformat() == "9999-12-30"

    def test_legacy_timestamp_ms_out_of_range(self) -> None:
        raw = make_raw()
        del raw["timestamp"]
        raw["timestampMs"] = str(10**20)
        with pytest.raises(RecordDecodeError):
            Location.from_json(raw)
