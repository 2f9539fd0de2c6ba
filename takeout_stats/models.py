"""Data models for location history records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Final

from takeout_stats.timeutils import parse_timestamp


DEFAULT_INPUT: Final[str] = "Records.json"
LOCATIONS_KEY: Final[str] = "locations"


class RecordDecodeError(ValueError):
    """Raised when one JSON object cannot be turned into a Location."""


def _require(obj: dict[str, Any], key: str) -> Any:
    try:
        return obj[key]
    except KeyError as exc:
        raise RecordDecodeError(f"缺少必要字段：{key}") from exc


def _as_int(value: Any, key: str) -> int:
    # bool 是 int 的子类，这里不接受
    if isinstance(value, bool) or not isinstance(value, int):
        raise RecordDecodeError(f"字段 {key} 应为整数，实际为 {value!r}")
    return value


def _as_str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise RecordDecodeError(f"字段 {key} 应为字符串，实际为 {value!r}")
    return value


def _as_list(value: Any, key: str) -> list[Any]:
    if not isinstance(value, list):
        raise RecordDecodeError(f"字段 {key} 应为数组，实际为 {type(value).__name__}")
    return value


def _as_dict(value: Any, key: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise RecordDecodeError(f"字段 {key} 应为对象，实际为 {type(value).__name__}")
    return value


def _req_int(obj: dict[str, Any], key: str) -> int:
    return _as_int(_require(obj, key), key)


def _opt_int(obj: dict[str, Any], key: str) -> int | None:
    value = obj.get(key)
    return None if value is None else _as_int(value, key)


def _opt_str(obj: dict[str, Any], key: str) -> str | None:
    value = obj.get(key)
    return None if value is None else _as_str(value, key)


def _req_time(obj: dict[str, Any], key: str) -> datetime:
    return _parse_time(_require(obj, key), key)


def _opt_time(obj: dict[str, Any], key: str) -> datetime | None:
    value = obj.get(key)
    return None if value is None else _parse_time(value, key)


def _parse_time(value: Any, key: str) -> datetime:
    try:
        return parse_timestamp(_as_str(value, key))
    except ValueError as exc:
        raise RecordDecodeError(f"字段 {key} 不是合法的时间：{value!r}") from exc


@dataclass(frozen=True, slots=True)
class ActivityType:
    """One activity classification with its confidence (0-100)."""

    type: str
    confidence: int

    @classmethod
    def from_json(cls, obj: Any) -> ActivityType:
        obj = _as_dict(obj, "activity")
        return cls(
            type=_as_str(_require(obj, "type"), "type"),
            confidence=_req_int(obj, "confidence"),
        )


@dataclass(frozen=True, slots=True)
class Activity:
    """An activity observation: ordered classifications plus their timestamp."""

    activity: tuple[ActivityType, ...]
    timestamp: datetime

    @classmethod
    def from_json(cls, obj: Any) -> Activity:
        obj = _as_dict(obj, "activity")
        return cls(
            activity=tuple(ActivityType.from_json(x) for x in _as_list(_require(obj, "activity"), "activity")),
            timestamp=_req_time(obj, "timestamp"),
        )


@dataclass(frozen=True, slots=True)
class AccessPoint:
    """A Wi-Fi access point seen during a scan."""

    mac: str
    strength: int
    frequency_mhz: int

    @classmethod
    def from_json(cls, obj: Any) -> AccessPoint:
        obj = _as_dict(obj, "accessPoints")
        mac = _require(obj, "mac")
        # 有的导出把 mac 写成整数
        return cls(
            mac=str(mac) if isinstance(mac, int) and not isinstance(mac, bool) else _as_str(mac, "mac"),
            strength=_req_int(obj, "strength"),
            frequency_mhz=_req_int(obj, "frequencyMhz"),
        )


@dataclass(frozen=True, slots=True)
class WifiScan:
    access_points: tuple[AccessPoint, ...]

    @classmethod
    def from_json(cls, obj: Any) -> WifiScan:
        obj = _as_dict(obj, "wifiScan")
        aps = _as_list(obj.get("accessPoints", []), "accessPoints")
        return cls(access_points=tuple(AccessPoint.from_json(x) for x in aps))


@dataclass(frozen=True, slots=True)
class LocationMetadata:
    wifi_scan: WifiScan | None
    timestamp: datetime

    @classmethod
    def from_json(cls, obj: Any) -> LocationMetadata:
        obj = _as_dict(obj, "locationMetadata")
        scan = obj.get("wifiScan")
        return cls(
            wifi_scan=None if scan is None else WifiScan.from_json(scan),
            timestamp=_req_time(obj, "timestamp"),
        )


@dataclass(frozen=True, slots=True)
class InferredLocation:
    """A location hint inferred by the producer (e.g. from Wi-Fi)."""

    timestamp: datetime
    latitude_e7: int
    longitude_e7: int
    accuracy: int

    @classmethod
    def from_json(cls, obj: Any) -> InferredLocation:
        obj = _as_dict(obj, "inferredLocation")
        return cls(
            timestamp=_req_time(obj, "timestamp"),
            latitude_e7=_req_int(obj, "latitudeE7"),
            longitude_e7=_req_int(obj, "longitudeE7"),
            accuracy=_req_int(obj, "accuracy"),
        )


@dataclass(frozen=True, slots=True)
class Location:
    """A single location record from the ``locations`` array.

    Attributes:
        latitude_e7: Latitude in degrees multiplied by 1e7.
        longitude_e7: Longitude in degrees multiplied by 1e7.
        accuracy: Horizontal accuracy radius in meters.
        source: Positioning source tag, e.g. "WIFI" or "GPS".
        device_tag: Opaque device identifier.
        timestamp: Timezone-aware instant of the sample.
        activities: Activity observations in document order (may be empty).
        velocity: Device-reported speed in m/s, if any.
    """

    latitude_e7: int
    longitude_e7: int
    accuracy: int
    source: str
    device_tag: int
    timestamp: datetime
    activities: tuple[Activity, ...] = ()
    velocity: int | None = None
    altitude: int | None = None
    vertical_accuracy: int | None = None
    platform_type: str | None = None
    location_metadata: tuple[LocationMetadata, ...] = ()
    inferred_location: tuple[InferredLocation, ...] = ()
    os_level: int | None = None
    server_timestamp: datetime | None = None
    device_timestamp: datetime | None = None
    battery_charging: bool | None = None
    form_factor: str | None = None

    @property
    def latitude(self) -> float:
        """Latitude in decimal degrees."""

        return self.latitude_e7 / 1e7

    @property
    def longitude(self) -> float:
        """Longitude in decimal degrees."""

        return self.longitude_e7 / 1e7

    @classmethod
    def from_json(cls, obj: Any) -> Location:
        """Build a Location from one decoded JSON object.

        Optional fields are read permissively: absent or null means "not set".

        Raises:
            RecordDecodeError: If a required field is missing, has the wrong type,
                or a timestamp does not parse.
        """

        obj = _as_dict(obj, "location")

        if "timestamp" in obj or "timestampMs" not in obj:
            timestamp = _req_time(obj, "timestamp")
        else:
            # 旧版导出只有 timestampMs（毫秒字符串）
            try:
                timestamp = parse_timestamp(int(obj["timestampMs"]))
            except (TypeError, ValueError, OverflowError) as exc:
                raise RecordDecodeError(f"字段 timestampMs 不是合法的时间：{obj['timestampMs']!r}") from exc

        charging = obj.get("batteryCharging")
        if charging is not None and not isinstance(charging, bool):
            raise RecordDecodeError(f"字段 batteryCharging 应为布尔值，实际为 {charging!r}")

        return cls(
            latitude_e7=_req_int(obj, "latitudeE7"),
            longitude_e7=_req_int(obj, "longitudeE7"),
            accuracy=_req_int(obj, "accuracy"),
            source=_as_str(_require(obj, "source"), "source"),
            device_tag=_req_int(obj, "deviceTag"),
            timestamp=timestamp,
            activities=tuple(Activity.from_json(x) for x in _as_list(obj.get("activity") or [], "activity")),
            velocity=_opt_int(obj, "velocity"),
            altitude=_opt_int(obj, "altitude"),
            vertical_accuracy=_opt_int(obj, "verticalAccuracy"),
            platform_type=_opt_str(obj, "platformType"),
            location_metadata=tuple(
                LocationMetadata.from_json(x)
                for x in _as_list(obj.get("locationMetadata") or [], "locationMetadata")
            ),
            inferred_location=tuple(
                InferredLocation.from_json(x)
                for x in _as_list(obj.get("inferredLocation") or [], "inferredLocation")
            ),
            os_level=_opt_int(obj, "osLevel"),
            server_timestamp=_opt_time(obj, "serverTimestamp"),
            device_timestamp=_opt_time(obj, "deviceTimestamp"),
            battery_charging=charging,
            form_factor=_opt_str(obj, "formFactor"),
        )
