"""Time parsing and calendar utilities."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, tzinfo

from zoneinfo import ZoneInfo

# UTC offsets are strictly less than one day
_EARLIEST_UTC = datetime.min.replace(tzinfo=UTC) + timedelta(days=1)
_LATEST_UTC = datetime.max.replace(tzinfo=UTC) - timedelta(days=1)


def tzinfo_from_name(tz_name: str | None) -> tzinfo | None:
    """Create tzinfo from an IANA timezone name.

    Args:
        tz_name: Timezone name like "Europe/Berlin". None means the system local zone.

    Returns:
        tzinfo instance, or None for the system local zone.

    Raises:
        ValueError: If timezone name is invalid on this system.
    """

    if tz_name is None:
        return None
    try:
        return ZoneInfo(tz_name)
    except Exception as exc:  # ZoneInfo raises KeyError / ZoneInfoNotFoundError (platform dependent)
        raise ValueError(f"无效时区：{tz_name!r}。例如可用：Europe/Berlin") from exc


def parse_timestamp(value: str | int) -> datetime:
    """Parse a record timestamp to a timezone-aware datetime.

    Supported inputs:
      - ISO-8601 strings such as "2019-05-04T10:12:40.123Z" or with "+02:00" offset
      - epoch milliseconds as int (legacy "timestampMs" exports)

    Naive ISO strings are treated as UTC.

    Raises:
        ValueError: If cannot parse, or if the instant has no calendar date in
            some timezone (within a day of datetime.min / datetime.max).
    """

    if isinstance(value, int):
        try:
            dt = datetime.fromtimestamp(value / 1000.0, tz=UTC)
        except (OverflowError, OSError) as exc:
            raise ValueError(f"时间戳超出范围：{value}") from exc
    else:
        dt = datetime.fromisoformat(value.strip())
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)

    # local_date 需要在任意时区下都能换算
    try:
        in_range = _EARLIEST_UTC <= dt.astimezone(UTC) <= _LATEST_UTC
    except OverflowError:
        in_range = False
    if not in_range:
        raise ValueError(f"时间超出可换算范围：{value!r}")
    return dt


def local_date(dt: datetime, tz: tzinfo | None) -> date:
    """Calendar date of an instant in the given zone (None = system local)."""

    return dt.astimezone(tz).date()


def whole_seconds(delta: timedelta) -> int:
    """Elapsed whole seconds, truncated toward zero."""

    return int(delta.total_seconds())


def whole_minutes(delta: timedelta) -> int:
    """Elapsed whole minutes, truncated toward zero."""

    return int(delta.total_seconds() / 60)
