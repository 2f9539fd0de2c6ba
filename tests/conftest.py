"""Shared fixtures: raw record dicts and Records.json documents."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import pytest

from takeout_stats.models import Location


def make_raw(
    timestamp: str = "2024-03-01T10:00:00Z",
    *,
    lat_e7: int = 525200000,
    lon_e7: int = 134050000,
    activity: list[tuple[str, int]] | None = None,
    velocity: int | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Raw JSON object of one location record."""

    raw: dict[str, Any] = {
        "latitudeE7": lat_e7,
        "longitudeE7": lon_e7,
        "accuracy": 10,
        "source": "GPS",
        "deviceTag": 42,
        "timestamp": timestamp,
    }
    if activity is not None:
        raw["activity"] = [
            {
                "activity": [{"type": t, "confidence": c} for t, c in activity],
                "timestamp": timestamp,
            }
        ]
    if velocity is not None:
        raw["velocity"] = velocity
    raw.update(extra)
    return raw


def make_location(timestamp: str = "2024-03-01T10:00:00Z", **kwargs: Any) -> Location:
    return Location.from_json(make_raw(timestamp, **kwargs))


def records_document(elements: list[dict[str, Any] | str], *, key: str = "locations", indent: bool = True) -> str:
    """A Records.json style document; str elements are embedded verbatim."""

    texts = [el if isinstance(el, str) else json.dumps(el, ensure_ascii=False) for el in elements]
    if indent:
        body = ",\n    ".join(texts)
        return f'{{\n  "{key}" : [\n    {body}\n  ]\n}}\n'
    return f'{{"{key}":[{",".join(texts)}]}}'


@pytest.fixture
def write_records(tmp_path: Path) -> Callable[..., Path]:
    """Write a Records.json document into tmp_path and return its path."""

    def _write(elements: list[dict[str, Any] | str], name: str = "Records.json", **kwargs: Any) -> Path:
        p = tmp_path / name
        p.write_text(records_document(elements, **kwargs), encoding="utf-8")
        return p

    return _write


def ts(text: str) -> datetime:
    return datetime.fromisoformat(text)
