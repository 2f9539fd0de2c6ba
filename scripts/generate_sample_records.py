from __future__ import annotations

import argparse
import json
import random
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any


@dataclass(frozen=True, slots=True)
class Cluster:
    name: str
    lat: float
    lon: float


# (activity type, typical velocity m/s)
_MODES: list[tuple[str, int]] = [
    ("STILL", 0),
    ("WALKING", 1),
    ("RUNNING", 3),
    ("ON_BICYCLE", 5),
    ("IN_VEHICLE", 14),
    ("IN_BUS", 9),
]


def _iso_z(dt: datetime) -> str:
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_records(
    *,
    rows: int,
    seed: int,
    start: datetime,
    clusters: list[Cluster],
    broken_every: int = 0,
) -> list[dict[str, Any] | str]:
    """Generate fake location records with realistic-ish movement and activities.

    Args:
        rows: Number of array elements.
        seed: Random seed (reproducible).
        start: Timestamp of the first record.
        clusters: Places the random walk jumps between.
        broken_every: If > 0, every N-th element is a raw malformed JSON snippet.

    Returns:
        Array elements: dicts, or strings for malformed elements.
    """

    rng = random.Random(seed)
    cur = start if start.tzinfo is not None else start.replace(tzinfo=UTC)
    cluster = rng.choice(clusters)

    out: list[dict[str, Any] | str] = []
    for n in range(1, rows + 1):
        # Occasionally "teleport" to another city to simulate travel
        if rng.random() < 0.02:
            cluster = rng.choice(clusters)

        lat = cluster.lat + rng.uniform(-0.01, 0.01)
        lon = cluster.lon + rng.uniform(-0.01, 0.01)

        # Time step: usually 1-10 minutes, sometimes 30-90 minutes gap
        if rng.random() < 0.08:
            cur = cur + timedelta(minutes=rng.uniform(30, 90))
        else:
            cur = cur + timedelta(seconds=rng.uniform(60, 600))

        if broken_every > 0 and n % broken_every == 0:
            out.append('{"latitudeE7": 1, "timestamp": not-a-time, "source": "GPS"}')
            continue

        mode, velocity = rng.choice(_MODES)
        record: dict[str, Any] = {
            "latitudeE7": int(round(lat * 1e7)),
            "longitudeE7": int(round(lon * 1e7)),
            "accuracy": rng.choice([3, 5, 8, 12, 20, 35]),
            "source": rng.choice(["GPS", "WIFI", "CELL"]),
            "deviceTag": 123456789,
            "timestamp": _iso_z(cur),
            "platformType": "ANDROID",
            "formFactor": "PHONE",
            "batteryCharging": rng.random() < 0.2,
        }
        if rng.random() < 0.6:
            record["activity"] = [
                {
                    "activity": [
                        {"type": mode, "confidence": rng.randint(40, 100)},
                        {"type": "UNKNOWN", "confidence": rng.randint(0, 20)},
                    ],
                    "timestamp": _iso_z(cur - timedelta(seconds=5)),
                }
            ]
        if velocity and rng.random() < 0.7:
            record["velocity"] = velocity + rng.randint(0, 3)
        if rng.random() < 0.5:
            record["altitude"] = rng.randint(0, 600)
            record["verticalAccuracy"] = rng.choice([2, 4, 8])
        if rng.random() < 0.2:
            record["locationMetadata"] = [
                {
                    "timestamp": _iso_z(cur),
                    "wifiScan": {
                        "accessPoints": [
                            {
                                "mac": str(rng.randint(10**11, 10**12)),
                                "strength": rng.randint(-90, -40),
                                "frequencyMhz": rng.choice([2412, 2437, 5180]),
                            }
                        ]
                    },
                }
            ]
        out.append(record)
    return out


def write_records(elements: list[dict[str, Any] | str], out_path: str | Path) -> Path:
    """Write elements as {"locations": [...]}, one element per line."""

    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        f.write('{\n  "locations": [\n')
        for i, el in enumerate(elements):
            text = el if isinstance(el, str) else json.dumps(el, ensure_ascii=False)
            sep = ",\n" if i < len(elements) - 1 else "\n"
            f.write(f"    {text}{sep}")
        f.write("  ]\n}\n")
    return p


def main() -> int:
    p = argparse.ArgumentParser(description="Generate a fake Records.json for demo/testing (privacy-safe).")
    p.add_argument("--out", type=str, default="sample_data/Records.json", help="Output JSON path")
    p.add_argument("--rows", type=int, default=2000, help="Number of records")
    p.add_argument("--seed", type=int, default=42, help="Random seed (reproducible)")
    p.add_argument("--start", type=str, default="2023-12-20T08:00:00Z", help="First timestamp (ISO-8601)")
    p.add_argument("--broken-every", type=int, default=0, help="Insert a malformed element every N records")
    args = p.parse_args()

    clusters = [
        Cluster("berlin_home", 52.5200000, 13.4050000),
        Cluster("berlin_office", 52.5070000, 13.3900000),
        Cluster("hamburg_trip", 53.5511000, 9.9937000),
        Cluster("munich_trip", 48.1351000, 11.5820000),
    ]
    elements = generate_records(
        rows=args.rows,
        seed=args.seed,
        start=datetime.fromisoformat(args.start),
        clusters=clusters,
        broken_every=args.broken_every,
    )
    out_path = write_records(elements, args.out)
    print(f"Generated: {out_path} (rows={len(elements)}, seed={args.seed})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
