"""Module entry point: python -m takeout_stats ..."""

from __future__ import annotations

from takeout_stats.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
