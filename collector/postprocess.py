#!/usr/bin/env python3
"""
Reduce an already-fetched trending payload to today's slice.

Usage:
    python -m collector.postprocess data/raw/trending.json
    python -m collector.postprocess trending.json --data-dir data

Environment variables:
    TAPESTRY_DATA_DIR: Root of the slice archive (default: data)
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from collector.exceptions import NoDataError
from collector.slices import DailySlice, build_slice, write_slice


def process_payload(raw: Any, data_dir: Path, now: Optional[datetime] = None) -> DailySlice:
    """
    Build today's slice from a raw payload and persist it.

    Raises:
        NoDataError: before anything is written, if the payload has no rows
    """
    daily = build_slice(raw, now=now)
    archive_path = write_slice(daily, data_dir)

    metrics = daily.metrics
    print(f"[collector] Processed {len(daily.top_repos)} repos for {daily.date}")
    print(f"[collector]   Dominant: {metrics.dominant_language} ({metrics.dominant_color})")
    print(f"[collector]   Total stars: {metrics.total_stars}")
    print(f"[collector]   Wrote {archive_path}")
    return daily


def run(raw: Any, data_dir: Path, now: Optional[datetime] = None) -> int:
    """Process a payload and map NoDataError to an exit status."""
    try:
        process_payload(raw, data_dir, now=now)
    except NoDataError as e:
        print(f"[collector] ERROR: {e}", file=sys.stderr)
        print(f"[collector]   Raw data: {e.raw_preview}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Extract today's trending slice from a fetched API response",
    )
    parser.add_argument("filename", help="Path to the raw JSON response")
    parser.add_argument(
        "--data-dir",
        type=str,
        default=os.environ.get("TAPESTRY_DATA_DIR", "data"),
        help="Slice archive root (default: $TAPESTRY_DATA_DIR or data/)",
    )
    args = parser.parse_args(argv)

    try:
        with open(args.filename, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"[collector] ERROR: Cannot read {args.filename}: {e}", file=sys.stderr)
        return 1

    return run(raw, Path(args.data_dir))


if __name__ == "__main__":
    sys.exit(main())
