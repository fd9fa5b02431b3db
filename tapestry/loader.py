from __future__ import annotations

from pathlib import Path
from typing import List

from collector.slices import DailySlice, load_slice

MAX_THREADS = 90  # ~3 months of history


def load_daily_slices(data_dir: Path, max_threads: int = MAX_THREADS) -> List[DailySlice]:
    """
    Load the most recent slices, newest first.

    Ordering is by filename (YYYY-MM-DD.json sorts chronologically), descending.

    Failure modes:
        - Creates data/daily/ and returns [] if it does not exist yet
        - Raises json.JSONDecodeError on a corrupted slice file
    """
    daily_dir = Path(data_dir) / "daily"
    if not daily_dir.exists():
        daily_dir.mkdir(parents=True, exist_ok=True)
        return []

    files = sorted(
        (p for p in daily_dir.iterdir() if p.is_file() and p.name.endswith(".json")),
        key=lambda p: p.name,
        reverse=True,
    )[:max_threads]
    return [load_slice(p) for p in files]
