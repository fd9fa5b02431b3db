from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from collector.slices import DailySlice, TopRepoEntry, compute_metrics, language_color, write_slice

# 20:00 UTC on March 1st is already March 2nd in UTC+8.
FIXED_NOW = datetime(2026, 3, 1, 20, 0, tzinfo=timezone.utc)
FIXED_DATE = "2026-03-02"


def make_row(
    name: str = "owner/repo",
    language: Optional[str] = "Rust",
    stars: Any = "2100",
    score: Any = "87.5",
) -> Dict[str, Any]:
    return {
        "repo_id": "1",
        "repo_name": name,
        "primary_language": language,
        "description": "",
        "stars": stars,
        "forks": "10",
        "total_score": score,
    }


def make_payload(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"type": "sql_endpoint", "data": {"columns": [], "rows": rows}}


def make_slice(date: str, repos: Sequence[Tuple[str, str, int, float]]) -> DailySlice:
    """repos: (name, language, stars, score) tuples, in rank order."""
    top = [
        TopRepoEntry(name=n, language=lang, color=language_color(lang), stars=s, score=sc)
        for n, lang, s, sc in repos
    ]
    return DailySlice(date=date, metrics=compute_metrics(top), top_repos=top)


@pytest.fixture
def rust_payload() -> Dict[str, Any]:
    return make_payload([make_row(name=f"owner/repo-{i}") for i in range(10)])


@pytest.fixture
def mixed_slice() -> DailySlice:
    return make_slice(
        FIXED_DATE,
        [
            ("a/py1", "Python", 1200, 300.0),
            ("b/rs1", "Rust", 900, 250.0),
            ("c/py2", "Python", 800, 200.0),
            ("d/go1", "Go", 700, 150.0),
            ("e/rs2", "Rust", 600, 120.0),
            ("f/c1", "C", 500, 100.0),
            ("g/py3", "Python", 400, 90.0),
        ],
    )


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


def write_days(data_dir: Path, count: int, start_day: int = 1) -> List[DailySlice]:
    """Write `count` consecutive-date slices (Jan 1 onwards) and return them oldest first."""
    written = []
    for offset in range(count):
        day = datetime(2026, 1, 1, tzinfo=timezone.utc).toordinal() + start_day - 1 + offset
        date = datetime.fromordinal(day).date().isoformat()
        daily = make_slice(date, [(f"owner/repo-{offset}", "Python", 100 * (offset + 1), 50.0)])
        write_slice(daily, data_dir)
        written.append(daily)
    return written
