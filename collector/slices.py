from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from collector.exceptions import MalformedSliceError, NoDataError

TOP_REPO_LIMIT = 10
TAIWAN_OFFSET = timedelta(hours=8)
UNKNOWN_LANGUAGE = "Unknown"
DEFAULT_COLOR = "#8b8b8b"

# GitHub linguist colors; anything missing falls back to DEFAULT_COLOR.
LANGUAGE_COLORS: Dict[str, str] = {
    "JavaScript": "#f1e05a",
    "TypeScript": "#3178c6",
    "Python": "#3572A5",
    "Java": "#b07219",
    "Go": "#00ADD8",
    "Rust": "#dea584",
    "C++": "#f34b7d",
    "C": "#555555",
    "Ruby": "#701516",
    "PHP": "#4F5D95",
    "Swift": "#F05138",
    "Kotlin": "#A97BFF",
    "Dart": "#00B4AB",
    "C#": "#178600",
    "Shell": "#89e051",
    "HTML": "#e34c26",
    "CSS": "#563d7c",
    "Vue": "#41b883",
    "Svelte": "#ff3e00",
    "Jupyter Notebook": "#DA5B0B",
}

_INT_PREFIX = re.compile(r"^\s*[+-]?[0-9]+")
_FLOAT_PREFIX = re.compile(r"^\s*[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def language_color(language: Optional[str]) -> str:
    return LANGUAGE_COLORS.get(language or "", DEFAULT_COLOR)


def parse_stars(value: Any) -> int:
    """Leading-integer parse of an untrusted star count; 0 when unparseable or negative."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return 0
        return max(int(value), 0)
    if not isinstance(value, str):
        return 0
    match = _INT_PREFIX.match(value)
    if match is None:
        return 0
    try:
        return max(int(match.group(0)), 0)
    except ValueError:  # beyond the int-string conversion limit
        return 0


def parse_score(value: Any) -> float:
    """Leading-float parse of an untrusted score; 0.0 when unparseable."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
    elif isinstance(value, str):
        match = _FLOAT_PREFIX.match(value)
        if match is None:
            return 0.0
        number = float(match.group(0))
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def round_half_up(value: float, digits: int = 2) -> float:
    scale = 10 ** digits
    scaled = value * scale + 0.5
    if not math.isfinite(scaled):
        return value
    return math.floor(scaled) / scale


def _text(value: Any) -> str:
    """Stored string field; missing becomes "", scalars of the wrong type are stringified."""
    return "" if value is None else str(value)


def _require_dict(value: Any, what: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedSliceError(f"{what} must be an object, got {type(value).__name__}")
    return value


def taiwan_date(now: Optional[datetime] = None) -> str:
    """
    Calendar date in UTC+8 as YYYY-MM-DD.

    A fixed offset, not a zone: UTC+8 observes no DST.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return (now + TAIWAN_OFFSET).date().isoformat()


@dataclass
class TopRepoEntry:
    name: str
    language: str
    color: str
    stars: int
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "language": self.language,
            "color": self.color,
            "stars": self.stars,
            "score": self.score,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "TopRepoEntry":
        data = _require_dict(data, "topRepos entry")
        language = _text(data.get("language")) or UNKNOWN_LANGUAGE
        return cls(
            name=_text(data.get("name")),
            language=language,
            color=_text(data.get("color")) or language_color(language),
            stars=parse_stars(data.get("stars")),
            score=parse_score(data.get("score")),
        )


@dataclass
class SliceMetrics:
    """
    Aggregates derived from a slice's top repositories.

    Invariants:
      - sum(language_distribution.values()) == len(top_repos)
      - dominant_language is a key of language_distribution unless it is empty
    """
    total_stars: int
    avg_score: float
    dominant_language: str
    dominant_color: str
    language_distribution: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalStars": self.total_stars,
            "avgScore": self.avg_score,
            "dominantLanguage": self.dominant_language,
            "dominantColor": self.dominant_color,
            "languageDistribution": dict(self.language_distribution),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SliceMetrics":
        data = _require_dict(data, "metrics")
        dominant = _text(data.get("dominantLanguage")) or UNKNOWN_LANGUAGE
        distribution = {
            str(lang): parse_stars(count)
            for lang, count in _require_dict(data.get("languageDistribution"), "languageDistribution").items()
        }
        return cls(
            total_stars=parse_stars(data.get("totalStars")),
            avg_score=parse_score(data.get("avgScore")),
            dominant_language=dominant,
            dominant_color=_text(data.get("dominantColor")) or language_color(dominant),
            language_distribution=distribution,
        )


@dataclass
class DailySlice:
    """One day's persisted aggregate record, keyed by date."""
    date: str
    metrics: SliceMetrics
    top_repos: List[TopRepoEntry]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "metrics": self.metrics.to_dict(),
            "topRepos": [repo.to_dict() for repo in self.top_repos],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "DailySlice":
        """
        Rebuild a slice read back from disk.

        Raises:
            MalformedSliceError: if the document or a nested record has the wrong shape
        """
        if not isinstance(data, dict):
            raise MalformedSliceError(f"slice must be an object, got {type(data).__name__}")
        top_repos = data.get("topRepos")
        if top_repos is None:
            top_repos = []
        if not isinstance(top_repos, list):
            raise MalformedSliceError(f"topRepos must be a list, got {type(top_repos).__name__}")
        return cls(
            date=_text(data.get("date")),
            metrics=SliceMetrics.from_dict(data.get("metrics")),
            top_repos=[TopRepoEntry.from_dict(r) for r in top_repos],
        )


def extract_rows(raw: Any) -> List[Dict[str, Any]]:
    """
    Pull the ranked rows out of a `{"data": {"rows": [...]}}` payload.

    Raises:
        NoDataError: if the path is missing, not a list, or empty
    """
    data = raw.get("data") if isinstance(raw, dict) else None
    rows = data.get("rows") if isinstance(data, dict) else None
    if not isinstance(rows, list) or not rows:
        preview = json.dumps(raw, ensure_ascii=False, default=str)[:200]
        raise NoDataError("API returned no data or invalid response", raw_preview=preview)
    return rows


def to_top_repo(row: Any) -> TopRepoEntry:
    if not isinstance(row, dict):
        row = {}
    primary = row.get("primary_language")
    if not isinstance(primary, str):
        primary = None
    return TopRepoEntry(
        name=str(row.get("repo_name") or ""),
        language=primary or UNKNOWN_LANGUAGE,
        color=language_color(primary),
        stars=parse_stars(row.get("stars")),
        score=parse_score(row.get("total_score")),
    )


def compute_metrics(top_repos: List[TopRepoEntry]) -> SliceMetrics:
    total_stars = sum(r.stars for r in top_repos)
    avg_score = sum(r.score for r in top_repos) / len(top_repos) if top_repos else 0.0

    distribution: Dict[str, int] = {}
    for repo in top_repos:
        distribution[repo.language] = distribution.get(repo.language, 0) + 1

    # max() keeps the first key reaching the highest count (insertion order).
    dominant = max(distribution, key=distribution.__getitem__) if distribution else UNKNOWN_LANGUAGE

    return SliceMetrics(
        total_stars=total_stars,
        avg_score=round_half_up(avg_score, 2),
        dominant_language=dominant,
        dominant_color=language_color(dominant),
        language_distribution=distribution,
    )


def build_slice(raw: Any, now: Optional[datetime] = None) -> DailySlice:
    """
    Reduce a raw trending payload to today's DailySlice.

    Args:
        raw: Parsed API response
        now: Clock override (UTC); defaults to the current instant

    Raises:
        NoDataError: if the payload has no rows
    """
    rows = extract_rows(raw)
    top_repos = [to_top_repo(row) for row in rows[:TOP_REPO_LIMIT]]
    return DailySlice(date=taiwan_date(now), metrics=compute_metrics(top_repos), top_repos=top_repos)


def serialize_slice(daily: DailySlice) -> str:
    return json.dumps(daily.to_dict(), ensure_ascii=False, indent=2) + "\n"


def write_slice(daily: DailySlice, data_dir: Path) -> Path:
    """
    Write data/daily/<date>.json and data/latest.json with identical content.

    Returns the path of the dated file.
    """
    daily_dir = Path(data_dir) / "daily"
    daily_dir.mkdir(parents=True, exist_ok=True)

    payload = serialize_slice(daily)
    archive_path = daily_dir / f"{daily.date}.json"
    archive_path.write_text(payload, encoding="utf-8")
    (Path(data_dir) / "latest.json").write_text(payload, encoding="utf-8")
    return archive_path


def load_slice(path: Path) -> DailySlice:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    try:
        return DailySlice.from_dict(data)
    except MalformedSliceError as e:
        raise MalformedSliceError(f"{path}: {e}") from e
