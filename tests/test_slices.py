"""
Tests for slice extraction: numeric coercion, aggregation and the fixed UTC+8 date key.
"""

import json
from datetime import datetime, timezone

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from collector.exceptions import MalformedSliceError, NoDataError, TapestryError
from collector.slices import (
    DEFAULT_COLOR,
    DailySlice,
    build_slice,
    compute_metrics,
    language_color,
    parse_score,
    parse_stars,
    round_half_up,
    serialize_slice,
    taiwan_date,
    to_top_repo,
)
from tests.conftest import FIXED_DATE, FIXED_NOW, make_payload, make_row


def test_rust_example(rust_payload):
    daily = build_slice(rust_payload, now=FIXED_NOW)

    assert daily.date == FIXED_DATE
    assert daily.metrics.total_stars == 21000
    assert daily.metrics.avg_score == 87.5
    assert daily.metrics.dominant_language == "Rust"
    assert daily.metrics.dominant_color == "#dea584"
    assert daily.metrics.language_distribution == {"Rust": 10}


def test_top_repos_truncated_to_ten_in_input_order():
    rows = [make_row(name=f"owner/repo-{i}", stars=str(i)) for i in range(15)]
    daily = build_slice(make_payload(rows), now=FIXED_NOW)

    assert [r.name for r in daily.top_repos] == [f"owner/repo-{i}" for i in range(10)]
    assert daily.metrics.total_stars == sum(range(10))


@pytest.mark.parametrize(
    "raw",
    [
        {},
        {"data": {}},
        {"data": {"rows": []}},
        {"data": {"rows": None}},
        {"data": "rows"},
        [],
        None,
    ],
)
def test_missing_or_empty_rows_raise_no_data(raw):
    with pytest.raises(NoDataError) as excinfo:
        build_slice(raw, now=FIXED_NOW)
    assert isinstance(excinfo.value, TapestryError)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2100", 2100),
        ("12abc", 12),
        (" 42", 42),
        ("1.9", 1),
        ("abc", 0),
        ("", 0),
        (None, 0),
        ("-5", 0),
        (314, 314),
        (True, 0),
        (float("nan"), 0),
    ],
)
def test_parse_stars(value, expected):
    assert parse_stars(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("87.5", 87.5),
        ("3.25xyz", 3.25),
        (".5", 0.5),
        ("1e2", 100.0),
        ("n/a", 0.0),
        (None, 0.0),
        ("inf", 0.0),
        (12, 12.0),
    ],
)
def test_parse_score(value, expected):
    assert parse_score(value) == expected


def test_unknown_and_null_languages_fall_back():
    assert to_top_repo(make_row(language=None)).language == "Unknown"
    assert to_top_repo(make_row(language="")).language == "Unknown"
    assert to_top_repo(make_row(language=None)).color == DEFAULT_COLOR

    brainfuck = to_top_repo(make_row(language="Brainfuck"))
    assert brainfuck.language == "Brainfuck"
    assert brainfuck.color == DEFAULT_COLOR


def test_language_color_is_case_sensitive():
    assert language_color("Python") == "#3572A5"
    assert language_color("python") == DEFAULT_COLOR


def test_dominant_language_tie_keeps_first_encountered():
    rows = [
        make_row(language="Go"),
        make_row(language="Python"),
        make_row(language="Python"),
        make_row(language="Go"),
    ]
    metrics = build_slice(make_payload(rows), now=FIXED_NOW).metrics

    assert metrics.language_distribution == {"Go": 2, "Python": 2}
    assert metrics.dominant_language == "Go"
    assert metrics.dominant_color == "#00ADD8"


def test_empty_metrics_default_to_unknown():
    metrics = compute_metrics([])
    assert metrics.dominant_language == "Unknown"
    assert metrics.dominant_color == DEFAULT_COLOR
    assert metrics.total_stars == 0
    assert metrics.avg_score == 0.0


def test_avg_score_rounds_half_up():
    assert round_half_up(2.125) == 2.13
    assert round_half_up(87.5) == 87.5

    rows = [make_row(score="1"), make_row(score="2"), make_row(score="2")]
    assert build_slice(make_payload(rows), now=FIXED_NOW).metrics.avg_score == 1.67


def test_taiwan_date_crosses_midnight_at_16_utc():
    assert taiwan_date(datetime(2026, 3, 1, 15, 59, tzinfo=timezone.utc)) == "2026-03-01"
    assert taiwan_date(datetime(2026, 3, 1, 16, 0, tzinfo=timezone.utc)) == "2026-03-02"
    assert taiwan_date(datetime(2026, 12, 31, 23, 0, tzinfo=timezone.utc)) == "2027-01-01"


def test_serialized_slice_round_trips(rust_payload):
    daily = build_slice(rust_payload, now=FIXED_NOW)
    text = serialize_slice(daily)
    restored = DailySlice.from_dict(json.loads(text))

    assert restored == daily
    assert json.loads(text)["metrics"]["totalStars"] == 21000
    assert "topRepos" in json.loads(text)


numeric_text = st.one_of(
    st.none(),
    st.text(max_size=12),
    st.integers(min_value=-10**6, max_value=10**9).map(str),
    st.floats(min_value=0, max_value=10**6, allow_nan=False).map(str),
)

rows_strategy = st.lists(
    st.builds(
        make_row,
        name=st.text(max_size=20),
        language=st.sampled_from([None, "", "Rust", "Python", "Go", "Brainfuck", "C++"]),
        stars=numeric_text,
        score=numeric_text,
    ),
    min_size=1,
    max_size=25,
)


@given(rows=rows_strategy)
@settings(max_examples=100)
def test_distribution_counts_sum_to_top_repo_count(rows):
    daily = build_slice(make_payload(rows), now=FIXED_NOW)
    metrics = daily.metrics

    assert len(daily.top_repos) == min(10, len(rows))
    assert sum(metrics.language_distribution.values()) == len(daily.top_repos)
    assert metrics.dominant_language in metrics.language_distribution
    assert metrics.total_stars == sum(r.stars for r in daily.top_repos)
    assert all(r.stars >= 0 for r in daily.top_repos)


@pytest.mark.parametrize(
    "document",
    [[], "2026-01-01", {"metrics": 3}, {"topRepos": "a/b"}, {"topRepos": [["a/b"]]}],
)
def test_from_dict_rejects_wrong_shapes(document):
    with pytest.raises(MalformedSliceError):
        DailySlice.from_dict(document)


def test_from_dict_stringifies_scalar_fields():
    daily = DailySlice.from_dict(
        {"date": "2026-01-01", "topRepos": [{"name": 42, "language": 5, "color": None, "stars": "3"}]}
    )
    repo = daily.top_repos[0]

    assert (repo.name, repo.language, repo.color, repo.stars) == ("42", "5", DEFAULT_COLOR, 3)
    assert daily.metrics.dominant_language == "Unknown"
