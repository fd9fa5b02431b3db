from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

from collector.slices import DailySlice
from tapestry.loader import MAX_THREADS


@dataclass(frozen=True)
class Layout:
    """
    Canvas geometry shared by every thread.

    Height is padding * 2 + threads * thread_height, floored at min_height.
    """
    width: int = 800
    thread_height: int = 12
    max_threads: int = MAX_THREADS
    padding: int = 20
    min_height: int = 200
    animation_duration: str = "8s"
    label_every: int = 7
    segments: int = 50


@dataclass
class GradientStop:
    offset: str  # e.g. "50%"
    color: str


@dataclass
class Thread:
    """Render-time view of one slice. index 0 is the most recent day."""
    index: int
    date: str
    path: str
    gradient_id: str
    stops: List[GradientStop]
    stroke_width: str
    opacity: str
    animation_delay: str
    title: str


@dataclass
class DateLabel:
    x: str
    y: str
    text: str


def fmt(value: float) -> str:
    """Fixed two-decimal formatting with trailing zeros stripped; keeps SVG output byte-stable."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def baseline_y(index: int, layout: Layout) -> float:
    return layout.padding + index * layout.thread_height


def wave_points(
    index: int, avg_score: float, total_stars: int, layout: Layout
) -> List[Tuple[float, float]]:
    """
    Sample the thread's sine wave at segments + 1 evenly spaced x positions.

    amplitude follows the average score (capped at 4 units), frequency follows
    total stars (at least 0.5), and the phase shifts by 0.5 per position.
    """
    amplitude = min(avg_score / 500, 1) * 4
    frequency = max(total_stars / 1000, 0.5)
    phase = index * 0.5

    y = baseline_y(index, layout)
    drawable = layout.width - layout.padding * 2
    points: List[Tuple[float, float]] = []
    for i in range(layout.segments + 1):
        fraction = i / layout.segments
        x = layout.padding + fraction * drawable
        wave = math.sin(fraction * math.pi * frequency * 4 + phase) * amplitude
        points.append((x, y + wave))
    return points


def wave_path(index: int, avg_score: float, total_stars: int, layout: Layout) -> str:
    points = wave_points(index, avg_score, total_stars, layout)
    return "M " + " L ".join(f"{fmt(x)},{fmt(y)}" for x, y in points)


def stroke_width(total_stars: int) -> float:
    return max(2.0, min(8.0, total_stars / 500))


def thread_opacity(index: int, total: int) -> float:
    return 0.4 + (1 - index / total) * 0.6


def gradient_colors(daily: DailySlice) -> List[str]:
    """
    Colors of the slice's three most frequent languages.

    Ties keep distribution order. Padded to two colors with the dominant color.
    """
    metrics = daily.metrics
    ranked = sorted(metrics.language_distribution.items(), key=lambda item: -item[1])[:3]

    colors: List[str] = []
    for language, _ in ranked:
        match = next((r for r in daily.top_repos if r.language == language), None)
        colors.append(match.color if match is not None else metrics.dominant_color)

    while len(colors) < 2:
        colors.append(metrics.dominant_color)
    return colors


def gradient_stops(colors: List[str]) -> List[GradientStop]:
    last = len(colors) - 1
    return [GradientStop(offset=f"{round(i * 100 / last)}%", color=c) for i, c in enumerate(colors)]


def build_thread(daily: DailySlice, index: int, total: int, layout: Layout) -> Thread:
    metrics = daily.metrics
    languages = list(metrics.language_distribution)
    return Thread(
        index=index,
        date=daily.date,
        path=wave_path(index, metrics.avg_score, metrics.total_stars, layout),
        gradient_id=f"thread-{index}",
        stops=gradient_stops(gradient_colors(daily)),
        stroke_width=fmt(stroke_width(metrics.total_stars)),
        opacity=f"{thread_opacity(index, total):.3f}",
        animation_delay=f"{index * 0.1:.1f}s",
        title=f"{daily.date}: {metrics.total_stars} stars, {', '.join(languages)}",
    )


def build_threads(slices: List[DailySlice], layout: Layout) -> List[Thread]:
    """slices must already be ordered newest first."""
    visible = slices[: layout.max_threads]
    return [build_thread(s, i, len(visible), layout) for i, s in enumerate(visible)]


def canvas_height(thread_count: int, layout: Layout) -> int:
    return max(layout.padding * 2 + thread_count * layout.thread_height, layout.min_height)


def date_labels(threads: List[Thread], layout: Layout) -> List[DateLabel]:
    """Month-day label beside every label_every-th thread, counted by position."""
    return [
        DateLabel(
            x=fmt(layout.width - layout.padding + 5),
            y=fmt(baseline_y(t.index, layout) + 4),
            text=t.date[5:],
        )
        for t in threads
        if t.index % layout.label_every == 0
    ]
