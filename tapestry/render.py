from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import escape

from collector.slices import DailySlice
from tapestry.weave import Layout, build_threads, canvas_height, date_labels

TOP_N_MARKDOWN = 5


def _get_template_env() -> Environment:
    """
    Create Jinja2 environment with templates directory.

    The SVG template is autoescaped: dates and language names come from the
    upstream API and must never reach the markup unescaped.
    """
    templates_dir = Path(__file__).parent / "templates"
    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(enabled_extensions=("svg.j2",), default_for_string=True),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["md_cell"] = _md_cell
    env.filters["badge_url"] = _badge_url
    env.filters["thousands"] = lambda n: f"{n:,}"
    return env


def _md_cell(text: str) -> str:
    """Keep an untrusted value inside its markdown table cell, as text."""
    cell = str(escape(text)).replace("\n", " ")
    for char in "\\|[]()":
        cell = cell.replace(char, "\\" + char)
    return cell


def _badge_url(language: str, color: str) -> str:
    """shields.io static badge; '-' and '_' are separators there and must be doubled."""
    label = language.replace("-", "--").replace("_", "__").replace(" ", "_")
    return (
        "https://img.shields.io/badge/"
        f"{quote(label, safe='')}-{quote(color.lstrip('#'), safe='')}?style=flat-square"
    )


def _prepare_svg_context(slices: List[DailySlice], layout: Layout) -> Dict[str, Any]:
    threads = build_threads(slices, layout)
    return {
        "layout": layout,
        "width": layout.width,
        "height": canvas_height(len(threads), layout),
        "threads": threads,
        "date_labels": date_labels(threads, layout),
        "center_x": layout.width // 2,
    }


def render_tapestry(slices: List[DailySlice], layout: Optional[Layout] = None) -> str:
    """
    Render the full SVG document.

    Args:
        slices: Daily slices ordered newest first; anything past
            layout.max_threads is dropped
        layout: Canvas geometry (defaults to Layout())

    Returns:
        Self-contained SVG string. Identical input yields identical bytes.

    Failure modes:
        - Raises jinja2.TemplateError if the template is malformed or missing
    """
    layout = layout or Layout()
    template = _get_template_env().get_template("tapestry.svg.j2")
    return template.render(**_prepare_svg_context(slices, layout))


def render_top_repos(latest: Optional[DailySlice], limit: int = TOP_N_MARKDOWN) -> str:
    """
    Render the markdown fragment for the README: a summary line plus the top
    `limit` repositories of the newest slice, or a placeholder when none exists.
    """
    template = _get_template_env().get_template("top_repos.md.j2")
    repos = latest.top_repos[:limit] if latest is not None else []
    return template.render(latest=latest, repos=repos).strip("\n")
