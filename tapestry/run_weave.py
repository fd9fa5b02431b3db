#!/usr/bin/env python3
"""
Weaving CLI for the Data Tapestry.

Usage:
    python -m tapestry.run_weave                      # data/ -> tapestry.svg + README.md
    python -m tapestry.run_weave --no-readme          # SVG only
    python -m tapestry.run_weave --output out/t.svg --readme docs/index.md

Environment variables:
    TAPESTRY_DATA_DIR: Root of the slice archive (default: data)
    TAPESTRY_OUTPUT: SVG output path (default: tapestry.svg)
    TAPESTRY_README: Host document for the top-repos table (default: README.md)
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from collector.exceptions import TapestryError
from tapestry import readme, render
from tapestry.loader import load_daily_slices
from tapestry.weave import Layout


@dataclass
class WeaveConfig:
    data_dir: str
    output_path: str
    readme_path: str


def load_config_from_env() -> WeaveConfig:
    return WeaveConfig(
        data_dir=os.environ.get("TAPESTRY_DATA_DIR", "data"),
        output_path=os.environ.get("TAPESTRY_OUTPUT", "tapestry.svg"),
        readme_path=os.environ.get("TAPESTRY_README", "README.md"),
    )


def weave(cfg: WeaveConfig, update_readme: bool = True, layout: Optional[Layout] = None) -> int:
    layout = layout or Layout()

    print("[tapestry] Loading daily data...")
    try:
        slices = load_daily_slices(Path(cfg.data_dir), max_threads=layout.max_threads)
    except (OSError, json.JSONDecodeError, TapestryError) as e:
        print(f"[tapestry] ERROR: {type(e).__name__}: {e}", file=sys.stderr)
        return 1
    print(f"[tapestry] Found {len(slices)} days of data")

    print("[tapestry] Weaving tapestry...")
    svg = render.render_tapestry(slices, layout)

    output_path = Path(cfg.output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(svg, encoding="utf-8")
    print(f"[tapestry] Tapestry woven: {output_path}")

    latest = slices[0] if slices else None
    if latest is not None:
        print(f"[tapestry]   Latest thread: {latest.date}")
        print(f"[tapestry]   Dominant: {latest.metrics.dominant_language}")
    else:
        print("[tapestry]   (Empty tapestry - awaiting first data)")

    if update_readme:
        readme.update_readme(Path(cfg.readme_path), render.render_top_repos(latest))

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    cfg = load_config_from_env()

    parser = argparse.ArgumentParser(description="Weave the daily slices into tapestry.svg")
    parser.add_argument("--data-dir", type=str, default=cfg.data_dir, help="Slice archive root (default: data/)")
    parser.add_argument("--output", type=str, default=cfg.output_path, help="SVG output path (default: tapestry.svg)")
    parser.add_argument("--readme", type=str, default=cfg.readme_path, help="Host document to splice (default: README.md)")
    parser.add_argument("--no-readme", action="store_true", help="Skip the README splice")
    args = parser.parse_args(argv)

    cfg = WeaveConfig(data_dir=args.data_dir, output_path=args.output, readme_path=args.readme)
    return weave(cfg, update_readme=not args.no_readme)


if __name__ == "__main__":
    sys.exit(main())
