from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from collector.postprocess import run

DEFAULT_API_URL = "https://api.ossinsight.io/v1/trends/repos/?period=past_24_hours"


@dataclass
class CollectorConfig:
    api_url: str
    user_agent: str
    timeout_s: float
    data_dir: str

    @property
    def raw_path(self) -> Path:
        return Path(self.data_dir) / "raw" / "trending.json"


def load_config_from_env() -> CollectorConfig:
    return CollectorConfig(
        api_url=os.environ.get("TAPESTRY_API_URL", "").strip() or DEFAULT_API_URL,
        user_agent=os.environ.get("TAPESTRY_USER_AGENT", "data-tapestry/0.1"),
        timeout_s=float(os.environ.get("TAPESTRY_TIMEOUT_S", "20")),
        data_dir=os.environ.get("TAPESTRY_DATA_DIR", "data"),
    )


def fetch_trending(client: httpx.Client, url: str) -> Dict[str, Any]:
    """
    Fetch the trending payload once.

    Failure modes:
        - Raises httpx.HTTPStatusError on a non-2xx response
        - Raises httpx.TransportError on timeouts and connection failures
        - Raises ValueError if the body is not JSON
    No retries: the daily schedule is the retry.
    """
    resp = client.get(url, headers={"Accept": "application/json"})
    resp.raise_for_status()
    return resp.json()


def save_raw(raw: Dict[str, Any], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(raw, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")


def run_once(cfg: CollectorConfig, transport: Optional[httpx.BaseTransport] = None) -> int:
    headers = {"User-Agent": cfg.user_agent}
    with httpx.Client(timeout=cfg.timeout_s, headers=headers, transport=transport) as client:
        try:
            raw = fetch_trending(client, cfg.api_url)
        except httpx.HTTPStatusError as e:
            print(f"[collector] ERROR: http_status:{e.response.status_code} from {cfg.api_url}", file=sys.stderr)
            return 1
        except httpx.TransportError as e:
            print(f"[collector] ERROR: network:{type(e).__name__} fetching {cfg.api_url}", file=sys.stderr)
            return 1
        except ValueError as e:
            print(f"[collector] ERROR: json_parse:{type(e).__name__} from {cfg.api_url}", file=sys.stderr)
            return 1

    # The raw copy is only kept once the payload has produced a slice.
    code = run(raw, Path(cfg.data_dir))
    if code == 0:
        save_raw(raw, cfg.raw_path)
        print(f"[collector] Saved raw response -> {cfg.raw_path}")
    return code


def main(argv: Optional[List[str]] = None) -> int:
    cfg = load_config_from_env()

    parser = argparse.ArgumentParser(description="Fetch today's trending repositories and store a slice")
    parser.add_argument("--url", type=str, default=cfg.api_url, help="Trending endpoint (default: $TAPESTRY_API_URL)")
    parser.add_argument("--data-dir", type=str, default=cfg.data_dir, help="Slice archive root (default: data/)")
    parser.add_argument("--timeout", type=float, default=cfg.timeout_s, help="Request timeout in seconds")
    args = parser.parse_args(argv)

    cfg = replace(cfg, api_url=args.url, data_dir=args.data_dir, timeout_s=args.timeout)
    return run_once(cfg)


if __name__ == "__main__":
    sys.exit(main())
