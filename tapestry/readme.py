from __future__ import annotations

from pathlib import Path
from typing import List, Optional

START_MARKER = "<!-- TAPESTRY:START -->"
END_MARKER = "<!-- TAPESTRY:END -->"


def _find_marker(lines: List[str], marker: str, start: int = 0) -> Optional[int]:
    for i in range(start, len(lines)):
        if lines[i].strip() == marker:
            return i
    return None


def splice(document: str, fragment: str) -> Optional[str]:
    """
    Replace the lines strictly between the sentinel lines with `fragment`.

    Returns None when either sentinel is missing (or END precedes START), so
    an unprepared document is never rewritten.
    """
    lines = document.splitlines(keepends=True)
    start = _find_marker(lines, START_MARKER)
    if start is None:
        return None
    end = _find_marker(lines, END_MARKER, start + 1)
    if end is None:
        return None

    if not lines[start].endswith("\n"):
        lines[start] += "\n"
    body = fragment.strip("\n")
    inner = [line + "\n" for line in body.split("\n")] if body else []
    return "".join(lines[: start + 1] + inner + lines[end:])


def update_readme(readme_path: Path, fragment: str) -> bool:
    """
    Splice `fragment` into the host document in place.

    Returns True if the file was rewritten. A missing file or missing sentinels
    skip the update with a console message; neither is an error.
    """
    readme_path = Path(readme_path)
    if not readme_path.exists():
        print(f"[tapestry] {readme_path} not found; skipping README update")
        return False

    document = readme_path.read_text(encoding="utf-8")
    updated = splice(document, fragment)
    if updated is None:
        print(f"[tapestry] Sentinels {START_MARKER} / {END_MARKER} not found in {readme_path}; skipping README update")
        return False

    if updated == document:
        print(f"[tapestry] {readme_path} already up to date")
        return False

    readme_path.write_text(updated, encoding="utf-8")
    print(f"[tapestry] Updated {readme_path}")
    return True
