"""Capture the user frames that opened a step, for display in step extras."""

from __future__ import annotations

import traceback
from pathlib import Path

_PACKAGE_DIR = Path(__file__).resolve().parent
_CONTEXTLIB_FILE = Path(traceback.__file__).resolve().parent / "contextlib.py"


def capture_caller(depth: int = 5) -> str:
    """Return up to ``depth`` innermost frames outside this package, one per line."""

    if depth <= 0:
        return ""
    frames = traceback.extract_stack()[:-1]
    lines: list[str] = []
    for frame in reversed(frames):
        if _is_internal(frame.filename):
            continue
        lines.append(format_frame(frame.filename, frame.lineno, frame.name))
        if len(lines) >= depth:
            break
    return "\n".join(lines)


def format_frame(filename: str, lineno: int | None, name: str) -> str:
    return f"{filename}:{lineno or 0} in {name}"


def _is_internal(filename: str) -> bool:
    try:
        path = Path(filename).resolve()
    except (OSError, ValueError):
        return False
    if path == _CONTEXTLIB_FILE:
        return True
    return _PACKAGE_DIR in path.parents
