"""
formatters.py - Text + JSON output for phrep results.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from .models import MatchRecord, SearchMode

# ANSI colors
BLUE = "\033[34m"
YELLOW = "\033[33m"
GREEN = "\033[32m"
MAGENTA = "\033[35m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"

ARROW = "→"
TOP_LEVEL = "<top-level>"


def _style(text: str, *codes: str, color: bool) -> str:
    if not color or not codes:
        return text
    return "".join(codes) + text + RESET


def display_path(path: str, home: str | None = None) -> str:
    """Abbreviate the home directory to `~` and drop a leading `./`."""
    if home is None:
        home = os.path.expanduser("~")
    if home and home != "~" and path.startswith(home):
        rest = path[len(home):]
        if not rest or rest.startswith(os.sep):
            path = "~" + rest
    if path.startswith("./"):
        path = path[2:]
    return path


def _function_label(match: MatchRecord) -> str:
    name = match.containing_function if match.mode is SearchMode.BASIC else match.name
    if not name:
        return TOP_LEVEL
    if match.class_name:
        return f"{match.class_name}::{name}()"
    return f"{name}()"


def format_match(match: MatchRecord, color: bool = False, home: str | None = None) -> str:
    """One hit, plus the function body when it carries one."""
    path = _style(display_path(match.file_path, home), BOLD, BLUE, color=color)
    text = match.matched_text.strip()

    if match.mode is SearchMode.GREP:
        return f"{path}:{match.line} {ARROW} {text}"

    if match.mode is SearchMode.PROPERTIES:
        owner = f"{match.class_name}::" if match.class_name else ""
        label = _style(f"{owner}${match.name}", BOLD, MAGENTA, color=color)
        return f"{path}: {label}:{match.line} {ARROW} {text}"

    label = _style(_function_label(match), BOLD, YELLOW, color=color)
    line = f"{path}: {label}:{match.line} {ARROW} {text}"

    if match.mode is SearchMode.METHOD and not match.has_body:
        return f"{line} " + _style("(no body)", DIM, color=color)
    if match.function_body is not None:
        body = _style(match.function_body, DIM, color=color)
        return f"{line}\n{body}\n"
    return line


def to_text(result, color: bool = False, home: str | None = None) -> str:
    """Every hit in discovery order, one block per match."""
    lines = []
    for hit in result.hits:
        for match in hit.matches:
            lines.append(format_match(match, color=color, home=home))
    return "\n".join(lines)


def summary(result, color: bool = False) -> str:
    """One-line run summary."""
    text = (
        f"{result.total_matches} matches in {result.files_matched} files "
        f"({result.files_searched} searched, {result.search_time_ms:.0f}ms)"
    )
    if result.errors:
        text += f", {len(result.errors)} unreadable"
    if result.malformed_files:
        text += f", {result.malformed_files} with unbalanced source"
    return _style(text, GREEN, color=color)


def to_json(result) -> dict[str, Any]:
    """JSON-serializable dict."""
    return {
        "query": result.query,
        "mode": result.mode.value,
        "files_searched": result.files_searched,
        "files_matched": result.files_matched,
        "total_matches": result.total_matches,
        "search_time_ms": result.search_time_ms,
        "malformed_files": result.malformed_files,
        "errors": result.errors,
        "hits": [
            {
                "filepath": hit.filepath,
                "total_matches": hit.total_matches,
                "matches": [m.to_dict() for m in hit.matches],
            }
            for hit in result.hits
        ],
    }
