"""
matcher.py - Applies a compiled query to one file in one of four modes.

    grep        plain line hits, no structure needed
    basic       line hits tagged with the innermost enclosing function
    method      function/method names, with the whole body
    properties  class property names

`process()` is the per-file entry point: bytes in, MatchRecords out.
It touches nothing outside its arguments, so files can be processed in
parallel.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from itertools import islice
from typing import Iterator

from .boundaries import Extraction, FunctionIndex, analyze
from .models import FunctionRecord, MatchRecord, SearchMode
from .pattern import compile_query

logger = logging.getLogger(__name__)

CLOSURE_NAME = "{closure}"


def decode_source(data: bytes | str) -> str:
    """Decode file bytes as UTF-8, replacing undecodable bytes."""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")


def split_lines(content: str) -> list[tuple[int, str]]:
    """
    Split on `\\n` only, keeping each line's start offset.

    A trailing `\\r` is dropped from the text. A final newline does not
    produce an extra empty line, and empty content has no lines at all.
    """
    if not content:
        return []
    lines = []
    offset = 0
    parts = content.split("\n")
    if parts and parts[-1] == "" and len(parts) > 1:
        parts.pop()
    for part in parts:
        text = part[:-1] if part.endswith("\r") else part
        lines.append((offset, text))
        offset += len(part) + 1
    return lines


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


def _grep(
    pattern: re.Pattern, lines: list[tuple[int, str]], file_path: str
) -> Iterator[MatchRecord]:
    for number, (_, text) in enumerate(lines, start=1):
        if pattern.search(text):
            yield MatchRecord(file_path, number, text, SearchMode.GREP)


def _basic(
    pattern: re.Pattern,
    lines: list[tuple[int, str]],
    functions: list[FunctionRecord],
    file_path: str,
    print_body: bool,
) -> Iterator[MatchRecord]:
    index = FunctionIndex(functions)
    dumped: set[FunctionRecord] = set()

    for number, (start, text) in enumerate(lines, start=1):
        m = pattern.search(text)
        if m is None:
            continue

        record = index.containing(start + m.start())
        if record is None:
            yield MatchRecord(
                file_path, number, text, SearchMode.BASIC, containing_function=""
            )
            continue

        body = None
        if print_body and record not in dumped:
            dumped.add(record)
            body = record.body_text

        yield MatchRecord(
            file_path,
            number,
            text,
            SearchMode.BASIC,
            containing_function=record.name or CLOSURE_NAME,
            function_body=body,
            class_name=record.class_name,
        )


def _method(
    pattern: re.Pattern,
    lines: list[tuple[int, str]],
    functions: list[FunctionRecord],
    file_path: str,
) -> Iterator[MatchRecord]:
    for record in functions:
        if record.is_anonymous or not pattern.search(record.name):
            continue
        line = record.signature_start.line
        yield MatchRecord(
            file_path,
            line,
            lines[line - 1][1],
            SearchMode.METHOD,
            function_body=record.body_text,
            name=record.name,
            class_name=record.class_name,
            has_body=record.has_body,
        )


def _properties(
    pattern: re.Pattern,
    lines: list[tuple[int, str]],
    extraction: Extraction,
    file_path: str,
) -> Iterator[MatchRecord]:
    for prop in extraction.properties:
        if not pattern.search(prop.name):
            continue
        line = prop.position.line
        yield MatchRecord(
            file_path,
            line,
            lines[line - 1][1],
            SearchMode.PROPERTIES,
            name=prop.name,
            class_name=prop.class_name,
        )


def match(
    pattern: re.Pattern,
    mode: SearchMode,
    content: str,
    records: Extraction | list[FunctionRecord] | None = None,
    *,
    file_path: str = "",
    print_body: bool = False,
) -> Iterator[MatchRecord]:
    """
    Lazily yield MatchRecords for one file.

    Args:
        pattern: Compiled query
        mode: Search mode
        content: Decoded file text
        records: Extraction or FunctionRecords for *content*; extracted
            on demand when omitted (grep never needs them)
        file_path: Copied onto every record
        print_body: Basic mode only; attach each function's body to its
            first hit
    """
    mode = SearchMode(mode)
    lines = split_lines(content)

    if mode is SearchMode.GREP:
        yield from _grep(pattern, lines, file_path)
        return

    if records is None or (mode is SearchMode.PROPERTIES and not isinstance(records, Extraction)):
        records = analyze(content)
    functions = records.functions if isinstance(records, Extraction) else records

    if mode is SearchMode.BASIC:
        yield from _basic(pattern, lines, functions, file_path, print_body)
    elif mode is SearchMode.METHOD:
        yield from _method(pattern, lines, functions, file_path)
    else:
        yield from _properties(pattern, lines, records, file_path)


# ---------------------------------------------------------------------------
# Per-file pipeline
# ---------------------------------------------------------------------------


class PassState(Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    MATCHING = "matching"
    DONE = "done"


class FilePass:
    """
    One file through scan -> extract -> match.

    Grep skips straight to matching. Basic mode skips extraction when no
    line matches at all.
    """

    def __init__(
        self,
        file_path: str,
        source: str,
        pattern: re.Pattern,
        mode: SearchMode,
        print_body: bool = False,
    ):
        self.file_path = file_path
        self.source = source
        self.pattern = pattern
        self.mode = SearchMode(mode)
        self.print_body = print_body
        self.state = PassState.IDLE
        self.extraction: Extraction | None = None

    @property
    def malformed(self) -> bool:
        return self.extraction is not None and self.extraction.malformed

    def _needs_extraction(self) -> bool:
        if self.mode is SearchMode.GREP:
            return False
        if self.mode is SearchMode.BASIC:
            return any(self.pattern.search(text) for _, text in split_lines(self.source))
        return True

    def run(self, limit: int | None = None) -> list[MatchRecord]:
        """Run to completion, or stop after *limit* matches."""
        if self._needs_extraction():
            self.state = PassState.EXTRACTING
            self.extraction = analyze(self.source)
            if self.extraction.malformed:
                logger.debug(f"Unbalanced source in {self.file_path}")
        elif self.mode is not SearchMode.GREP:
            self.state = PassState.DONE
            return []

        self.state = PassState.MATCHING
        stream = match(
            self.pattern,
            self.mode,
            self.source,
            self.extraction,
            file_path=self.file_path,
            print_body=self.print_body,
        )
        matches = list(islice(stream, limit) if limit is not None else stream)
        self.state = PassState.DONE
        return matches


def process(
    file_path: str,
    file_bytes: bytes | str,
    query: str | re.Pattern,
    mode: SearchMode,
    print_body: bool = False,
    limit: int | None = None,
) -> list[MatchRecord]:
    """
    Search one file.

    A string query is compiled here (InvalidPattern propagates); pass a
    compiled pattern to reuse one across files.
    """
    pattern = query if isinstance(query, re.Pattern) else compile_query(query)
    source = decode_source(file_bytes)
    return FilePass(file_path, source, pattern, mode, print_body).run(limit)
