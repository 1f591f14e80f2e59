"""
boundaries.py - Function, class and property boundaries in PHP source.

Consumes the scanner stream and finds every `function` signature and the
matching closing brace of its body. Class-like bodies (class, interface,
trait, enum) are tracked the same way so methods know their class and
property declarations can be collected.

Depth comes from the scanner, so braces inside strings and comments are
already ignored here. A body closes at the `}` whose depth returns to the
depth recorded when the body was entered.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Iterable

from .models import (
    ClassRecord,
    FunctionRecord,
    LexState,
    PropertyRecord,
    ScannedChar,
    SourcePosition,
)
from .scanner import SourceScanner

CLASS_KEYWORDS = frozenset({"class", "interface", "trait", "enum"})

# `$function`, `->function`, `?->function`, `Foo::class` are not keywords
_MEMBER_PREFIXES = ("$", "->", "::")

_PROPERTY_MODIFIERS = re.compile(
    r"\s*(?:#\[.*?\]\s*)*(?:(?:public|protected|private|var|static|readonly)\b\s*)+",
    re.IGNORECASE | re.DOTALL,
)
_PROPERTY_NAME = re.compile(r"\$(\w+)")


def _is_ident(ch: str) -> bool:
    return ch.isalnum() or ch == "_" or ord(ch) >= 0x80


@dataclass
class Extraction:
    """Everything the extractor found in one file."""

    functions: list[FunctionRecord] = field(default_factory=list)
    classes: list[ClassRecord] = field(default_factory=list)
    properties: list[PropertyRecord] = field(default_factory=list)
    malformed: bool = False


@dataclass
class _Signature:
    """A `function` keyword waiting for its `{` or `;`."""

    start: SourcePosition
    phase: str = "name"  # 'name' -> 'params' -> 'tail'
    name: list[str] = field(default_factory=list)
    params: list[str] = field(default_factory=list)
    tail: list[str] = field(default_factory=list)
    paren_depth: int = 0


@dataclass
class _ClassHeader:
    """A class-like keyword waiting for its `{`."""

    kind: str
    start: SourcePosition
    phase: str = "name"  # 'name' -> 'header'
    name: list[str] = field(default_factory=list)
    paren_depth: int = 0


@dataclass
class _Scope:
    record: FunctionRecord | ClassRecord
    entry_depth: int
    body_offset: int


class _Extractor:
    def __init__(self):
        self.result = Extraction()
        self._chars: list[str] = []
        self._scopes: list[_Scope] = []
        self._sig: _Signature | None = None
        self._header: _ClassHeader | None = None
        self._word: list[str] = []
        self._word_start: ScannedChar | None = None
        self._word_prefix = ""
        self._recent = ""  # last two non-blank code chars
        self._stmt: list[ScannedChar] = []
        self._last: ScannedChar | None = None

    # ── stream ──────────────────────────────────────────────────────

    def feed(self, sc: ScannedChar) -> None:
        self._chars.append(sc.char)
        self._last = sc
        code = sc.state is LexState.CODE
        before = self._recent
        if code and not sc.char.isspace():
            self._recent = (before + sc.char)[-2:]

        if self._sig is not None and self._feed_signature(sc):
            return
        if self._header is not None and self._feed_header(sc):
            return

        if code and _is_ident(sc.char):
            if not self._word:
                self._word_prefix = before
                self._word_start = sc
            self._word.append(sc.char)
            self._track_statement(sc)
            return

        if self._word and self._finish_word():
            self._stmt = []
            if self._sig is not None and self._feed_signature(sc):
                return
            if self._header is not None and self._feed_header(sc):
                return

        self._track_statement(sc)
        if code and sc.char == "}":
            self._close_scopes(sc)

    def finish(self) -> Extraction:
        """Close anything still open at EOF."""
        last = self._last
        while self._scopes:
            scope = self._scopes.pop()
            record = scope.record
            record.body_end = last.position
            if isinstance(record, FunctionRecord):
                record.body_text = "".join(self._chars[scope.body_offset:])
                record.terminated = False
            self.result.malformed = True
        self._sig = None
        self._header = None
        return self.result

    # ── keywords ────────────────────────────────────────────────────

    def _finish_word(self) -> bool:
        """Check the completed word; True if a signature or header started."""
        word = "".join(self._word).lower()
        start = self._word_start
        self._word = []
        self._word_start = None

        if self._word_prefix.endswith(_MEMBER_PREFIXES):
            return False
        if word == "function":
            self._sig = _Signature(start=start.position)
            return True
        if word in CLASS_KEYWORDS:
            self._header = _ClassHeader(kind=word, start=start.position)
            return True
        return False

    # ── function signatures ─────────────────────────────────────────

    def _feed_signature(self, sc: ScannedChar) -> bool:
        """Advance the pending signature. False means the char was not used."""
        sig = self._sig
        ch = sc.char
        code = sc.state is LexState.CODE

        if sig.phase == "name":
            if not code:
                return True
            if ch == "(":
                sig.phase = "params"
                sig.paren_depth = 1
                return True
            if _is_ident(ch) or ch == "&" or ch.isspace():
                sig.name.append(ch)
                return True
            self._sig = None
            return False

        if sig.phase == "params":
            if code:
                if ch == "(":
                    sig.paren_depth += 1
                elif ch == ")":
                    sig.paren_depth -= 1
                    if sig.paren_depth == 0:
                        sig.phase = "tail"
                        return True
            sig.params.append(ch)
            return True

        # tail: optional `use (...)` and `: type`, then `{` or `;`
        if not code:
            return True
        if ch == "(":
            sig.paren_depth += 1
        elif ch == ")":
            if sig.paren_depth == 0:
                self._sig = None
                return False
            sig.paren_depth -= 1
        elif ch == "}":
            self._sig = None
            return False
        elif ch == "{" and sig.paren_depth == 0:
            self._open_function(sig, sc)
            return True
        elif ch == ";" and sig.paren_depth == 0:
            self._open_function(sig, None)
            return True
        sig.tail.append(ch)
        return True

    def _open_function(self, sig: _Signature, brace: ScannedChar | None) -> None:
        self._sig = None
        name = "".join(sig.name).replace("&", "").strip()
        if any(ch.isspace() for ch in name):
            return

        record = FunctionRecord(
            name=name,
            parameters="".join(sig.params),
            signature_start=sig.start,
            return_type=_return_type("".join(sig.tail)),
            class_name=self._direct_class(),
        )
        record.enclosing = self._innermost_function()
        self.result.functions.append(record)

        if brace is not None:
            record.body_start = brace.position
            self._scopes.append(_Scope(record, brace.depth - 1, brace.offset))

    # ── class-like headers ──────────────────────────────────────────

    def _feed_header(self, sc: ScannedChar) -> bool:
        header = self._header
        ch = sc.char
        code = sc.state is LexState.CODE

        if not code:
            return True

        if header.phase == "name":
            if _is_ident(ch):
                header.name.append(ch)
                return True
            if ch.isspace() and not header.name:
                return True
            if header.name:
                header.phase = "header"
            elif header.kind == "class" and ch in "({":
                # anonymous class: `new class(...) extends Foo {`
                header.phase = "header"
            else:
                self._header = None
                return False

        if ch == "(":
            header.paren_depth += 1
        elif ch == ")":
            header.paren_depth -= 1
        elif ch == "{" and header.paren_depth <= 0:
            self._header = None
            record = ClassRecord(
                kind=header.kind,
                name="".join(header.name),
                signature_start=header.start,
                body_start=sc.position,
            )
            self.result.classes.append(record)
            self._scopes.append(_Scope(record, sc.depth - 1, sc.offset))
        elif ch in ";}":
            self._header = None
            return False
        return True

    # ── scopes ──────────────────────────────────────────────────────

    def _close_scopes(self, sc: ScannedChar) -> None:
        while self._scopes and self._scopes[-1].entry_depth >= sc.depth:
            scope = self._scopes.pop()
            scope.record.body_end = sc.position
            if isinstance(scope.record, FunctionRecord):
                scope.record.body_text = "".join(self._chars[scope.body_offset:sc.offset + 1])

    def _innermost_function(self) -> FunctionRecord | None:
        for scope in reversed(self._scopes):
            if isinstance(scope.record, FunctionRecord):
                return scope.record
        return None

    def _direct_class(self) -> str | None:
        if self._scopes and isinstance(self._scopes[-1].record, ClassRecord):
            return self._scopes[-1].record.name or None
        return None

    # ── properties ──────────────────────────────────────────────────

    def _track_statement(self, sc: ScannedChar) -> None:
        """Collect code chars of statements sitting directly in a class body."""
        if not self._scopes:
            return
        scope = self._scopes[-1]
        if not isinstance(scope.record, ClassRecord):
            return
        if sc.state is not LexState.CODE:
            return

        ch = sc.char
        if ch in "{}" or sc.depth != scope.entry_depth + 1:
            self._stmt = []
            return
        if ch == ";":
            self._finish_statement(scope.record, sc)
            self._stmt = []
            return
        if self._stmt or not ch.isspace():
            self._stmt.append(sc)

    def _finish_statement(self, cls: ClassRecord, end: ScannedChar) -> None:
        if not self._stmt:
            return
        code = "".join(s.char for s in self._stmt)
        prefix = _PROPERTY_MODIFIERS.match(code)
        if prefix is None or prefix.end() == 0:
            return

        first = self._stmt[0]
        declaration = "".join(self._chars[first.offset:end.offset + 1])
        for m in _PROPERTY_NAME.finditer(code, prefix.end()):
            dollar = self._stmt[m.start()]
            self.result.properties.append(
                PropertyRecord(
                    name=m.group(1),
                    declaration=declaration,
                    position=dollar.position,
                    class_name=cls.name or None,
                )
            )


def _return_type(tail: str) -> str | None:
    """Text after the top-level `:` of a signature tail, if any."""
    depth = 0
    for i, ch in enumerate(tail):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == ":" and depth == 0:
            return tail[i + 1:].strip() or None
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_all(stream: Iterable[ScannedChar]) -> Extraction:
    """
    Run the extractor over a scanner stream.

    Returns functions, classes and properties in file order. When the
    stream is a SourceScanner, its end-of-file state feeds `malformed`.
    """
    extractor = _Extractor()
    for sc in stream:
        extractor.feed(sc)
    result = extractor.finish()
    if isinstance(stream, SourceScanner) and stream.malformed:
        result.malformed = True
    return result


def extract(stream: Iterable[ScannedChar]) -> list[FunctionRecord]:
    """Ordered FunctionRecords from a scanner stream."""
    return extract_all(stream).functions


def analyze(source: str) -> Extraction:
    """Scan and extract one file's text."""
    return extract_all(SourceScanner(source))


def find_functions(source: str) -> list[FunctionRecord]:
    """Ordered FunctionRecords for *source*."""
    return analyze(source).functions


class FunctionIndex:
    """Innermost-function lookup by offset over one file's records."""

    def __init__(self, records: list[FunctionRecord]):
        self.records = [r for r in records if r.has_body]
        self._starts = [r.signature_start.offset for r in self.records]

    def containing(self, offset: int) -> FunctionRecord | None:
        idx = bisect_right(self._starts, offset) - 1
        if idx < 0:
            return None
        # records nest properly, so the container is on the enclosing chain
        record = self.records[idx]
        while record is not None and not record.contains(offset):
            record = record.enclosing
        return record


def find_containing_function(
    offset: int, records: list[FunctionRecord]
) -> FunctionRecord | None:
    """Find the innermost function whose span holds a character offset."""
    return FunctionIndex(records).containing(offset)
