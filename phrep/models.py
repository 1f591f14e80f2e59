"""phrep data models. Every struct that flows through the search pipeline."""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple


class LexState(Enum):
    """Lexical context of a single character."""

    CODE = "code"
    SINGLE_QUOTE = "single_quote"
    DOUBLE_QUOTE = "double_quote"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"


class SearchMode(Enum):
    """How a query is applied to a file."""

    BASIC = "basic"  # line hits + enclosing function
    GREP = "grep"  # plain line hits
    METHOD = "method"  # function/method names
    PROPERTIES = "properties"  # class property names


@dataclass(frozen=True)
class SourcePosition:
    """A point in decoded source text."""

    line: int  # 1-based
    column: int  # 0-based
    offset: int


class ScannedChar(NamedTuple):
    """One element of the scanner stream."""

    offset: int
    line: int
    column: int
    char: str
    state: LexState
    depth: int  # brace depth after this char

    @property
    def position(self) -> SourcePosition:
        return SourcePosition(self.line, self.column, self.offset)


@dataclass(eq=False)
class FunctionRecord:
    """A function, method or closure definition."""

    name: str
    parameters: str
    signature_start: SourcePosition
    return_type: str | None = None
    body_start: SourcePosition | None = None
    body_end: SourcePosition | None = None
    body_text: str | None = None
    class_name: str | None = None
    terminated: bool = True
    _enclosing: weakref.ref | None = field(default=None, repr=False)

    @property
    def enclosing(self) -> FunctionRecord | None:
        """Nearest outer function, if it is still alive."""
        if self._enclosing is None:
            return None
        return self._enclosing()

    @enclosing.setter
    def enclosing(self, record: FunctionRecord | None) -> None:
        self._enclosing = weakref.ref(record) if record is not None else None

    @property
    def has_body(self) -> bool:
        return self.body_start is not None

    @property
    def is_anonymous(self) -> bool:
        return not self.name

    def contains(self, offset: int) -> bool:
        """True if *offset* falls between the signature and the closing brace."""
        if self.body_end is None:
            return False
        return self.signature_start.offset <= offset <= self.body_end.offset


@dataclass(eq=False)
class ClassRecord:
    """A class, interface, trait or enum body."""

    kind: str  # 'class', 'interface', 'trait', 'enum'
    name: str
    signature_start: SourcePosition
    body_start: SourcePosition | None = None
    body_end: SourcePosition | None = None


@dataclass
class PropertyRecord:
    """One declared class property."""

    name: str
    declaration: str
    position: SourcePosition
    class_name: str | None = None


@dataclass
class MatchRecord:
    """A single search hit."""

    file_path: str
    line: int
    matched_text: str
    mode: SearchMode
    containing_function: str | None = None  # basic mode; "" = top-level, "{closure}" = anonymous
    function_body: str | None = None
    name: str | None = None  # matched declaration (method / properties)
    class_name: str | None = None
    has_body: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "line": self.line,
            "matched_text": self.matched_text,
            "mode": self.mode.value,
            "containing_function": self.containing_function,
            "name": self.name,
            "function_body": self.function_body,
            "class_name": self.class_name,
            "has_body": self.has_body,
        }


@dataclass
class FileHit:
    """All matches within a single file."""

    filepath: str
    matches: list[MatchRecord]
    malformed: bool = False

    @property
    def total_matches(self) -> int:
        return len(self.matches)


@dataclass
class SearchResult:
    """Complete search result."""

    query: str
    mode: SearchMode
    files_searched: int
    hits: list[FileHit]
    search_time_ms: float
    errors: list[str] = field(default_factory=list)
    malformed_files: int = 0

    @property
    def files_matched(self) -> int:
        return len(self.hits)

    @property
    def total_matches(self) -> int:
        return sum(hit.total_matches for hit in self.hits)

    def to_text(self, color: bool = False) -> str:
        """Grep-style text with function names."""
        from .formatters import to_text
        return to_text(self, color=color)

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable dict."""
        from .formatters import to_json
        return to_json(self)
