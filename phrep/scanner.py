"""
scanner.py - Character-level lexer for PHP source.

Classifies every character as code, string literal or comment and tracks
the depth of `{ }` braces seen in code. Strings and comments never move the
brace depth, which is what lets the boundary extractor find the real end of
a function body.

Known limitation: heredoc/nowdoc bodies are not recognised and are scanned
as code, so braces inside them count.

No external dependencies. Pure stdlib.
"""

from __future__ import annotations

from typing import Iterator

from .models import LexState, ScannedChar

_QUOTES = {
    LexState.SINGLE_QUOTE: "'",
    LexState.DOUBLE_QUOTE: '"',
}


class SourceScanner:
    """
    One-shot scanner over a single file's text.

    Iterating yields ScannedChar for every character. After the stream is
    exhausted, final_state and final_depth describe how the file ended.
    A fresh scanner is needed per file.
    """

    def __init__(self, source: str):
        self.source = source
        self.final_state = LexState.CODE
        self.final_depth = 0
        self._consumed = False

    @property
    def malformed(self) -> bool:
        """True if the file ended inside a string/comment or with open braces."""
        unclosed = self.final_state not in (LexState.CODE, LexState.LINE_COMMENT)
        return unclosed or self.final_depth != 0

    def __iter__(self) -> Iterator[ScannedChar]:
        if self._consumed:
            raise RuntimeError("SourceScanner is single-use; create a new one per file")
        self._consumed = True
        return self._scan()

    def _scan(self) -> Iterator[ScannedChar]:
        source = self.source
        size = len(source)
        state = LexState.CODE
        depth = 0
        line = 1
        column = 0
        escaped = False
        comment_start = -1

        for offset, ch in enumerate(source):
            nxt = source[offset + 1] if offset + 1 < size else ""
            kind = state

            if state is LexState.CODE:
                if ch == "/" and nxt == "/":
                    kind = state = LexState.LINE_COMMENT
                elif ch == "#" and nxt != "[":
                    # `#[` opens a PHP 8 attribute, not a comment
                    kind = state = LexState.LINE_COMMENT
                elif ch == "/" and nxt == "*":
                    kind = state = LexState.BLOCK_COMMENT
                    comment_start = offset
                elif ch == "'":
                    kind = state = LexState.SINGLE_QUOTE
                elif ch == '"':
                    kind = state = LexState.DOUBLE_QUOTE
                elif ch == "{":
                    depth += 1
                elif ch == "}":
                    depth -= 1

            elif state is LexState.LINE_COMMENT:
                if ch == "\n":
                    kind = state = LexState.CODE

            elif state is LexState.BLOCK_COMMENT:
                # the '*' of the opener cannot also close: "/*/" stays open
                if ch == "/" and source[offset - 1] == "*" and offset - comment_start >= 3:
                    state = LexState.CODE

            else:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == _QUOTES[state]:
                    state = LexState.CODE

            yield ScannedChar(offset, line, column, ch, kind, depth)

            if ch == "\n":
                line += 1
                column = 0
            else:
                column += 1

        self.final_state = state
        self.final_depth = depth


def scan(source: str) -> Iterator[ScannedChar]:
    """Lazy scan of *source*. Convenience wrapper around SourceScanner."""
    return iter(SourceScanner(source))
