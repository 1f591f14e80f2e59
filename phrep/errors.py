"""Exceptions raised by phrep."""


class PhrepError(Exception):
    """Base class for phrep errors."""


class InvalidPattern(PhrepError, ValueError):
    """The query is empty or does not compile as a regular expression."""

    def __init__(self, query: str, reason: str):
        self.query = query
        self.reason = reason
        super().__init__(f"Invalid pattern {query!r}: {reason}")


class UnreadableFile(PhrepError):
    """A source file could not be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")
