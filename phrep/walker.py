"""
walker.py - PHP source file discovery.

Walks a directory tree in a stable (sorted) order, prunes excluded
directories, and keeps files by extension, name filter and glob. The
order produced here is the order results are reported in.

No external dependencies. Pure stdlib.
"""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator

from .errors import UnreadableFile

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_EXTENSIONS: frozenset[str] = frozenset({".php"})

# Directory names to skip entirely during traversal
IGNORE_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        ".idea",
        ".vscode",
        "node_modules",
        "vendor",
        "cache",
        ".phpunit.cache",
        ".php-cs-fixer.cache",
        "coverage",
    }
)

# Maximum file size to read (5 MB)
MAX_FILE_SIZE_BYTES: int = 5 * 1024 * 1024


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_binary(path: Path) -> bool:
    """
    Quick binary-file heuristic: read the first 8 KB and look for null bytes.

    Unreadable files are not treated as binary; the read step reports them.
    """
    try:
        with path.open("rb") as fh:
            chunk = fh.read(8192)
        return b"\x00" in chunk
    except OSError:
        return False


def read_source(path: Path | str) -> bytes:
    """
    Read a whole file into memory.

    Raises:
        UnreadableFile: Permission or any other OS-level read error
    """
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise UnreadableFile(str(path), e.strerror or str(e)) from e


class FileFilter:
    """Decides which files and directories take part in a search."""

    def __init__(
        self,
        extensions: Iterable[str] | None = None,
        name_contains: str | None = None,
        glob: str | None = None,
        exclude_dirs: Iterable[str] | None = None,
        max_size: int = MAX_FILE_SIZE_BYTES,
    ):
        exts = extensions if extensions is not None else DEFAULT_EXTENSIONS
        self.extensions = {e if e.startswith(".") else f".{e}" for e in exts}
        self.name_contains = name_contains or None
        self.glob = glob or None
        self.exclude_dirs = IGNORE_DIRS | set(exclude_dirs or ())
        self.max_size = max_size

    def skip_dir(self, dirname: str) -> bool:
        return dirname in self.exclude_dirs

    def accept(self, path: Path) -> bool:
        if path.suffix.lower() not in self.extensions:
            return False
        if self.name_contains and self.name_contains not in path.name:
            return False
        if self.glob and not fnmatch.fnmatch(path.name, self.glob):
            return False

        try:
            size = path.stat().st_size
        except OSError:
            # let read_source report it
            return True
        if size > self.max_size:
            logger.info(f"Skipping {path}: {size} bytes exceeds {self.max_size}")
            return False
        if _is_binary(path):
            logger.info(f"Skipping binary file {path}")
            return False
        return True


def _warn_walk_error(error: OSError) -> None:
    logger.warning(f"Cannot read directory {error.filename}: {error.strerror}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def iter_php_files(root: str | Path, file_filter: FileFilter | None = None) -> Iterator[Path]:
    """
    Yield candidate files under *root* in sorted, depth-first order.

    A *root* that is a file is yielded as-is when the filter accepts it.
    Paths keep the form of *root* (relative roots give relative paths).
    """
    file_filter = file_filter or FileFilter()
    root = Path(root)

    if root.is_file():
        if file_filter.accept(root):
            yield root
        return
    if not root.is_dir():
        logger.warning(f"Search root does not exist: {root}")
        return

    for dirpath, dirnames, filenames in os.walk(root, onerror=_warn_walk_error):
        # Prune unwanted directories in-place so os.walk won't descend.
        dirnames[:] = sorted(d for d in dirnames if not file_filter.skip_dir(d))

        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if file_filter.accept(path):
                yield path
