"""
search.py - The driver. Walk, read, process, collect.

PhpSearch class with hunt(), files and _process_file().
Files are processed on a ThreadPoolExecutor; results are consumed in
discovery order, never completion order, so output is reproducible.
"""

from __future__ import annotations

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable

from .errors import UnreadableFile
from .matcher import FilePass, decode_source
from .models import FileHit, SearchMode, SearchResult
from .pattern import compile_query, get_identifier_variations
from .walker import DEFAULT_EXTENSIONS, MAX_FILE_SIZE_BYTES, FileFilter, iter_php_files, read_source

logger = logging.getLogger(__name__)

MAX_WORKERS = 8


class PhpSearch:
    """
    Function-aware search over a PHP tree.

        PhpSearch("src/").hunt("save", mode=SearchMode.METHOD)
        PhpSearch(".", name_contains="Controller").hunt(r"\\$request->")
    """

    def __init__(
        self,
        root_path: str = ".",
        *,
        extensions: Iterable[str] | None = None,
        name_contains: str | None = None,
        glob: str | None = None,
        exclude_dirs: Iterable[str] | None = None,
        max_file_size: int = MAX_FILE_SIZE_BYTES,
        workers: int = MAX_WORKERS,
    ):
        self.root_path = Path(root_path)
        self.filter = FileFilter(
            extensions=extensions if extensions is not None else DEFAULT_EXTENSIONS,
            name_contains=name_contains,
            glob=glob,
            exclude_dirs=exclude_dirs,
            max_size=max_file_size,
        )
        self.workers = max(1, workers)
        self._files_cache: list[Path] | None = None

    @property
    def files(self) -> list[Path]:
        """Searchable files in discovery order (cached after first call)."""
        if self._files_cache is None:
            self._files_cache = list(iter_php_files(self.root_path, self.filter))
        return self._files_cache

    def _process_file(
        self,
        filepath: Path,
        pattern: re.Pattern,
        mode: SearchMode,
        print_body: bool,
        limit: int | None,
    ) -> FileHit:
        """Read and search a single file. UnreadableFile propagates."""
        source = decode_source(read_source(filepath))
        file_pass = FilePass(str(filepath), source, pattern, mode, print_body)
        matches = file_pass.run(limit)
        return FileHit(filepath=str(filepath), matches=matches, malformed=file_pass.malformed)

    def _safe_process(self, filepath: Path, *args) -> FileHit | UnreadableFile:
        try:
            return self._process_file(filepath, *args)
        except UnreadableFile as e:
            return e

    def hunt(
        self,
        query: str | re.Pattern,
        *,
        mode: SearchMode = SearchMode.BASIC,
        print_body: bool = False,
        ignore_case: bool = False,
        literal: bool = False,
        fuzzy: bool = False,
        max_matches: int | None = None,
    ) -> SearchResult:
        """
        Search every discovered file.

        Args:
            query: Regex source or a precompiled pattern
            mode: basic, grep, method or properties
            print_body: Basic mode: include each matching function's body once
            ignore_case / literal / fuzzy: Query compilation flags
            max_matches: Stop once this many matches are collected

        Raises:
            InvalidPattern: Before any file is touched
            ValueError: Negative max_matches
        """
        if max_matches is not None and max_matches < 0:
            raise ValueError(f"max_matches must be zero or more, got {max_matches}")

        start = time.perf_counter()
        mode = SearchMode(mode)

        if isinstance(query, re.Pattern):
            pattern = query
            term = query.pattern
        else:
            pattern = compile_query(query, ignore_case=ignore_case, literal=literal, fuzzy=fuzzy)
            term = query
            if fuzzy:
                logger.info(f"Fuzzy query covers: {', '.join(get_identifier_variations(query))}")

        files = self.files
        logger.info(f"Searching {len(files)} files for {term!r} ({mode.value} mode)")

        hits: list[FileHit] = []
        errors: list[str] = []
        malformed = 0
        total = 0

        with ThreadPoolExecutor(max_workers=min(self.workers, len(files) or 1)) as executor:
            # map() yields in submission order regardless of completion order
            results = executor.map(
                lambda fp: self._safe_process(fp, pattern, mode, print_body, max_matches),
                files,
            )
            for filepath, result in zip(files, results):
                if isinstance(result, UnreadableFile):
                    logger.warning(str(result))
                    errors.append(str(result))
                    continue
                if result.malformed:
                    malformed += 1
                if not result.matches:
                    continue

                if max_matches is not None and total + result.total_matches > max_matches:
                    result.matches = result.matches[: max_matches - total]
                hits.append(result)
                total += result.total_matches
                if max_matches is not None and total >= max_matches:
                    logger.info(f"Reached {max_matches} matches, stopping at {filepath}")
                    executor.shutdown(wait=False, cancel_futures=True)
                    break

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{total} matches in {len(hits)} files in {elapsed_ms:.0f}ms")

        return SearchResult(
            query=term,
            mode=mode,
            files_searched=len(files),
            hits=hits,
            search_time_ms=elapsed_ms,
            errors=errors,
            malformed_files=malformed,
        )
