"""
phrep - Grep inside PHP functions and methods.

Function-aware search for PHP source trees. Knows where every function
body starts and ends (strings and comments included), so a hit can be
reported with its enclosing method, or a method can be found by name and
dumped whole.

Usage:
    from phrep import PhpSearch, SearchMode

    search = PhpSearch("src/")
    result = search.hunt("sendMail")                       # hits + function
    result = search.hunt("^save", mode=SearchMode.METHOD)  # whole bodies
    print(result.to_text())

Per file:
    from phrep import process
    matches = process("User.php", data, "save", SearchMode.METHOD)

CLI:
    phrep 'sendMail' -d src/
    phrep -m 'save' -d app/
"""

__version__ = "0.3.0"

from .boundaries import (
    Extraction,
    FunctionIndex,
    analyze,
    extract,
    extract_all,
    find_containing_function,
    find_functions,
)
from .errors import InvalidPattern, PhrepError, UnreadableFile
from .matcher import FilePass, match, process
from .models import (
    ClassRecord,
    FileHit,
    FunctionRecord,
    LexState,
    MatchRecord,
    PropertyRecord,
    ScannedChar,
    SearchMode,
    SearchResult,
    SourcePosition,
)
from .pattern import compile_query, get_identifier_variations, split_identifier
from .scanner import SourceScanner, scan
from .search import PhpSearch
from .walker import FileFilter, iter_php_files, read_source

__all__ = [
    "PhpSearch",
    "SearchResult",
    "FileHit",
    "MatchRecord",
    "SearchMode",
    "FunctionRecord",
    "ClassRecord",
    "PropertyRecord",
    "SourcePosition",
    "ScannedChar",
    "LexState",
    "SourceScanner",
    "scan",
    "Extraction",
    "FunctionIndex",
    "extract",
    "extract_all",
    "analyze",
    "find_functions",
    "find_containing_function",
    "FilePass",
    "match",
    "process",
    "compile_query",
    "split_identifier",
    "get_identifier_variations",
    "FileFilter",
    "iter_php_files",
    "read_source",
    "PhrepError",
    "InvalidPattern",
    "UnreadableFile",
]
