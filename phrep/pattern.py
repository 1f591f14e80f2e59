"""
pattern.py - Turns the search query into one compiled regex.

The query is a regular expression by default. Literal and fuzzy
(identifier variation) queries are opt-in. Compilation happens once per
run; the compiled pattern is shared read-only by every worker.
"""

from __future__ import annotations

import re

from .errors import InvalidPattern


def split_identifier(name: str) -> list[str]:
    """
    Split an identifier into component words.

    Handles:
    - camelCase: getUserName -> [get, User, Name]
    - PascalCase: GetUserName -> [Get, User, Name]
    - snake_case: get_user_name -> [get, user, name]
    - SCREAMING_SNAKE: GET_USER_NAME -> [GET, USER, NAME]
    - namespaces: App\\Models\\User -> [App, Models, User]
    """
    parts = re.split(r"[-_.\s\\]+", name)

    result = []
    for part in parts:
        if not part:
            continue
        camel_parts = re.findall(
            r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\W|$)|\d+", part
        )
        if camel_parts:
            result.extend(camel_parts)
        else:
            result.append(part)

    return [p for p in result if p]


def build_fuzzy_pattern(term: str) -> str:
    """
    Regex source matching identifier variations of *term*.

    "getUserName" matches getUserName, get_user_name, GetUserName and
    GET_USER_NAME when compiled case-insensitively.
    """
    parts = split_identifier(term)
    if not parts:
        return re.escape(term)
    return r"_?".join(re.escape(p) for p in parts)


def get_identifier_variations(term: str) -> list[str]:
    """Human-readable list of the spellings a fuzzy query covers."""
    parts = split_identifier(term)

    if not parts:
        return [term]

    lower_parts = [p.lower() for p in parts]

    return [
        "_".join(lower_parts),                                         # get_user_name
        "".join(p.capitalize() for p in lower_parts),                  # GetUserName
        lower_parts[0] + "".join(p.capitalize() for p in lower_parts[1:]),  # getUserName
        "_".join(p.upper() for p in lower_parts),                      # GET_USER_NAME
    ]


def compile_query(
    query: str,
    *,
    ignore_case: bool = False,
    literal: bool = False,
    fuzzy: bool = False,
) -> re.Pattern:
    """
    Compile the user's query.

    Args:
        query: Regex source (or plain text with literal=True)
        ignore_case: Case-insensitive matching (fuzzy implies it)
        literal: Escape the query so it matches verbatim
        fuzzy: Match identifier variations (camelCase / snake_case)

    Raises:
        InvalidPattern: Empty query or a regex that does not compile
    """
    if not query:
        raise InvalidPattern(query, "query cannot be empty")

    if fuzzy:
        source = build_fuzzy_pattern(query)
        ignore_case = True
    elif literal:
        source = re.escape(query)
    else:
        source = query

    flags = re.IGNORECASE if ignore_case else 0
    try:
        return re.compile(source, flags)
    except re.error as e:
        raise InvalidPattern(query, str(e)) from e
