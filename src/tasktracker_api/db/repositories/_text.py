"""
tasktracker_api.db.repositories._text

LIKE pattern helpers. User search terms are matched literally, so `%` and `_`
are escaped before being wrapped in wildcards.
"""

from __future__ import annotations

LIKE_ESCAPE = "\\"


def escape_like(term: str) -> str:
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def contains_pattern(term: str) -> str:
    return f"%{escape_like(term)}%"


def prefix_pattern(term: str) -> str:
    return f"{escape_like(term)}%"
