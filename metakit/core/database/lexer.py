"""Keyword search over SQL text.

Locates keywords at the top level of a query: outside quoted strings,
quoted identifiers, comments and parenthesized sub-queries. This keeps
text rewrites from landing inside ``'... where ...'`` literals or
``(SELECT ... WHERE ...)`` sub-selects.
"""

from __future__ import annotations

_QUOTES = ("'", '"', "`")


def _skip_quoted(sql: str, start: int) -> int:
    quote = sql[start]
    i = start + 1
    while i < len(sql):
        if sql[i] == quote:
            # doubled quote is an escaped quote
            if i + 1 < len(sql) and sql[i + 1] == quote:
                i += 2
                continue
            return i + 1
        if sql[i] == "\\" and quote == "'":
            i += 2
            continue
        i += 1
    return len(sql)


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def find_keyword(sql: str, keyword: str) -> int:
    """Return the index of the first top-level ``keyword``, or -1.

    Matching is case-insensitive and on word boundaries.

    Example:
        find_keyword("SELECT * FROM t WHERE a = 'x where'", "where")  # 16
        find_keyword("SELECT * FROM (SELECT 1 WHERE 1=1) s", "where")  # -1
    """
    target = keyword.lower()
    length = len(target)
    depth = 0
    i = 0
    while i < len(sql):
        char = sql[i]
        if char in _QUOTES:
            i = _skip_quoted(sql, i)
            continue
        if sql.startswith("--", i):
            newline = sql.find("\n", i)
            i = len(sql) if newline == -1 else newline + 1
            continue
        if sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = len(sql) if end == -1 else end + 2
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif (
            depth == 0
            and sql[i : i + length].lower() == target
            and (i == 0 or not _is_word_char(sql[i - 1]))
            and (i + length == len(sql) or not _is_word_char(sql[i + length]))
        ):
            return i
        i += 1
    return -1


__all__ = ["find_keyword"]
