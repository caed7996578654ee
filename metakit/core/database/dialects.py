"""SQL dialects and parameterized query fragments.

Raw SQL pagination has to render placeholders the way the target driver
expects them: ``?`` for MySQL and SQLite, numbered ``$n`` for PostgreSQL.
``QueryFragment`` keeps SQL text and its positional parameters together
so clauses can be appended without losing track of placeholder numbers.

Example:
    fragment = QueryFragment("SELECT * FROM items WHERE owner = $1", ("alice",))
    fragment = fragment.append(Dialect.POSTGRESQL, "LIMIT {}", 10)
    fragment.sql     # 'SELECT * FROM items WHERE owner = $1 LIMIT $2'
    fragment.params  # ('alice', 10)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class Dialect(StrEnum):
    """Relational engines supported by the raw SQL helpers."""

    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"

    @classmethod
    def from_name(cls, name: str) -> Dialect:
        """Map a SQLAlchemy dialect name (``engine.dialect.name``) to a Dialect.

        Raises:
            ValueError: If the engine is not one of the supported dialects
        """
        normalized = name.lower()
        if normalized in ("mysql", "mariadb"):
            return cls.MYSQL
        if normalized in ("postgresql", "postgres"):
            return cls.POSTGRESQL
        if normalized == "sqlite":
            return cls.SQLITE
        msg = f"Unsupported dialect: {name}"
        raise ValueError(msg)

    @property
    def numbered_placeholders(self) -> bool:
        return self is Dialect.POSTGRESQL

    def placeholder(self, position: int) -> str:
        """Placeholder for the parameter at 1-based ``position``."""
        if self.numbered_placeholders:
            return f"${position}"
        return "?"


@dataclass(slots=True, frozen=True)
class QueryFragment:
    """SQL text plus its positional parameters."""

    sql: str
    params: tuple[Any, ...] = ()

    def append(self, dialect: Dialect, template: str, *values: Any) -> QueryFragment:
        """Append a clause whose ``{}`` slots become placeholders for ``values``.

        Args:
            dialect: Dialect that decides the placeholder style
            template: Clause text with one ``{}`` per value
            *values: Parameters bound to the slots, in order

        Returns:
            New fragment with the clause and parameters appended
        """
        start = len(self.params) + 1
        placeholders = [dialect.placeholder(start + i) for i in range(len(values))]
        clause = template.format(*placeholders)
        return QueryFragment(f"{self.sql} {clause}", (*self.params, *values))


__all__ = ["Dialect", "QueryFragment"]
