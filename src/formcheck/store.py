"""Uniqueness lookups for the ``unique`` rule.

The rule only needs a row count. ``SQLStore`` answers it with any
DB-API 2 connection (``sqlite3``, ``psycopg``, ...)::

    import sqlite3

    store = SQLStore(sqlite3.connect("app.db"))
    checker = Checker({"email": [required, email, unique(store, "users", "email")]})

The placeholder (``?``, ``%s``, ``$1``...) depends on the driver.
"""

import logging
import re
import threading
from typing import Any, Protocol, runtime_checkable

from formcheck.errors import ConfigurationError, StoreError

logger = logging.getLogger("formcheck.store")

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?")


@runtime_checkable
class UniqueStore(Protocol):
    """Anything that can count the rows holding a value."""

    def count(self, table: str, column: str, placeholder: str, value: str) -> int:
        """Return how many rows of *table* have *column* equal to *value*.

        Must raise (never return 0) when the lookup itself fails.
        """
        ...


def check_identifier(name: str, what: str) -> str:
    """Return *name* if it is a plain SQL identifier, else raise.

    Table and column names are interpolated into the query, so they are
    validated when the rule is built.
    """
    if not _IDENTIFIER_RE.fullmatch(name):
        msg = f"invalid {what} name for unique rule: {name!r}"
        raise ConfigurationError(msg)
    return name


class SQLStore:
    """Row counts through a DB-API 2 connection.

    The connection is used under a lock: DB-API connections are not
    required to be thread-safe, checkers are.
    """

    __slots__ = ("_connection", "_lock")

    def __init__(self, connection: Any) -> None:
        if connection is None:
            msg = "SQLStore needs a database connection"
            raise ConfigurationError(msg)
        self._connection = connection
        self._lock = threading.Lock()

    def count(self, table: str, column: str, placeholder: str, value: str) -> int:
        sql = f"SELECT COUNT(*) FROM {table} WHERE {column} = {placeholder}"
        logger.debug("%s -- %r", sql, value)
        with self._lock:
            try:
                row = self._fetch(sql, value)
            except Exception as exc:
                msg = f"uniqueness lookup failed on {table}.{column}: {exc}"
                raise StoreError(msg) from exc
        if row is None:
            msg = f"uniqueness lookup on {table}.{column} returned no row"
            raise StoreError(msg)
        return int(row[0])

    def _fetch(self, sql: str, value: str) -> Any:
        cursor = self._connection.cursor()
        try:
            cursor.execute(sql, (value,))
            return cursor.fetchone()
        finally:
            cursor.close()
