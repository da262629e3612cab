"""Embedded engine: SQLite files through the stdlib sqlite3 module"""

import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from ..config import Config
from ..context import Context
from ..exceptions import ConnectionError
from ..pool import ConnectionPool
from ..types import Column, ResultSet, iso_timestamp
from .base import checkout, probe, quote_ident, read_names, read_result

logger = logging.getLogger(__name__)

LIST_TABLES = """
SELECT name
FROM sqlite_master
WHERE type IN ('table', 'view')
  AND name NOT LIKE 'sqlite_%'
ORDER BY lower(name);
"""

# sqlite3 leaves description type codes empty, so columns are labelled with
# the storage class of their first non-NULL value.
_STORAGE_CLASSES = (
    (bool, "INTEGER"),
    (int, "INTEGER"),
    (float, "REAL"),
    (str, "TEXT"),
    (bytes, "BLOB"),
)


def _storage_class(value: Any) -> str:
    for typ, name in _STORAGE_CLASSES:
        if isinstance(value, typ):
            return name
    return type(value).__name__.upper()


def _type_names(description: Sequence[tuple], rows: List[tuple]) -> List[str]:
    names = []
    for i in range(len(description)):
        name = ""
        for row in rows:
            if row[i] is not None:
                name = _storage_class(row[i])
                break
        names.append(name)
    return names


def _parse_timestamp(raw: bytes) -> Any:
    """
    Converter for columns declared DATE, DATETIME or TIMESTAMP.

    Accepts ISO-8601 text (space or T separator, optional offset or Z) and
    numeric Unix times. Anything else comes back as the stored text.
    """
    text = raw.decode("utf-8", errors="replace").strip()
    try:
        if text.endswith(("Z", "z")):
            return datetime.fromisoformat(text[:-1]).replace(tzinfo=timezone.utc)
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromtimestamp(float(text), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return text


# Converters are looked up by the first word of the declared column type.
for _decl in ("DATE", "DATETIME", "TIMESTAMP"):
    sqlite3.register_converter(_decl, _parse_timestamp)


def _normalize(value: Any, declared_type: str) -> Any:
    # Blobs stay bytes; the renderer decides between text and a placeholder.
    if isinstance(value, datetime):
        return iso_timestamp(value)
    return value


def _connect(path: str, config: Config) -> sqlite3.Connection:
    conn = sqlite3.connect(
        path,
        timeout=config.ping_timeout,
        isolation_level=None,
        check_same_thread=False,
        detect_types=sqlite3.PARSE_DECLTYPES,
    )
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


class SqliteDriver:
    """SQLite file opened by path."""

    kind = "sqlite"

    def __init__(self, pool: ConnectionPool, path: str):
        self._pool = pool
        self.path = path

    def close(self) -> None:
        self._pool.close()

    def list_tables(self, ctx: Context) -> List[str]:
        with checkout(self._pool, ctx, sqlite3.Error, _interrupt) as conn:
            with closing(conn.cursor()) as cur:
                cur.execute(LIST_TABLES)
                return read_names(cur)

    def describe_table(self, ctx: Context, table: str) -> List[Column]:
        with checkout(self._pool, ctx, sqlite3.Error, _interrupt) as conn:
            with closing(conn.cursor()) as cur:
                cur.execute(f"PRAGMA table_info({quote_ident(table)});")
                # cid, name, type, notnull, dflt_value, pk
                return [Column(row[1], row[2]) for row in cur.fetchall()]

    def query(self, ctx: Context, sql: str, *args: Any) -> ResultSet:
        with checkout(self._pool, ctx, sqlite3.Error, _interrupt) as conn:
            with closing(conn.cursor()) as cur:
                cur.execute(sql, args)
                return read_result(cur, _type_names, _normalize)

    def __repr__(self) -> str:
        return f"SqliteDriver({self.path!r})"


def _interrupt(conn: sqlite3.Connection) -> None:
    conn.interrupt()


def open(target: str, config: Optional[Config] = None) -> SqliteDriver:
    """
    Open a SQLite database file.

    Args:
        target: Path to the database file
        config: Pool limits and timeouts

    Returns:
        Connected SqliteDriver
    """
    config = config or Config()
    if not target:
        raise ConnectionError("empty sqlite path")

    # One writer at a time is all SQLite allows anyway.
    pool = ConnectionPool(
        lambda: _connect(target, config),
        max_size=1,
        max_lifetime=config.max_lifetime,
    )
    probe(pool, sqlite3.Error, "sqlite")
    logger.info("opened sqlite database %s", target)
    return SqliteDriver(pool, target)
