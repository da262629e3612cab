"""PostgreSQL through psycopg2"""

import logging
from contextlib import closing
from typing import Any, Dict, List, Optional, Sequence

from ..config import Config
from ..context import Context
from ..exceptions import ConnectionError
from ..pool import ConnectionPool
from ..types import Column, ResultSet
from .base import checkout, decode_text, probe, read_names, read_result, split_qualified

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"

LIST_TABLES = """
SELECT table_schema || '.' || table_name AS name
FROM information_schema.tables
WHERE table_type = 'BASE TABLE'
  AND table_schema NOT IN ('pg_catalog', 'information_schema')
ORDER BY lower(table_schema), lower(table_name);
"""

DESCRIBE_TABLE = """
SELECT column_name, data_type
FROM information_schema.columns
WHERE table_schema = %s
  AND table_name = %s
ORDER BY ordinal_position;
"""

TYPE_NAMES = """
SELECT oid, format_type(oid, NULL)
FROM pg_catalog.pg_type
WHERE oid = ANY(%s::oid[]);
"""


def _alive(conn: Any) -> bool:
    return conn.closed == 0


def _interrupt(conn: Any) -> None:
    conn.cancel()


class PostgresDriver:
    """PostgreSQL server reached through a libpq DSN or URI."""

    kind = "postgres"

    def __init__(self, pool: ConnectionPool, dbapi: Any):
        self._pool = pool
        self._dbapi = dbapi
        # type OID -> name as reported by format_type()
        self._type_names: Dict[int, str] = {}

    def close(self) -> None:
        self._pool.close()

    def list_tables(self, ctx: Context) -> List[str]:
        with checkout(self._pool, ctx, self._dbapi.Error, _interrupt) as conn:
            with closing(conn.cursor()) as cur:
                cur.execute(LIST_TABLES)
                return read_names(cur)

    def describe_table(self, ctx: Context, table: str) -> List[Column]:
        schema, name = split_qualified(table, DEFAULT_SCHEMA)
        with checkout(self._pool, ctx, self._dbapi.Error, _interrupt) as conn:
            with closing(conn.cursor()) as cur:
                cur.execute(DESCRIBE_TABLE, (schema, name))
                return [Column(col, typ) for col, typ in cur.fetchall()]

    def query(self, ctx: Context, sql: str, *args: Any) -> ResultSet:
        with checkout(self._pool, ctx, self._dbapi.Error, _interrupt) as conn:
            with closing(conn.cursor()) as cur:
                cur.execute(sql, args or None)
                return read_result(cur, self._namer(cur), decode_text)

    def _namer(self, cur: Any):
        """Resolve description type OIDs, reusing the cursor once its rows are read."""

        def names(description: Sequence[tuple], rows: List[tuple]) -> List[str]:
            oids = [d[1] for d in description]
            missing = sorted({o for o in oids if o is not None and o not in self._type_names})
            if missing:
                cur.execute(TYPE_NAMES, (missing,))
                for oid, name in cur.fetchall():
                    self._type_names[oid] = (name or "").lower()
            return [self._type_names.get(o, "") for o in oids]

        return names


def open(target: str, config: Optional[Config] = None) -> PostgresDriver:
    """
    Connect to PostgreSQL.

    Args:
        target: libpq connection string or ``postgres://`` URI
        config: Pool limits and timeouts

    Returns:
        Connected PostgresDriver
    """
    config = config or Config()
    if not target:
        raise ConnectionError("empty postgres DSN")

    import psycopg2

    def connect():
        conn = psycopg2.connect(target, connect_timeout=max(1, int(config.ping_timeout)))
        conn.autocommit = True
        return conn

    pool = ConnectionPool(
        connect,
        max_size=config.max_connections,
        max_lifetime=config.max_lifetime,
        alive=_alive,
    )
    probe(pool, psycopg2.Error, "postgres")
    return PostgresDriver(pool, psycopg2)
