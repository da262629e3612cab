"""SQL Server through pyodbc"""

import logging
import struct
import uuid
from contextlib import closing, contextmanager
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Iterator, List, Optional, Sequence

from ..config import Config
from ..context import Context
from ..exceptions import ConnectionError
from ..pool import ConnectionPool
from ..types import Column, ResultSet, iso_timestamp
from .base import checkout, probe, read_names, read_result, split_qualified

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "dbo"

# ODBC SQL type codes without a pyodbc constant
SQL_SS_TIMESTAMPOFFSET = -155

LIST_TABLES = """
SELECT TABLE_SCHEMA + '.' + TABLE_NAME AS name
FROM INFORMATION_SCHEMA.TABLES
WHERE TABLE_TYPE = 'BASE TABLE'
ORDER BY LOWER(TABLE_SCHEMA), LOWER(TABLE_NAME);
"""

DESCRIBE_TABLE = """
SELECT COLUMN_NAME, DATA_TYPE
FROM INFORMATION_SCHEMA.COLUMNS
WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?
ORDER BY ORDINAL_POSITION;
"""

# pyodbc reports Python types in cursor.description, not SQL type names.
_TYPE_NAMES = (
    (bool, "bit"),
    (int, "int"),
    (float, "float"),
    (Decimal, "decimal"),
    (uuid.UUID, "uniqueidentifier"),
    (bytearray, "varbinary"),
    (bytes, "varbinary"),
    (datetime, "datetime"),
    (date, "date"),
    (time, "time"),
    (str, "nvarchar"),
)


def format_unique_identifier(raw: bytes) -> str:
    """
    Render a SQL Server GUID in display order.

    The first three groups are stored little-endian, so they are byte-swapped;
    the last two are kept as-is. Anything but 16 bytes falls back to hex.
    """
    if len(raw) != 16:
        return raw.hex()
    b = raw
    return (
        f"{b[3]:02x}{b[2]:02x}{b[1]:02x}{b[0]:02x}-"
        f"{b[5]:02x}{b[4]:02x}-"
        f"{b[7]:02x}{b[6]:02x}-"
        f"{b[8]:02x}{b[9]:02x}-"
        f"{b[10:16].hex()}"
    )


def _normalize(value: Any, declared_type: str) -> Any:
    if isinstance(value, (bytes, bytearray)):
        # never decode binary as text here; it wrecks the table
        if declared_type == "uniqueidentifier":
            return format_unique_identifier(bytes(value))
        return "0x" + bytes(value).hex()
    if isinstance(value, datetime):
        return iso_timestamp(value)
    return value


def _type_name(type_code: Any) -> str:
    for typ, name in _TYPE_NAMES:
        if type_code is typ:
            return name
    return getattr(type_code, "__name__", "").lower()


def _type_names(description: Sequence[tuple], rows: List[tuple]) -> List[str]:
    return [_type_name(d[1]) for d in description]


def _guid_bytes(raw: Optional[bytes]) -> Optional[bytes]:
    return raw


def _datetimeoffset(raw: Optional[bytes]) -> Optional[datetime]:
    if raw is None:
        return None
    # year, month, day, hour, minute, second, nanoseconds, tz hours, tz minutes
    fields = struct.unpack("<6hI2h", raw)
    tz = timezone(timedelta(hours=fields[7], minutes=fields[8]))
    return datetime(*fields[:6], fields[6] // 1000, tzinfo=tz)


def _alive(conn: Any) -> bool:
    return not getattr(conn, "closed", False)


def _connection_string(target: str, config: Config) -> str:
    if "driver=" in target.lower():
        return target
    return f"DRIVER={{{config.odbc_driver}}};{target}"


class MssqlDriver:
    """SQL Server reached through an ODBC connection string."""

    kind = "mssql"

    def __init__(self, pool: ConnectionPool, dbapi: Any):
        self._pool = pool
        self._dbapi = dbapi

    def close(self) -> None:
        self._pool.close()

    @contextmanager
    def _cursor(self, ctx: Context) -> Iterator[Any]:
        """Pooled cursor bounded by the deadline and aborted by ctx.cancel()."""
        with checkout(self._pool, ctx, self._dbapi.Error) as conn:
            remaining = ctx.remaining()
            # pyodbc applies Connection.timeout as the statement timeout;
            # pooled connections keep it, so every call sets it
            conn.timeout = int(remaining) + 1 if remaining is not None else 0
            with closing(conn.cursor()) as cur:
                unregister = ctx.on_cancel(cur.cancel)
                try:
                    yield cur
                finally:
                    unregister()

    def list_tables(self, ctx: Context) -> List[str]:
        with self._cursor(ctx) as cur:
            cur.execute(LIST_TABLES)
            return read_names(cur)

    def describe_table(self, ctx: Context, table: str) -> List[Column]:
        schema, name = split_qualified(table, DEFAULT_SCHEMA)
        with self._cursor(ctx) as cur:
            cur.execute(DESCRIBE_TABLE, schema, name)
            return [Column(col, typ) for col, typ in cur.fetchall()]

    def query(self, ctx: Context, sql: str, *args: Any) -> ResultSet:
        with self._cursor(ctx) as cur:
            cur.execute(sql, *args)
            return read_result(cur, _type_names, _normalize)


def open(target: str, config: Optional[Config] = None) -> MssqlDriver:
    """
    Connect to SQL Server.

    Args:
        target: ODBC connection string; ``DRIVER=`` is added from config when absent
        config: Pool limits and timeouts

    Returns:
        Connected MssqlDriver
    """
    config = config or Config()
    if not target:
        raise ConnectionError("empty mssql DSN")

    import pyodbc

    # GUIDs in cursor.description come back as uuid.UUID instead of str.
    pyodbc.native_uuid = True
    conn_str = _connection_string(target, config)

    def connect():
        conn = pyodbc.connect(conn_str, autocommit=True, timeout=max(1, int(config.ping_timeout)))
        conn.add_output_converter(pyodbc.SQL_GUID, _guid_bytes)
        conn.add_output_converter(SQL_SS_TIMESTAMPOFFSET, _datetimeoffset)
        return conn

    pool = ConnectionPool(
        connect,
        max_size=config.max_connections,
        max_lifetime=config.max_lifetime,
        alive=_alive,
    )
    probe(pool, pyodbc.Error, "mssql")
    return MssqlDriver(pool, pyodbc)
