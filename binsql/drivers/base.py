"""Shared plumbing for the per-engine drivers"""

import logging
import threading
from datetime import datetime
from contextlib import closing, contextmanager
from typing import Any, Callable, Iterator, List, Optional, Protocol, Sequence, Tuple, Type, Union

from ..context import Context
from ..exceptions import ConnectionError, QueryError, TimeoutError
from ..pool import ConnectionPool
from ..types import Column, ResultSet, iso_timestamp

logger = logging.getLogger(__name__)

ErrorTypes = Union[Type[BaseException], Tuple[Type[BaseException], ...]]
Normalizer = Callable[[Any, str], Any]
TypeNamer = Callable[[Sequence[tuple], List[tuple]], List[str]]


class Driver(Protocol):
    """Capabilities every engine adapter provides."""

    kind: str

    def close(self) -> None: ...

    def list_tables(self, ctx: Context) -> List[str]: ...

    def describe_table(self, ctx: Context, table: str) -> List[Column]: ...

    def query(self, ctx: Context, sql: str, *args: Any) -> ResultSet: ...


def split_qualified(table: str, default_schema: Optional[str]) -> Tuple[Optional[str], str]:
    """Split ``schema.table`` on the first dot; bare names get ``default_schema``."""
    schema, dot, name = table.partition(".")
    if not dot:
        return default_schema, table
    return schema, name


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def read_result(cursor: Any, type_names: TypeNamer, normalize: Normalizer) -> ResultSet:
    """
    Drain an executed cursor into a ResultSet.

    Statements without a result set produce a zero-column ResultSet. Every
    scalar goes through ``normalize(value, declared_type)``.
    """
    description = cursor.description
    if description is None:
        return ResultSet([])

    raw_rows = cursor.fetchall()
    types = type_names(description, raw_rows)
    columns = [Column(d[0], t) for d, t in zip(description, types)]
    rows = [
        [normalize(value, columns[i].data_type) for i, value in enumerate(raw)]
        for raw in raw_rows
    ]
    return ResultSet(columns, rows)


def read_names(cursor: Any) -> List[str]:
    return [row[0] for row in cursor.fetchall()]


@contextmanager
def _armed(ctx: Context, interrupt: Optional[Callable[[], None]]) -> Iterator[None]:
    """Fire ``interrupt`` on ctx.cancel() or when the deadline passes."""
    if interrupt is None:
        yield
        return

    unregister = ctx.on_cancel(interrupt)
    timer = None
    remaining = ctx.remaining()
    if remaining is not None:
        timer = threading.Timer(remaining, interrupt)
        timer.daemon = True
        timer.start()
    try:
        yield
    finally:
        unregister()
        if timer is not None:
            timer.cancel()


@contextmanager
def checkout(
    pool: ConnectionPool,
    ctx: Context,
    errors: ErrorTypes,
    interrupt: Optional[Callable[[Any], None]] = None
) -> Iterator[Any]:
    """
    Lend a pooled connection for one driver call.

    Driver errors are re-raised as QueryError (TimeoutError when the context
    expired or was cancelled meanwhile). The connection always goes back to
    the pool, which drops it if it is no longer alive.
    """
    ctx.check()
    try:
        conn = pool.acquire()
    except errors as err:
        raise QueryError(str(err)) from err

    hook = (lambda: interrupt(conn)) if interrupt is not None else None
    try:
        with _armed(ctx, hook):
            yield conn
    except errors as err:
        if ctx.done():
            raise TimeoutError(str(err) or "query interrupted") from err
        raise QueryError(str(err)) from err
    finally:
        pool.release(conn)


def probe(pool: ConnectionPool, errors: ErrorTypes, label: str) -> None:
    """
    Liveness check run once by every driver's open().

    On failure the pool is closed and ConnectionError raised, so a failed
    open holds no resources.
    """
    try:
        with pool.connection() as conn:
            with closing(conn.cursor()) as cur:
                cur.execute("SELECT 1")
                cur.fetchall()
    except errors as err:
        pool.close()
        logger.warning("%s: liveness probe failed: %s", label, err)
        raise ConnectionError(str(err)) from err
    except BaseException:
        pool.close()
        raise
    logger.debug("%s: connection established", label)


def decode_text(value: Any, declared_type: str) -> Any:
    """
    Normalizer for engines that report textual columns as raw bytes.

    Bytes are always decoded as UTF-8 and timestamps rendered as RFC 3339.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, datetime):
        return iso_timestamp(value)
    return value
