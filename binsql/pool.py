"""Bounded pool of DB-API connections"""

import logging
import queue
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional

from .exceptions import ConnectionError

logger = logging.getLogger(__name__)


class _Pooled:
    __slots__ = ("raw", "created")

    def __init__(self, raw: Any):
        self.raw = raw
        self.created = time.monotonic()


class ConnectionPool:
    """
    Connection pool for one database target.

    Connections are created lazily up to ``max_size`` and recycled once they
    are older than ``max_lifetime`` seconds.

    Example:
        ```python
        pool = ConnectionPool(lambda: psycopg2.connect(dsn), max_size=4)

        with pool.connection() as conn:
            with closing(conn.cursor()) as cur:
                cur.execute("SELECT 1")
        ```
    """

    def __init__(
        self,
        connect: Callable[[], Any],
        max_size: int = 4,
        max_lifetime: float = 300.0,
        alive: Optional[Callable[[Any], bool]] = None,
        timeout: Optional[float] = None
    ):
        self.max_size = max(1, max_size)
        self.max_lifetime = max_lifetime
        self.timeout = timeout
        self._connect = connect
        self._alive = alive or (lambda conn: True)
        self._available: "queue.LifoQueue[_Pooled]" = queue.LifoQueue()
        self._lent: dict = {}
        self._size = 0
        self._closed = False
        self._lock = threading.Lock()

    @property
    def size(self) -> int:
        """Number of open connections, idle or lent."""
        return self._size

    @property
    def closed(self) -> bool:
        return self._closed

    def _expired(self, entry: _Pooled) -> bool:
        return self.max_lifetime > 0 and time.monotonic() - entry.created >= self.max_lifetime

    def _destroy(self, entry: _Pooled) -> None:
        with self._lock:
            self._size -= 1
        try:
            entry.raw.close()
        except Exception as e:
            logger.warning("error closing pooled connection: %s", e)

    def acquire(self) -> Any:
        """Acquire a connection from the pool."""
        if self._closed:
            raise ConnectionError("connection pool is closed")

        while True:
            try:
                entry = self._available.get_nowait()
            except queue.Empty:
                break
            if self._expired(entry) or not self._alive(entry.raw):
                self._destroy(entry)
                continue
            self._lent[id(entry.raw)] = entry
            return entry.raw

        # Create new connection if under max_size
        with self._lock:
            grow = self._size < self.max_size
            if grow:
                self._size += 1
        if grow:
            try:
                entry = _Pooled(self._connect())
            except BaseException:
                with self._lock:
                    self._size -= 1
                raise
            logger.debug("opened pooled connection (%d/%d)", self._size, self.max_size)
            self._lent[id(entry.raw)] = entry
            return entry.raw

        # Wait for an available connection
        try:
            entry = self._available.get(timeout=self.timeout)
        except queue.Empty:
            raise ConnectionError(
                f"no connection available after {self.timeout}s (pool size {self.max_size})"
            ) from None
        self._lent[id(entry.raw)] = entry
        return entry.raw

    def release(self, conn: Any) -> None:
        """Release a connection back to the pool."""
        entry = self._lent.pop(id(conn), None)
        if entry is None:
            return
        if self._closed or self._expired(entry) or not self._alive(conn):
            self._destroy(entry)
            return
        self._available.put(entry)

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Lend a connection for the duration of a ``with`` block."""
        conn = self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    def close(self) -> None:
        """Close all idle connections. Lent ones are closed on release."""
        if self._closed:
            return
        self._closed = True
        idle: List[_Pooled] = []
        while True:
            try:
                idle.append(self._available.get_nowait())
            except queue.Empty:
                break
        for entry in idle:
            self._destroy(entry)
        logger.debug("connection pool closed")

    def __enter__(self) -> "ConnectionPool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
