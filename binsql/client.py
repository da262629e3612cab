"""
binsql Client Implementation
"""

import logging
from typing import Any, List, Optional, Union

from .config import Config
from .context import Context
from .drivers import Driver, DriverKind, get_opener
from .exceptions import ConnectionError
from .types import Column, ResultSet

logger = logging.getLogger(__name__)


DEFAULT_LIST_QUERIES = {
    DriverKind.SQLITE: "select name from sqlite_master where type = 'table' order by name;",
    DriverKind.POSTGRES: """
SELECT table_schema || '.' || table_name AS name
FROM information_schema.tables
WHERE table_type = 'BASE TABLE'
  AND table_schema NOT IN ('pg_catalog', 'information_schema')
ORDER BY table_schema, table_name;
""",
    DriverKind.MSSQL: """
SELECT TABLE_SCHEMA + '.' + TABLE_NAME AS name
FROM INFORMATION_SCHEMA.TABLES
WHERE TABLE_TYPE = 'BASE TABLE'
ORDER BY TABLE_SCHEMA, TABLE_NAME;
""",
    DriverKind.MYSQL: """
SELECT table_name AS name
FROM information_schema.tables
WHERE table_type = 'BASE TABLE'
  AND table_schema = DATABASE()
ORDER BY table_name;
""",
}

# Schema / Name / Type, engine-internal objects first and marked SYSTEM.
RELATIONS_QUERIES = {
    DriverKind.SQLITE: """
SELECT
    '' AS "Schema",
    name AS "Name",
    CASE
        WHEN name LIKE 'sqlite_%' THEN 'SYSTEM ' || UPPER(type)
        ELSE UPPER(type)
    END AS "Type"
FROM sqlite_master
WHERE type IN ('table', 'view')
ORDER BY
    CASE WHEN name LIKE 'sqlite_%' THEN 0 ELSE 1 END,
    lower(name);
""",
    DriverKind.POSTGRES: """
SELECT
    n.nspname AS "Schema",
    c.relname AS "Name",
    CASE WHEN n.nspname IN ('pg_catalog', 'information_schema') THEN 'SYSTEM ' ELSE '' END
    || CASE c.relkind
        WHEN 'v' THEN 'VIEW'
        WHEN 'm' THEN 'MATERIALIZED VIEW'
        WHEN 'f' THEN 'FOREIGN TABLE'
        ELSE 'TABLE'
    END AS "Type"
FROM pg_catalog.pg_class c
JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
WHERE c.relkind IN ('r', 'p', 'v', 'm', 'f')
  AND n.nspname NOT LIKE 'pg_toast%'
ORDER BY
    CASE WHEN n.nspname IN ('pg_catalog', 'information_schema') THEN 0 ELSE 1 END,
    lower(n.nspname),
    lower(c.relname);
""",
    DriverKind.MSSQL: """
SELECT
    s.name AS [Schema],
    o.name AS [Name],
    CASE WHEN o.is_ms_shipped = 1 THEN 'SYSTEM ' ELSE '' END
    + CASE o.type WHEN 'V' THEN 'VIEW' ELSE 'TABLE' END AS [Type]
FROM sys.objects o
JOIN sys.schemas s ON s.schema_id = o.schema_id
WHERE o.type IN ('U', 'V')
ORDER BY
    CASE WHEN o.is_ms_shipped = 1 THEN 0 ELSE 1 END,
    LOWER(s.name),
    LOWER(o.name);
""",
    DriverKind.MYSQL: """
SELECT
    table_schema AS `Schema`,
    table_name AS `Name`,
    CASE
        WHEN table_type = 'SYSTEM VIEW' THEN 'SYSTEM VIEW'
        WHEN table_schema IN ('mysql', 'sys', 'performance_schema', 'information_schema')
            THEN CONCAT('SYSTEM ', IF(table_type = 'VIEW', 'VIEW', 'TABLE'))
        WHEN table_type = 'VIEW' THEN 'VIEW'
        ELSE 'TABLE'
    END AS `Type`
FROM information_schema.tables
WHERE table_schema = DATABASE()
ORDER BY LOWER(table_name);
""",
}


def default_list_query(kind: Union[DriverKind, str, None]) -> str:
    """Catalog query run when no SQL text is supplied."""
    return DEFAULT_LIST_QUERIES[DriverKind.parse(kind)]


def relations_query(kind: Union[DriverKind, str, None]) -> str:
    """Catalog query backing the console's relation listing."""
    return RELATIONS_QUERIES[DriverKind.parse(kind)]


class Client:
    """
    Driver-agnostic entry point for one database session.

    Picks the adapter for ``kind`` and forwards every call to it; nothing
    else in binsql needs to know which engine is on the other end.

    Example:
        ```python
        with Client.open("postgres", "postgres://localhost/app") as client:
            print(client.list_tables())

            result = client.query("SELECT * FROM users WHERE id = %s", 42)
            for row in result:
                print(row[0])
        ```
    """

    def __init__(self, kind: DriverKind, driver: Driver):
        self.kind = kind
        self._driver: Optional[Driver] = driver

    @classmethod
    def open(
        cls,
        kind: Union[DriverKind, str, None],
        target: str,
        config: Optional[Config] = None
    ) -> "Client":
        """
        Connect to a database.

        Args:
            kind: sqlite, postgres, mssql or mysql; empty means sqlite
            target: File path for sqlite, DSN for the others
            config: Pool limits and timeouts

        Returns:
            Connected Client instance

        Raises:
            UnsupportedDriverError: unknown ``kind``, before any connection attempt
            ConnectionError: the target could not be opened or probed
        """
        resolved = DriverKind.parse(kind)
        driver = get_opener(resolved)(target, config or Config())
        logger.info("connected using %s driver", resolved.value)
        return cls(resolved, driver)

    @property
    def label(self) -> str:
        """Engine name shown in the console header."""
        return self.kind.value

    @property
    def closed(self) -> bool:
        return self._driver is None

    def _active(self) -> Driver:
        if self._driver is None:
            raise ConnectionError("client is closed")
        return self._driver

    def query(self, sql: str, *args: Any, ctx: Optional[Context] = None) -> ResultSet:
        """
        Execute SQL text and return every row.

        Args:
            sql: Any statement; those without a result set return zero columns
            *args: Parameters in the driver's placeholder style
            ctx: Deadline / cancellation token

        Returns:
            Fresh ResultSet
        """
        return self._active().query(ctx or Context.background(), sql, *args)

    def list_tables(self, ctx: Optional[Context] = None) -> List[str]:
        """Names of user tables, ordered case-insensitively."""
        return self._active().list_tables(ctx or Context.background())

    def describe_table(self, table: str, ctx: Optional[Context] = None) -> List[Column]:
        """Columns of ``table`` (bare or ``schema.table``) in ordinal order."""
        return self._active().describe_table(ctx or Context.background(), table)

    def close(self) -> None:
        """Release the connection. Safe to call more than once."""
        driver, self._driver = self._driver, None
        if driver is not None:
            driver.close()
            logger.info("closed %s connection", self.kind.value)

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._driver is None else "open"
        return f"Client({self.kind.value}, {state})"
