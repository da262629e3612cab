"""
binsql

Terminal SQL console for SQLite, PostgreSQL, SQL Server and MySQL, plus the
driver-agnostic client it is built on.

Example usage:
    ```python
    from binsql import Client, render_table

    # Connect (sqlite takes a file path, the others a DSN)
    with Client.open("sqlite", "app.db") as client:
        # Execute queries
        result = client.query("SELECT id, name FROM users WHERE active = ?", 1)
        for line in render_table(result, max_width=40):
            print(line)

        # Browse the schema
        for table in client.list_tables():
            print(table, client.describe_table(table))
    ```
"""

from .client import Client, default_list_query, relations_query
from .config import Config
from .console import Console, Mode
from .context import Context
from .drivers import DriverKind
from .exceptions import (
    BinsqlError,
    UnsupportedDriverError,
    ConnectionError,
    QueryError,
    TimeoutError,
    UsageError,
)
from .render import format_value, render_table, write_table
from .types import Column, ResultSet, Row, Value, ValueKind

__version__ = "0.1.0"
__all__ = [
    "Client",
    "default_list_query",
    "relations_query",
    "Config",
    "Console",
    "Mode",
    "Context",
    "DriverKind",
    "BinsqlError",
    "UnsupportedDriverError",
    "ConnectionError",
    "QueryError",
    "TimeoutError",
    "UsageError",
    "format_value",
    "render_table",
    "write_table",
    "Column",
    "ResultSet",
    "Row",
    "Value",
    "ValueKind",
]
