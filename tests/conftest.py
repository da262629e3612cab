"""
Shared fixtures: a scriptable DB-API module standing in for psycopg2,
pymysql and pyodbc so the client/server drivers run without a server.
"""

import sqlite3
import sys
import types

import pytest

from binsql import Client


class FakeError(Exception):
    pass


class FakeCursor:
    """
    Cursor answering from the owning module's script.

    Script entries are (needle, outcome): the first needle found in the SQL
    wins. An outcome is an exception to raise, a (description, rows) pair,
    a (description, rows, error) triple whose fetchall() raises ``error``,
    or a callable returning any of those at execute time.
    """

    def __init__(self, conn):
        self.conn = conn
        self.description = None
        self._rows = []
        self._fail = None
        self.closed = False

    def execute(self, sql, *params):
        module = self.conn.module
        module.executed.append((sql, params))
        for needle, outcome in module.script:
            if needle in sql:
                if callable(outcome):
                    outcome = outcome()
                if isinstance(outcome, Exception):
                    raise outcome
                self.description, self._rows, self._fail = (tuple(outcome) + (None,))[:3]
                return self
        self.description, self._rows, self._fail = None, [], None
        return self

    def fetchall(self):
        if self._fail is not None:
            raise self._fail
        rows, self._rows = self._rows, []
        return rows

    def cancel(self):
        self.conn.module.cancelled += 1

    def close(self):
        self.closed = True
        self.conn.module.cursors_closed += 1


class FakeConnection:
    def __init__(self, module, *args, **kwargs):
        self.module = module
        self.args = args
        self.kwargs = kwargs
        self.closed = 0
        self.open = True
        self.autocommit = kwargs.get("autocommit", False)
        self.timeout = 0
        self.converters = {}

    def cursor(self):
        self.module.cursors_opened += 1
        return FakeCursor(self)

    def add_output_converter(self, sql_type, func):
        self.converters[sql_type] = func

    def cancel(self):
        self.module.cancelled += 1

    def close(self):
        self.closed = 1
        self.open = False
        self.module.connections_closed += 1


def make_dbapi(name):
    module = types.ModuleType(name)
    module.Error = FakeError
    module.SQL_GUID = -11
    module.native_uuid = False
    module.constants = types.SimpleNamespace(
        FIELD_TYPE=types.SimpleNamespace(
            DECIMAL=0, TINY=1, LONG=3, DOUBLE=5, TIMESTAMP=7, LONGLONG=8,
            DATETIME=12, BLOB=252, VAR_STRING=253, STRING=254, CHAR=1,
        )
    )
    module.script = [("SELECT 1", ([("?column?", None)], [(1,)]))]
    module.executed = []
    module.connections = []
    module.cursors_opened = 0
    module.cursors_closed = 0
    module.connections_closed = 0
    module.cancelled = 0
    module.fail_connect = None

    def connect(*args, **kwargs):
        if module.fail_connect is not None:
            raise module.fail_connect
        conn = FakeConnection(module, *args, **kwargs)
        module.connections.append(conn)
        return conn

    module.connect = connect
    return module


@pytest.fixture
def fake_dbapi(monkeypatch):
    """Install a fake DB-API module under the given import name."""

    def install(name):
        module = make_dbapi(name)
        monkeypatch.setitem(sys.modules, name, module)
        return module

    return install


@pytest.fixture
def db_path(tmp_path):
    """SQLite file with a couple of tables and a view."""
    path = tmp_path / "app.db"
    conn = sqlite3.connect(str(path))
    conn.executescript(
        """
        CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, avatar BLOB);
        CREATE TABLE Orders (id INTEGER PRIMARY KEY, user_id INTEGER REFERENCES users(id), total REAL);
        CREATE VIEW active_users AS SELECT id, name FROM users;
        INSERT INTO users (id, name, avatar) VALUES (1, 'Alice', x'89504e470d0a1a0a');
        INSERT INTO users (id, name, avatar) VALUES (2, 'Bob', CAST('plain text' AS BLOB));
        INSERT INTO users (id, name, avatar) VALUES (3, 'Charlie', NULL);
        INSERT INTO Orders (id, user_id, total) VALUES (10, 1, 99.5);
        """
    )
    conn.commit()
    conn.close()
    return str(path)


@pytest.fixture
def client(db_path):
    with Client.open("sqlite", db_path) as c:
        yield c
