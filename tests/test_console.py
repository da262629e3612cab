"""
Tests for the console state machine: dispatch, history, scrollback and
row expansion.
"""

import pytest

from binsql import Column, Config, Console, Mode, QueryError, ResultSet
from binsql.console import EXPAND_HINT
from binsql.drivers import DriverKind


class FakeClient:
    """Client double answering from a dict of SQL -> ResultSet or exception."""

    def __init__(self, answers=None, tables=None, kind=DriverKind.POSTGRES):
        self.kind = kind
        self.label = kind.value
        self.answers = answers or {}
        self.tables = tables or []
        self.queries = []

    def query(self, sql, *args, ctx=None):
        self.queries.append(sql)
        for needle, answer in self.answers.items():
            if needle in sql:
                if isinstance(answer, Exception):
                    raise answer
                return answer
        raise QueryError(f"unexpected query: {sql}")

    def list_tables(self, ctx=None):
        return list(self.tables)

    def describe_table(self, table, ctx=None):
        if table == "users":
            return [Column("id", "integer"), Column("name", "text")]
        return []


THREE_ROWS = ResultSet(
    [Column("id", "integer"), Column("name", "text"), Column("email", "text")],
    [(1, "Alice", "alice@example.com"), (2, "Bob", None), (3, "Charlie", "c@example.com")],
)


@pytest.fixture
def console():
    client = FakeClient({"from users": THREE_ROWS, "create": ResultSet([])})
    return Console(client)


def test_history_suppresses_consecutive_duplicates(console):
    for line in ["A", "B", "B", "C"]:
        console.push_history(line)
    assert console.history == ["A", "B", "C"]

    for _ in range(3):
        console.history_prev()
    assert console.input == "A"

    console.history_prev()
    assert console.input == "A"

    for _ in range(2):
        console.history_next()
    assert console.input == "C"

    console.history_next()
    assert console.input == ""
    assert console.history_index == len(console.history)


def test_history_navigation_on_empty_history(console):
    console.history_prev()
    console.history_next()
    assert console.input == ""


def test_blank_submit_is_ignored(console):
    console.input = "   "
    console.submit()

    assert console.history == []
    assert list(console.scrollback) == []


def test_submit_clears_input_and_echoes(console):
    console.input = "  select * from users  "
    console.submit()

    assert console.input == ""
    assert console.history == ["select * from users"]
    assert console.lines[0] == ">>> select * from users"


def test_sql_result_is_rendered(console):
    console.submit("select * from users")

    lines = console.lines
    assert lines[1] == EXPAND_HINT
    assert lines[2].startswith("┌")
    assert "Alice" in lines[5]
    assert lines[-1] == "(3 rows)"
    assert console.last_result is THREE_ROWS


def test_sql_error_keeps_last_result(console):
    console.submit("select * from users")
    console.submit("select * from nowhere")

    assert console.lines[-1].startswith("error: unexpected query")
    assert console.last_result is THREE_ROWS
    assert console.running


def test_zero_column_result(console):
    console.submit("create table t (x int)")

    assert console.lines[-1] == "(no columns)"
    assert console.last_result.columns == ()


def test_scrollback_keeps_newest_lines():
    console = Console(FakeClient())
    for i in range(1500):
        console.append(f"line {i}")

    assert len(console.scrollback) == 1000
    assert console.lines[0] == "line 500"
    assert console.lines[-1] == "line 1499"


def test_scrollback_limit_follows_config():
    console = Console(FakeClient(), config=Config(scrollback_limit=10))
    for i in range(25):
        console.append(str(i))
    assert console.lines == [str(i) for i in range(15, 25)]


def test_expand_row(console):
    console.submit("select * from users")
    before = len(console.scrollback)

    console.submit("/e 2")

    added = console.lines[before:]
    assert added[0] == ">>> /e 2"
    assert len(added) == 1 + 3
    assert added[1] == "id     ›  2"
    assert added[2] == "name   ›  Bob"
    assert added[3] == "email  ›  NULL"


def test_expand_defaults_to_first_row(console):
    console.submit("select * from users")
    console.submit("/expand")
    assert console.lines[-2] == "name   ›  Alice"


@pytest.mark.parametrize("arg", ["0", "4", "x"])
def test_expand_out_of_range_is_usage_error(console, arg):
    console.submit("select * from users")
    console.submit(f"/e {arg}")

    assert console.scrollback[-1] == ("error", "usage: /e [rowNumber]")
    assert console.last_result is THREE_ROWS


def test_expand_without_result(console):
    console.submit("/e 1")
    assert console.lines[-1] == "no previous result to expand"


def test_unknown_meta_command(console):
    console.submit("select * from users")
    console.submit("/frobnicate now")

    assert console.lines[-1] == "Unknown command: /frobnicate now"
    assert console.last_result is THREE_ROWS
    assert console.running


def test_quit(console):
    console.submit("/q")
    assert not console.running


def test_list_relations():
    relations = ResultSet.from_names(["users", "orders"], "Name")
    console = Console(FakeClient({"pg_class": relations}))
    console.submit("/dt")

    assert "List of relations" in console.lines
    assert console.lines[-1] == "(2 rows)"


def test_list_relations_falls_back_to_table_list():
    client = FakeClient({"pg_class": QueryError("permission denied")}, tables=["public.users"])
    console = Console(client)
    console.submit("/dt")

    assert any("Table" in line for line in console.lines)
    assert any("public.users" in line for line in console.lines)
    assert console.lines[-1] == "(1 rows)"


def test_list_relations_empty():
    console = Console(FakeClient({"pg_class": QueryError("nope")}))
    console.submit("/dt")
    assert console.lines[-1] == "(no relations)"


def test_describe(console):
    console.submit("/d users")
    assert console.lines[1] == "Table users"
    assert any("integer" in line for line in console.lines)

    console.submit("/d missing")
    assert console.lines[-1] == "no such table: missing"

    console.submit("/d")
    assert console.lines[-1] == "usage: /d TABLE"


def test_help_overlay(console):
    console.submit("/help")

    assert console.mode is Mode.OVERLAY
    assert any("/dt" in text for _, text in console.overlay)

    console.close_overlay()
    assert console.mode is Mode.PROMPTING
    assert console.overlay == []


def test_column_width_shares_terminal(console):
    assert console.column_width(3) == 40
    console.width = 100
    assert console.column_width(3) == 30
    assert console.column_width(20) == 40


def test_console_against_sqlite(client):
    console = Console(client)
    console.submit("select 1 as a, NULL as b")
    assert console.lines[-1] == "(1 rows)"
    assert any("NULL" in line for line in console.lines)

    console.submit("/dt")
    assert any("active_users" in line for line in console.lines)
    assert any("VIEW" in line for line in console.lines)
