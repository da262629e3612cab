"""
Tests for the result model, Context and Config.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from binsql import Column, Config, Context, ResultSet, Row, TimeoutError, UsageError, ValueKind
from binsql.types import iso_timestamp, kind_of


def test_kind_of():
    assert kind_of(None) is ValueKind.NULL
    assert kind_of(3) is ValueKind.INTEGER
    assert kind_of(2.5) is ValueKind.FLOAT
    assert kind_of("x") is ValueKind.TEXT
    assert kind_of(b"x") is ValueKind.BINARY
    assert kind_of(memoryview(b"x")) is ValueKind.BINARY
    assert kind_of(datetime(2024, 1, 1)) is ValueKind.TIMESTAMP
    assert kind_of(Decimal("1.10")) is ValueKind.TEXT
    assert kind_of(True) is ValueKind.TEXT


def test_result_set_shape():
    result = ResultSet([Column("a", "int"), Column("b")], [(1, None), [2, "x"]])

    assert len(result) == 2
    assert result.row_count == 2
    assert result.column_names == ["a", "b"]
    assert result.first() == Row([1, None])
    assert result[1] == (2, "x")
    assert [row[0] for row in result] == [1, 2]
    assert ResultSet([Column("a")]).first() is None


def test_rows_must_match_columns():
    with pytest.raises(ValueError):
        ResultSet([Column("a"), Column("b")], [(1,)])


def test_zero_column_result():
    result = ResultSet([])
    assert result.columns == ()
    assert result.rows == ()


def test_from_names():
    result = ResultSet.from_names(["users", "orders"], "Table")
    assert result.column_names == ["Table"]
    assert list(result) == [("users",), ("orders",)]


def test_column_equality():
    assert Column("id", "int") == Column("id", "int")
    assert Column("id", "int") != Column("id", "text")
    assert len({Column("id", "int"), Column("id", "int")}) == 1


@pytest.mark.parametrize(
    "value,expected",
    [
        (datetime(2024, 1, 2, 3, 4, 5), "2024-01-02T03:04:05Z"),
        (datetime(2024, 1, 2, 3, 4, 5, 100, tzinfo=timezone.utc), "2024-01-02T03:04:05.0001Z"),
        (datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone(timedelta(hours=9))), "2024-01-02T03:04:05+09:00"),
    ],
)
def test_iso_timestamp(value, expected):
    assert iso_timestamp(value) == expected


def test_context_deadline():
    ctx = Context.with_timeout(0)
    assert ctx.done()
    assert ctx.remaining() == 0.0
    with pytest.raises(TimeoutError, match="deadline"):
        ctx.check()

    background = Context.background()
    assert background.remaining() is None
    background.check()


def test_context_cancel_fires_hooks_once():
    ctx = Context.background()
    fired = []
    ctx.on_cancel(lambda: fired.append("a"))
    unregister = ctx.on_cancel(lambda: fired.append("b"))
    unregister()

    ctx.cancel()
    ctx.cancel()

    assert fired == ["a"]
    assert ctx.cancelled
    with pytest.raises(TimeoutError, match="cancelled"):
        ctx.check()


def test_config_from_env():
    config = Config.from_env({
        "BINSQL_MAX_CONNECTIONS": "8",
        "BINSQL_PING_TIMEOUT": "2.5",
        "BINSQL_ODBC_DRIVER": "FreeTDS",
        "BINSQL_SCROLLBACK_LIMIT": "",
        "UNRELATED": "1",
    })
    assert config.max_connections == 8
    assert config.ping_timeout == 2.5
    assert config.odbc_driver == "FreeTDS"
    assert config.scrollback_limit == 1000


def test_config_rejects_bad_values():
    with pytest.raises(UsageError):
        Config.from_env({"BINSQL_MAX_COLUMN_WIDTH": "wide"})
