"""Canonical result model shared by every driver"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

Value = Union[None, int, float, str, bytes, datetime]


class ValueKind(Enum):
    """Tags of the Value union"""
    NULL = "NULL"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    TEXT = "TEXT"
    BINARY = "BINARY"
    TIMESTAMP = "TIMESTAMP"


def kind_of(value: Any) -> ValueKind:
    """Classify a scalar. Anything unrecognised (Decimal, UUID, ...) is TEXT."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.TEXT
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueKind.BINARY
    if isinstance(value, datetime):
        return ValueKind.TIMESTAMP
    return ValueKind.TEXT


class Column:
    """Result column metadata"""

    __slots__ = ("name", "data_type")

    def __init__(self, name: str, data_type: str = ""):
        self.name = name
        self.data_type = data_type

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Column):
            return NotImplemented
        return (self.name, self.data_type) == (other.name, other.data_type)

    def __hash__(self) -> int:
        return hash((self.name, self.data_type))

    def __repr__(self) -> str:
        return f"Column({self.name}: {self.data_type or '?'})"


class Row:
    """An immutable row with positional access"""

    __slots__ = ("_values",)

    def __init__(self, values: Iterable[Value]):
        self._values: Tuple[Value, ...] = tuple(values)

    def __getitem__(self, index: int) -> Value:
        """Get value by column position"""
        return self._values[index]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Value]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Row):
            return self._values == other._values
        if isinstance(other, (list, tuple)):
            return self._values == tuple(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._values)

    def values(self) -> List[Value]:
        """Get all values"""
        return list(self._values)

    def __repr__(self) -> str:
        return f"Row({list(self._values)})"


class ResultSet:
    """
    Columns plus rows returned by a query.

    Immutable once constructed. Every row must have exactly one value per column.

    Example:
        ```python
        result = client.query("SELECT id, name FROM users")

        print(result.column_names)
        for row in result:
            print(row[0], row[1])
        ```
    """

    __slots__ = ("_columns", "_rows")

    def __init__(self, columns: Sequence[Column], rows: Iterable[Iterable[Value]] = ()):
        cols = tuple(columns)
        built = []
        for i, raw in enumerate(rows):
            row = raw if isinstance(raw, Row) else Row(raw)
            if len(row) != len(cols):
                raise ValueError(
                    f"row {i} has {len(row)} values, expected {len(cols)}"
                )
            built.append(row)
        self._columns: Tuple[Column, ...] = cols
        self._rows: Tuple[Row, ...] = tuple(built)

    @property
    def columns(self) -> Tuple[Column, ...]:
        return self._columns

    @property
    def rows(self) -> Tuple[Row, ...]:
        return self._rows

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self._columns]

    def __len__(self) -> int:
        """Number of rows"""
        return len(self._rows)

    def __getitem__(self, index: int) -> Row:
        """Get row by index"""
        return self._rows[index]

    def __iter__(self) -> Iterator[Row]:
        """Iterate over rows"""
        return iter(self._rows)

    def __repr__(self) -> str:
        return f"ResultSet({len(self._rows)} rows, {len(self._columns)} columns)"

    def first(self) -> Optional[Row]:
        """Get first row or None"""
        return self._rows[0] if self._rows else None

    @classmethod
    def from_names(cls, names: Sequence[str], title: str) -> "ResultSet":
        """Single-column result built from a plain list of names."""
        return cls([Column(title)], [(name,) for name in names])


def iso_timestamp(value: datetime) -> str:
    """
    RFC 3339 rendering with the offset always spelled out.

    Naive datetimes are taken to be UTC. Fractional seconds keep full
    precision with trailing zeros trimmed, and a zero offset is written ``Z``.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.replace(tzinfo=timezone.utc)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset()
    minutes = int(offset.total_seconds()) // 60
    if minutes == 0:
        return text + "Z"
    sign = "+" if minutes > 0 else "-"
    hours, minutes = divmod(abs(minutes), 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"
