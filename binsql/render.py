"""
Result set formatter
"""

from decimal import Decimal
from typing import IO, List, Sequence

from .types import ResultSet, ValueKind, iso_timestamp, kind_of

DEFAULT_MAX_WIDTH = 40
NULL_TEXT = "NULL"
NO_COLUMNS = "(no columns)"
ELLIPSIS = "..."


def is_printable(text: str) -> bool:
    """True if every character is printable or a newline / tab."""
    return all(ch.isprintable() or ch in "\n\t" for ch in text)


def format_value(value) -> str:
    """Display string for one Value. NULL always renders the same literal."""
    kind = kind_of(value)
    if kind is ValueKind.NULL:
        return NULL_TEXT
    if kind is ValueKind.BINARY:
        raw = bytes(value)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            return f"<blob {len(raw)} bytes>"
        if is_printable(text):
            return text
        return f"<blob {len(raw)} bytes>"
    if kind is ValueKind.FLOAT:
        text = repr(value)
        # no exponent notation in a table cell
        if "e" in text and value == value and abs(value) != float("inf"):
            text = format(Decimal(text), "f")
        return text
    if kind is ValueKind.TIMESTAMP:
        return iso_timestamp(value)
    return str(value)


def pad_right(text: str, width: int) -> str:
    if len(text) >= width:
        return text
    return text + " " * (width - len(text))


def truncate(text: str, width: int) -> str:
    """
    Cut ``text`` to ``width`` characters.

    From four characters up the cut is marked with an ellipsis; narrower
    columns get a plain cut.
    """
    if len(text) <= width:
        return text
    if width < 4:
        return text[:width]
    return text[:width - 3] + ELLIPSIS


def column_widths(names: Sequence[str], cells: Sequence[Sequence[str]], max_width: int) -> List[int]:
    """Header length, widened by the longest cell up to ``max_width``."""
    widths = [len(name) for name in names]
    for row in cells:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], min(len(cell), max_width))
    return widths


def _border(left: str, mid: str, right: str, widths: Sequence[int]) -> str:
    return left + mid.join("─" * (w + 2) for w in widths) + right


def _row(cells: Sequence[str], widths: Sequence[int]) -> str:
    parts = [" " + pad_right(truncate(c, w), w) + " " for c, w in zip(cells, widths)]
    return "│" + "│".join(parts) + "│"


def render_table(result: ResultSet, max_width: int = DEFAULT_MAX_WIDTH) -> List[str]:
    """
    Render a result set as a box-drawn grid.

    Args:
        result: Rows to draw
        max_width: Cap on how far a cell can widen its column; <= 0 means 40

    Returns:
        Lines: top border, header, separator, one per row, bottom border.
        A result without columns renders as the single line ``(no columns)``.
    """
    if not result.columns:
        return [NO_COLUMNS]
    if max_width <= 0:
        max_width = DEFAULT_MAX_WIDTH

    names = result.column_names
    cells = [[format_value(v) for v in row] for row in result.rows]
    widths = column_widths(names, cells, max_width)

    lines = [_border("┌", "┬", "┐", widths), _row(names, widths), _border("├", "┼", "┤", widths)]
    lines.extend(_row(row, widths) for row in cells)
    lines.append(_border("└", "┴", "┘", widths))
    return lines


def write_table(stream: IO[str], result: ResultSet, max_width: int = DEFAULT_MAX_WIDTH) -> None:
    """Render ``result`` and write it to a text stream."""
    for line in render_table(result, max_width):
        stream.write(line + "\n")
