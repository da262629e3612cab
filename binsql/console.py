"""
Interactive console state machine.

Owns everything the full-screen front-end shows except the widgets
themselves: scrollback, the input buffer, command history and the last
result. Front-ends feed it key actions (``submit``, ``history_prev``, ...)
and paint ``scrollback`` or ``overlay``.
"""

import logging
from collections import deque
from enum import Enum
from typing import Deque, List, Optional, Sequence, Tuple

from .client import Client, relations_query
from .config import Config
from .context import Context
from .exceptions import QueryError, UsageError
from .render import format_value, pad_right, render_table
from .types import Column, ResultSet

logger = logging.getLogger(__name__)

META_PREFIX = "/"
EXPAND_HINT = "Use /e [rowNumber] to expand a row (example: /e 1)."

# (style class, text); the front-end maps style classes to colours
Line = Tuple[str, str]


class Mode(Enum):
    PROMPTING = "prompting"
    OVERLAY = "overlay"


HELP_COMMANDS = (
    ("/dt", "List tables"),
    ("/d TABLE", "Describe columns of TABLE"),
    ("/e N", "Expand row N from last result"),
    ("/help", "Show this help"),
    ("/q", "Quit binsql"),
)

HELP_KEYS = (
    ("Ctrl+J / Ctrl+K", "Command history"),
    ("Ctrl+U / Ctrl+D", "Scroll output"),
    ("enter", "Execute SQL/meta command"),
    ("?", "Show this help (when prompt is empty)"),
    ("esc / q", "Close help"),
    ("ctrl+c", "Quit immediately"),
)

HELP_TIPS = (
    "Use /e 1, /e 2, ... to inspect wide rows",
    "Most SQL works as-is; meta commands always start with /",
    "History keeps recent commands, use Ctrl+J / Ctrl+K",
    "Scroll output with Ctrl+U / Ctrl+D",
)


def _help_row(cmd: str, desc: str) -> str:
    return "  " + pad_right(cmd, 18) + "  " + desc


def help_lines() -> List[Line]:
    lines: List[Line] = [("title", " BINSQL HELP "), ("muted", "─" * 40)]
    lines += [("", ""), ("muted", " Meta commands ")]
    lines += [("text", _help_row(cmd, desc)) for cmd, desc in HELP_COMMANDS]
    lines += [("", ""), ("muted", " Keys ")]
    lines += [("text", _help_row(key, desc)) for key, desc in HELP_KEYS]
    lines += [("", ""), ("muted", " Tips ")]
    lines += [("text", "• " + tip) for tip in HELP_TIPS]
    return lines


class Console:
    """
    One interactive session against a Client.

    Example:
        ```python
        console = Console(client)
        console.submit("select 1 as a")
        console.submit("/e 1")
        print("\\n".join(console.lines))
        ```
    """

    def __init__(
        self,
        client: Client,
        label: Optional[str] = None,
        config: Optional[Config] = None,
        ctx: Optional[Context] = None
    ):
        self.config = config or Config()
        self.client = client
        self.label = label or client.label or "db"
        self.ctx = ctx or Context.background()
        self.mode = Mode.PROMPTING
        self.running = True

        self.scrollback: Deque[Line] = deque(maxlen=self.config.scrollback_limit)
        self.overlay: List[Line] = []
        self.input = ""
        self.history: List[str] = []
        self.history_index = 0
        self.last_result: Optional[ResultSet] = None
        # terminal columns; 0 until the front-end reports a size
        self.width = 0

    @property
    def lines(self) -> List[str]:
        """Scrollback text without styles, oldest first."""
        return [text for _, text in self.scrollback]

    def append(self, text: str, style: str = "text") -> None:
        self.scrollback.append((style, text))

    def append_table(self, result: ResultSet) -> None:
        lines = render_table(result, self.column_width(len(result.columns)))
        last = len(lines) - 1
        for i, line in enumerate(lines):
            if i == 1:
                style = "table.header"
            elif i in (0, 2, last):
                style = "table.border"
            else:
                style = "table.body"
            self.append(line, style)

    def column_width(self, column_count: int) -> int:
        """Share the terminal width between columns, falling back to the default."""
        if self.width > 0 and column_count > 0:
            width = (self.width - 10) // column_count
            if width > 8:
                return width
        return self.config.max_column_width

    # ---------- input ----------

    def submit(self, text: Optional[str] = None) -> None:
        """Handle ``enter``: run the input buffer (or ``text``) and clear it."""
        line = (self.input if text is None else text).strip()
        try:
            if line:
                self.push_history(line)
                self.execute(line)
        finally:
            self.input = ""

    def execute(self, line: str) -> None:
        self.append(">>> " + line, "echo")
        try:
            if line.startswith(META_PREFIX):
                self.run_meta(line)
            else:
                self.run_sql(line)
        except UsageError as e:
            self.append(str(e), "error")

    def run_meta(self, line: str) -> None:
        parts = line.split()
        command, args = parts[0], parts[1:]

        if command in ("/q", "/quit"):
            self.append("Bye.")
            self.running = False
        elif command == "/dt":
            self.list_relations()
        elif command == "/d":
            if len(args) != 1:
                raise UsageError("usage: /d TABLE")
            self.describe(args[0])
        elif command in ("/e", "/expand"):
            self.expand_row(args)
        elif command in ("/help", "/?"):
            self.open_help()
        else:
            self.append("Unknown command: " + line, "error")

    def run_sql(self, sql: str) -> None:
        logger.debug("executing: %s", sql)
        try:
            result = self.client.query(sql, ctx=self.ctx)
        except QueryError as e:
            logger.debug("query failed: %s", e)
            self.append(f"error: {e}", "error")
            return

        self.last_result = result
        if not result.columns:
            self.append("(no columns)")
            return
        if result.rows:
            self.append(EXPAND_HINT)
        self.append_table(result)
        self.append(f"({result.row_count} rows)")

    # ---------- meta commands ----------

    def list_relations(self) -> None:
        try:
            result = self.client.query(relations_query(self.client.kind), ctx=self.ctx)
        except QueryError as e:
            logger.debug("relations query failed, falling back to table list: %s", e)
            try:
                names = self.client.list_tables(ctx=self.ctx)
            except QueryError as e2:
                self.append(f"error listing tables: {e2}", "error")
                return
            result = ResultSet.from_names(names, "Table")

        if not result.rows:
            self.append("(no relations)")
            return
        self.append("List of relations")
        self.append_table(result)
        self.append(f"({result.row_count} rows)")

    def describe(self, table: str) -> None:
        try:
            columns = self.client.describe_table(table, ctx=self.ctx)
        except QueryError as e:
            self.append(f"error: {e}", "error")
            return
        if not columns:
            self.append(f"no such table: {table}", "error")
            return
        result = ResultSet(
            [Column("Column"), Column("Type")],
            [(c.name, c.data_type) for c in columns],
        )
        self.append(f"Table {table}")
        self.append_table(result)

    def expand_row(self, args: Sequence[str]) -> None:
        result = self.last_result
        if result is None or not result.rows:
            raise UsageError("no previous result to expand")

        index = 1
        if args:
            try:
                index = int(args[0])
            except ValueError:
                raise UsageError("usage: /e [rowNumber]") from None
            if index < 1 or index > result.row_count:
                raise UsageError("usage: /e [rowNumber]")

        row = result[index - 1]
        key_width = max(len(c.name) for c in result.columns)
        for column, value in zip(result.columns, row):
            self.append(pad_right(column.name, key_width) + "  ›  " + format_value(value), "table.body")

    # ---------- overlay ----------

    def open_help(self) -> None:
        self.overlay = help_lines()
        self.mode = Mode.OVERLAY

    def close_overlay(self) -> None:
        self.overlay = []
        self.mode = Mode.PROMPTING

    # ---------- command history ----------

    def push_history(self, line: str) -> None:
        if not line:
            return
        if not self.history or self.history[-1] != line:
            self.history.append(line)
        self.history_index = len(self.history)

    def history_prev(self) -> None:
        if not self.history:
            return
        if self.history_index > 0:
            self.history_index -= 1
        self.input = self.history[self.history_index]

    def history_next(self) -> None:
        if not self.history:
            return
        if self.history_index < len(self.history) - 1:
            self.history_index += 1
            self.input = self.history[self.history_index]
            return
        self.history_index = len(self.history)
        self.input = ""
