"""
Full-screen prompt_toolkit front-end for Console.
"""

from typing import List, Optional

from prompt_toolkit.application import Application
from prompt_toolkit.application.current import get_app
from prompt_toolkit.buffer import Buffer
from prompt_toolkit.document import Document
from prompt_toolkit.filters import Condition
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout, Window
from prompt_toolkit.layout.controls import BufferControl, FormattedTextControl
from prompt_toolkit.layout.processors import BeforeInput
from prompt_toolkit.styles import Style

from .console import Console, Mode

# ANSI palette names; actual colours come from the user's terminal theme.
DEFAULT_THEME = Style.from_dict({
    "text": "",
    "title": "ansiblue bold",
    "badge": "ansicyan bold",
    "muted": "ansibrightblack",
    "echo": "ansicyan",
    "error": "ansired",
    "table.border": "ansicyan",
    "table.header": "ansicyan bold",
    "table.body": "ansicyan",
    "prompt": "ansicyan bold",
})

HEADER_HINT = "/dt tables  ·  /e [n] expand  ·  /q quit  ·  Ctrl+J/K history  ·  ? help"
HELP_HINT = "HELP · esc/q to close"
FOOTER = "^C quit  ·  Ctrl+J/K history  ·  ? help"

# header + prompt + footer
CHROME_LINES = 3


class OutputView:
    """
    Scroll position over a list of lines, counted from the bottom.

    Offset 0 follows the newest output; scrolling never touches the
    console's command history.
    """

    def __init__(self):
        self.offset = 0

    def follow(self) -> None:
        self.offset = 0

    def scroll_up(self, lines: int, total: int, height: int) -> None:
        self.offset = min(self.offset + lines, max(0, total - height))

    def scroll_down(self, lines: int) -> None:
        self.offset = max(0, self.offset - lines)

    def window(self, lines: List, height: int) -> List:
        if height <= 0:
            return []
        end = len(lines) - self.offset
        return lines[max(0, end - height):end]


def _fragments(lines) -> StyleAndTextTuples:
    fragments: StyleAndTextTuples = []
    for i, (style, text) in enumerate(lines):
        if i:
            fragments.append(("", "\n"))
        fragments.append((f"class:{style}" if style else "", text))
    return fragments


def _pad_between(left: int, right: str, width: int) -> str:
    """Gap + right-hand text so the header fills ``width`` columns."""
    space = width - left - 2
    if space <= 0:
        return ""
    right = right[:space]
    return " " * (width - left - len(right)) + right


class ConsoleApp:
    """Binds a Console to a prompt_toolkit Application."""

    def __init__(self, console: Console, theme: Optional[Style] = None):
        self.console = console
        self.view = OutputView()
        overlay = Condition(lambda: console.mode is Mode.OVERLAY)
        self.buffer = Buffer(multiline=False, read_only=overlay)

        prompt = f"BINSQL:{console.label}> "
        body = Window(FormattedTextControl(self._body), wrap_lines=False)
        self.app = Application(
            layout=Layout(
                HSplit([
                    Window(FormattedTextControl(self._header), height=1),
                    body,
                    Window(
                        BufferControl(self.buffer, input_processors=[BeforeInput(prompt, style="class:prompt")]),
                        height=1,
                    ),
                    Window(FormattedTextControl([("class:muted", FOOTER)]), height=1),
                ]),
                focused_element=self.buffer,
            ),
            key_bindings=self._bindings(overlay),
            style=theme or DEFAULT_THEME,
            full_screen=True,
            mouse_support=False,
        )

    def _size(self):
        return get_app().output.get_size()

    def _body_height(self) -> int:
        return max(3, self._size().rows - CHROME_LINES)

    def _header(self) -> StyleAndTextTuples:
        left = "BINSQL [" + self.console.label + "]"
        hint = HELP_HINT if self.console.mode is Mode.OVERLAY else HEADER_HINT
        return [
            ("class:title", "BINSQL"),
            ("", " "),
            ("class:badge", "[" + self.console.label + "]"),
            ("class:muted", _pad_between(len(left), hint, self._size().columns)),
        ]

    def _body(self) -> StyleAndTextTuples:
        self.console.width = self._size().columns
        if self.console.mode is Mode.OVERLAY:
            return _fragments(self.console.overlay)
        return _fragments(self.view.window(list(self.console.scrollback), self._body_height()))

    def _set_input(self, text: str) -> None:
        self.buffer.set_document(Document(text, len(text)), bypass_readonly=True)

    def _bindings(self, overlay: Condition) -> KeyBindings:
        console = self.console
        kb = KeyBindings()
        prompting = ~overlay
        empty_prompt = Condition(lambda: not self.buffer.text.strip())

        @kb.add("c-c")
        def _quit(event):
            event.app.exit()

        @kb.add("escape", filter=overlay)
        @kb.add("q", filter=overlay)
        def _close_overlay(event):
            console.close_overlay()

        @kb.add("?", filter=prompting & empty_prompt)
        def _help(event):
            console.open_help()

        @kb.add("enter", filter=prompting)
        def _submit(event):
            console.input = self.buffer.text
            console.submit()
            self._set_input(console.input)
            self.view.follow()
            if not console.running:
                event.app.exit()

        @kb.add("c-k", filter=prompting)
        def _history_prev(event):
            console.history_prev()
            self._set_input(console.input)

        @kb.add("c-j", filter=prompting)
        def _history_next(event):
            console.history_next()
            self._set_input(console.input)

        @kb.add("c-u")
        @kb.add("pageup")
        def _scroll_up(event):
            height = self._body_height()
            self.view.scroll_up(height // 2, len(console.scrollback), height)

        @kb.add("c-d")
        @kb.add("pagedown")
        def _scroll_down(event):
            self.view.scroll_down(self._body_height() // 2)

        return kb

    def run(self) -> None:
        self.app.run()


def run(console: Console, theme: Optional[Style] = None) -> None:
    """Run the full-screen console until /q, Ctrl+C or end of input."""
    ConsoleApp(console, theme).run()
