# ctxdeck — Context & Job Deck for the Terminal
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

from __future__ import annotations

from prompt_toolkit.application import Application
from prompt_toolkit.application.current import get_app
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.layout.dimension import Dimension
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import Frame

from .errors import PersistenceError
from .layout import LayoutSettings, RenderedLayout, render
from .models import Theme
from .selection import (
    Activate,
    Event,
    MoveDown,
    MoveUp,
    Quit,
    Resize,
    SelectionModel,
    SelectionState,
    ShowDetails,
)

# Left padding inside each frame; accounted for in layout.HORIZONTAL_CHROME
PAD = "  "


# ----------------------------
# Theme / Style
# ----------------------------

_ANSI_16 = [
    "#000000", "#800000", "#008000", "#808000",
    "#000080", "#800080", "#008080", "#c0c0c0",
    "#808080", "#ff0000", "#00ff00", "#ffff00",
    "#0000ff", "#ff00ff", "#00ffff", "#ffffff",
]
_CUBE_LEVELS = [0, 95, 135, 175, 215, 255]


def xterm_to_hex(index: int) -> str:
    """Hex RGB for an xterm-256 color index."""
    if not 0 <= index <= 255:
        raise ValueError(f"xterm color index out of range: {index}")
    if index < 16:
        return _ANSI_16[index]
    if index < 232:
        i = index - 16
        r, g, b = _CUBE_LEVELS[i // 36], _CUBE_LEVELS[(i // 6) % 6], _CUBE_LEVELS[i % 6]
        return f"#{r:02x}{g:02x}{b:02x}"
    level = 8 + (index - 232) * 10
    return f"#{level:02x}{level:02x}{level:02x}"


def theme_color(value: str) -> str:
    """prompt_toolkit color for a theme slot.

    Bare numbers are xterm-256 indexes; anything else ("#ff5fd7",
    "ansired", ...) is passed through.
    """
    value = (value or "").strip()
    if value.isdigit():
        return xterm_to_hex(int(value))
    return value


def build_style(theme: Theme) -> Style:
    return Style.from_dict(
        {
            "title": theme_color(theme.title),
            "selected": f"{theme_color(theme.selected)} bold",
            "frame.border": theme_color(theme.border),
            "output-title": f"{theme_color(theme.output_title)} bold",
        }
    )


# ----------------------------
# Full-screen two-panel UI
# ----------------------------


class DeckUI:
    """
    Full-screen prompt_toolkit front end for a SelectionModel:
      - top frame: context list (cursor, status icon, label, description)
      - bottom frame: output of the last action, or context details
      - key presses become selection events; the terminal size is read on
        every redraw and fed in as Resize
    """

    def __init__(
        self,
        model: SelectionModel,
        settings: LayoutSettings | None = None,
        theme: Theme | None = None,
    ) -> None:
        self.model = model
        self.settings = settings or LayoutSettings.for_mode(model.mode)
        self._style = build_style(theme or model.kernel.config.theme)
        self._cache: tuple[SelectionState, RenderedLayout] | None = None
        self.app: Application | None = None

    # ---------- rendering ----------

    def _sync_size(self) -> None:
        size = get_app().output.get_size()
        state = self.model.state
        if (size.columns, size.rows) != (state.width, state.height):
            self.model.dispatch(Resize(width=size.columns, height=size.rows))

    def rendered(self) -> RenderedLayout:
        self._sync_size()
        state = self.model.state
        if self._cache is not None and self._cache[0] is state:
            return self._cache[1]
        out = render(
            state.width,
            state.height,
            state.contexts,
            state.cursor,
            state.last_output,
            self.settings,
            state.current,
        )
        self._cache = (state, out)
        return out

    def top_fragments(self) -> StyleAndTextTuples:
        out = self.rendered()
        fragments: StyleAndTextTuples = []
        lines = out.top.split("\n")
        for i, line in enumerate(lines):
            if i:
                fragments.append(("", "\n"))
            if i == 0:
                style = "class:title"
            elif i == out.selected_line:
                style = "class:selected"
            else:
                style = ""
            fragments.append((style, PAD + line))
        return fragments

    def bottom_fragments(self) -> StyleAndTextTuples:
        out = self.rendered()
        fragments: StyleAndTextTuples = []
        for i, line in enumerate(out.bottom.split("\n")):
            if i:
                fragments.append(("", "\n"))
            style = "class:output-title" if i == 0 else ""
            fragments.append((style, PAD + line))
        return fragments

    def build_layout(self) -> Layout:
        top = Window(
            FormattedTextControl(self.top_fragments),
            height=lambda: Dimension.exact(self.rendered().top_height),
            wrap_lines=False,
        )
        bottom = Window(
            FormattedTextControl(self.bottom_fragments),
            height=lambda: Dimension.exact(self.rendered().bottom_height),
            wrap_lines=False,
        )
        return Layout(HSplit([Frame(top), Frame(bottom)]))

    # ---------- events ----------

    def handle(self, event: Event) -> None:
        """Feed one event to the model; exit the app when it stops running.

        A PersistenceError ends the session and is re-raised from run().
        """
        try:
            state = self.model.dispatch(event)
        except PersistenceError as e:
            if self.app is not None and self.app.is_running:
                self.app.exit(exception=e)
                return
            raise
        if not state.running and self.app is not None and self.app.is_running:
            self.app.exit()

    # ---------- keybindings ----------

    def build_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add("up")
        @kb.add("k")
        def _(event):
            self.handle(MoveUp())

        @kb.add("down")
        @kb.add("j")
        def _(event):
            self.handle(MoveDown())

        @kb.add("space")
        @kb.add("enter")
        def _(event):
            # Blocks the UI until the command exits.
            self.handle(Activate())

        @kb.add("d")
        def _(event):
            self.handle(ShowDetails())

        @kb.add("q")
        @kb.add("c-c")
        def _(event):
            self.handle(Quit())

        return kb

    # ---------- public API ----------

    def run(self) -> None:
        self.app = Application(
            layout=self.build_layout(),
            key_bindings=self.build_key_bindings(),
            style=self._style,
            full_screen=True,
        )
        self.app.run()
