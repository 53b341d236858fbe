# ctxdeck — Context & Job Deck for the Terminal
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Two-panel layout for the terminal UI.

Everything here is a pure function of the terminal size and the selection
state, so it can be tested without a terminal. The UI draws a border around
each panel; the sizes returned here are the panel *content* sizes.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from prompt_toolkit.utils import get_cwidth

from .executor import SEPARATOR
from .models import Context

MODE_RUN = "run"
MODE_SWITCH = "switch"

# border (2) + horizontal padding (2 * 2) + margin
HORIZONTAL_CHROME = 8
# title, blank line, blank line, help line
LIST_PANEL_FIXED_LINES = 4
# title, separator
OUTPUT_PANEL_FIXED_LINES = 2


@dataclass(frozen=True)
class LayoutSettings:
    mode: str = MODE_RUN
    title: str = "Job Deck"
    output_title: str = "Job Details"
    help: str = "↑/↓ or j/k: navigate • space: execute • d: details • q: quit"
    chrome: int = 2
    min_top_height: int = 8
    min_bottom_height: int = 5
    min_line_width: int = 10

    @classmethod
    def for_mode(cls, mode: str = MODE_RUN) -> LayoutSettings:
        if mode == MODE_SWITCH:
            return cls(
                mode=mode,
                title="Context Switcher",
                output_title="Output",
                help="↑/↓ or j/k: navigate • space: switch • d: details • q: quit",
            )
        return cls(mode=mode)

    @classmethod
    def from_config(cls, system_config: Any, mode: str = MODE_RUN) -> LayoutSettings:
        """Build settings from the ``ui`` section of system.yaml."""
        base = cls.for_mode(mode)

        def _get(path: str, default):
            val = system_config.get_path(path, default)
            return type(default)(val) if val is not None else default

        return cls(
            mode=mode,
            title=_get(f"ui.{mode}.title", base.title),
            output_title=_get(f"ui.{mode}.output_title", base.output_title),
            help=_get(f"ui.{mode}.help", base.help),
            chrome=_get("ui.layout.chrome", base.chrome),
            min_top_height=_get("ui.layout.min_top_height", base.min_top_height),
            min_bottom_height=_get(
                "ui.layout.min_bottom_height", base.min_bottom_height
            ),
            min_line_width=_get("ui.layout.min_line_width", base.min_line_width),
        )


@dataclass(frozen=True)
class RenderedLayout:
    top: str
    bottom: str
    top_height: int
    bottom_height: int
    # line index within ``top`` of the cursor entry, None for an empty list
    selected_line: int | None = None


def panel_heights(height: int, settings: LayoutSettings = LayoutSettings()) -> tuple[int, int]:
    """Content heights of the list panel and the output panel.

    The bottom panel takes what the top one leaves (minus the two borders
    of each panel). Minimums are applied last, so on a small terminal the
    panels can add up to more than ``height``.
    """
    top = height // 2 - settings.chrome
    bottom = height - top - 4

    if top < settings.min_top_height:
        top = settings.min_top_height
    if bottom < settings.min_bottom_height:
        bottom = settings.min_bottom_height
    return top, bottom


def content_width(width: int, settings: LayoutSettings = LayoutSettings()) -> int:
    return max(width - HORIZONTAL_CHROME, settings.min_line_width)


def visible_window(count: int, cursor: int, available: int) -> tuple[int, int]:
    """Half-open index range ``[start, end)`` of entries to show.

    When everything fits, that is the whole list. Otherwise exactly
    ``available`` entries, centred on the cursor and clamped to the list.
    """
    available = max(available, 1)
    if count <= available:
        return 0, count

    start = cursor - available // 2
    if start < 0:
        start = 0
    end = start + available
    if end > count:
        end = count
        start = max(end - available, 0)
    return start, end


def _split_at_columns(text: str, limit: int) -> tuple[str, str]:
    """Longest prefix of ``text`` that fits in ``limit`` terminal columns.

    At least one character is taken, so a double-width character in a
    one-column budget still makes progress.
    """
    used = 0
    for i, ch in enumerate(text):
        w = get_cwidth(ch)
        if used + w > limit and i > 0:
            return text[:i], text[i:]
        used += w
    return text, ""


def truncate_line(line: str, max_width: int) -> str:
    """Cut ``line`` to ``max_width`` terminal columns, ending in "..."."""
    if get_cwidth(line) <= max_width:
        return line
    if max_width <= 3:
        return _split_at_columns(line, max_width)[0]
    return _split_at_columns(line, max_width - 3)[0] + "..."


def wrap_text(text: str, width: int) -> list[str]:
    """Hard-wrap every line at ``width`` terminal columns (no word awareness)."""
    width = max(width, 1)
    lines: list[str] = []
    for line in text.rstrip("\n").split("\n"):
        rest = line.expandtabs(4)
        while True:
            head, rest = _split_at_columns(rest, width)
            lines.append(head)
            if not rest:
                break
    return lines


def status_icon(context: Context, mode: str, current: str = "") -> str:
    if mode == MODE_SWITCH:
        return "●" if context.name == current else " "
    if context.last_result is None:
        return " "
    return "✓" if context.last_result.success else "✗"


def format_entry(context: Context, selected: bool, icon: str) -> str:
    marker = ">" if selected else " "
    line = f"{marker} [{icon}] {context.label}"
    if context.description:
        line += f" - {context.description}"
    return line


def render_list_panel(
    width: int,
    top_height: int,
    contexts: Sequence[Context],
    cursor: int,
    settings: LayoutSettings = LayoutSettings(),
    current: str = "",
) -> tuple[str, int | None]:
    """Text of the list panel and the line index of the cursor entry."""
    lines = [settings.title, ""]
    selected_line = None
    max_width = content_width(width, settings)

    if not contexts:
        lines.append("No contexts available.")
    else:
        available = top_height - LIST_PANEL_FIXED_LINES
        start, end = visible_window(len(contexts), cursor, available)
        for i in range(start, end):
            ctx = contexts[i]
            icon = status_icon(ctx, settings.mode, current)
            if i == cursor:
                selected_line = len(lines)
            lines.append(truncate_line(format_entry(ctx, i == cursor, icon), max_width))

    lines.append("")
    lines.append(truncate_line(settings.help, max_width))
    return "\n".join(lines), selected_line


def render_output_panel(
    width: int,
    bottom_height: int,
    last_output: str,
    settings: LayoutSettings = LayoutSettings(),
) -> str:
    """Text of the output panel; always the *beginning* of ``last_output``."""
    max_width = content_width(width, settings)
    available = max(bottom_height - OUTPUT_PANEL_FIXED_LINES, 1)

    body = wrap_text(last_output, max_width)[:available]
    return "\n".join([settings.output_title, SEPARATOR[:max_width], *body])


def render(
    width: int,
    height: int,
    contexts: Sequence[Context],
    cursor: int,
    last_output: str,
    settings: LayoutSettings = LayoutSettings(),
    current: str = "",
) -> RenderedLayout:
    top_height, bottom_height = panel_heights(height, settings)
    top, selected_line = render_list_panel(
        width, top_height, contexts, cursor, settings, current
    )
    bottom = render_output_panel(width, bottom_height, last_output, settings)
    return RenderedLayout(
        top=top,
        bottom=bottom,
        top_height=top_height,
        bottom_height=bottom_height,
        selected_line=selected_line,
    )
