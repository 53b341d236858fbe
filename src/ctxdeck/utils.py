# ctxdeck — Context & Job Deck for the Terminal
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Small text helpers shared by the CLI commands.
"""

from collections.abc import Sequence
from typing import Any


def format_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    underline: bool = False,
) -> str:
    """
    Render rows as left-aligned columns separated by two spaces.

    Args:
        headers: column names
        rows: one sequence of cell values per row (cells are str()-ed)
        underline: put a line of dashes under each header

    Returns:
        The table text, or "" when there are no rows. Trailing padding is
        stripped from every line.
    """
    if not rows:
        return ""

    table = [[str(h) for h in headers]]
    if underline:
        table.append(["-" * len(h) for h in table[0]])
    table.extend([str(cell) for cell in row] for row in rows)

    widths = [
        max(len(r[col]) for r in table if col < len(r))
        for col in range(len(table[0]))
    ]

    out = []
    for r in table:
        cells = (cell.ljust(widths[col]) for col, cell in enumerate(r))
        out.append("  ".join(cells).rstrip())
    return "\n".join(out)


def parse_assignments(items: list[str]) -> dict[str, str]:
    """Parse ``KEY=VALUE`` strings into a dict (later keys win).

    Raises:
        ValueError: an item has no '=' or an empty key
    """
    out: dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"expected KEY=VALUE, got '{item}'")
        out[key] = value
    return out
