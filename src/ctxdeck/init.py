# ctxdeck — Context & Job Deck for the Terminal
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Initialization for ctxdeck.

Responsibilities:
- Confirm before overwriting an existing config file
- Write a config seeded with the packaged example contexts

Important boundary:
- This module must NOT parse YAML directly.
- YAML/defaults are owned by ctxdeck.config.
"""

from __future__ import annotations

from typing import Protocol

from . import config
from .models import Config, Context, Theme
from .store import JSONConfigStore

# ----------------------------------------------------------------
# Interviewer (init-owned wizard interface)
# ----------------------------------------------------------------


class Interviewer(Protocol):
    """Minimal interface for init wizard interaction."""

    def write(self, text: str) -> None: ...

    def ask(self, prompt: str) -> str: ...


class StdIOInterviewer:
    """Default interviewer for real CLI usage (input/print)."""

    def write(self, text: str) -> None:
        print(text)

    def ask(self, prompt: str) -> str:
        return input(prompt)


# ----------------------------------------------------------------
# Public API
# ----------------------------------------------------------------


def build_example_config(theme_defaults: dict[str, str] | None = None) -> Config:
    """Config holding the packaged example contexts and no current context."""
    contexts = {}
    for raw in config.load_example_contexts():
        ctx = Context.from_dict(raw)
        contexts[ctx.name] = ctx
    return Config(
        contexts=contexts,
        current_context="",
        theme=Theme.from_dict({}, theme_defaults),
    )


def init_config(
    store: JSONConfigStore,
    interviewer: Interviewer | None = None,
    theme_defaults: dict[str, str] | None = None,
) -> Config | None:
    """Write the example config to ``store``.

    Returns:
        The written Config, or None if the user declined to overwrite.

    Raises:
        PersistenceError: the config could not be written
    """
    if interviewer is None:
        interviewer = StdIOInterviewer()

    if store.exists():
        interviewer.write(f"Configuration file already exists at: {store.path}")
        response = interviewer.ask("Do you want to overwrite it? (y/N): ").strip()
        if response not in ("y", "Y"):
            interviewer.write("Initialization cancelled.")
            return None

    example = build_example_config(theme_defaults)
    store.save(example)

    interviewer.write(_build_initialization_summary(example, store))
    return example


def _build_initialization_summary(cfg: Config, store: JSONConfigStore) -> str:
    lines: list[str] = []
    lines.append(f"Configuration initialized at: {store.path}")
    lines.append("Example contexts created:")
    for name in sorted(cfg.contexts):
        lines.append(f"  - {name}: {cfg.contexts[name].label}")
    lines.append("")
    lines.append("Run 'ctxdeck list' to see all contexts.")
    lines.append("Run 'ctxdeck tui' to use the interactive interface.")
    return "\n".join(lines)
