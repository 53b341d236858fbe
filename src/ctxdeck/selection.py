# ctxdeck — Context & Job Deck for the Terminal
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Selection state machine behind the terminal UI.

State is a frozen SelectionState; input arrives as small event objects.
``reduce()`` handles every event that does not touch the kernel, and
SelectionModel.dispatch() adds Activate, which runs a job or switches
context and then re-pulls the snapshot from the kernel.

There is a single interactive state (list navigation). Events are handled
one at a time; an Activate blocks until its subprocess exits.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .errors import NoRunCommandError, NotFoundError, PersistenceError
from .executor import RunOutcome
from .kernel import Kernel
from .layout import MODE_RUN, MODE_SWITCH
from .models import Context, ExecutionResult

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


# ----------------------------
# Events
# ----------------------------


@dataclass(frozen=True)
class MoveUp:
    pass


@dataclass(frozen=True)
class MoveDown:
    pass


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class Activate:
    pass


@dataclass(frozen=True)
class ShowDetails:
    pass


@dataclass(frozen=True)
class Quit:
    pass


Event = MoveUp | MoveDown | Resize | Activate | ShowDetails | Quit


# ----------------------------
# State
# ----------------------------


@dataclass(frozen=True)
class SelectionState:
    contexts: tuple[Context, ...] = ()
    cursor: int = 0
    width: int = 80
    height: int = 24
    last_output: str = ""
    # name of the kernel's current context, for display only
    current: str = ""
    running: bool = True

    @property
    def selected(self) -> Context | None:
        if 0 <= self.cursor < len(self.contexts):
            return self.contexts[self.cursor]
        return None


def clamp_cursor(cursor: int, count: int) -> int:
    if count <= 0:
        return 0
    return min(max(cursor, 0), count - 1)


def reanchor_cursor(
    contexts: tuple[Context, ...], name: str, old_cursor: int
) -> int:
    """Index of ``name`` in ``contexts``; if it is gone, the old index when
    still valid, else the last index."""
    for i, ctx in enumerate(contexts):
        if ctx.name == name:
            return i
    return clamp_cursor(old_cursor, len(contexts))


# ----------------------------
# Output formatting
# ----------------------------


def describe_context(context: Context) -> str:
    lines = [
        f"Name: {context.name}",
        f"Label: {context.label}",
    ]
    if context.description:
        lines.append(f"Description: {context.description}")
    for role in sorted(context.commands):
        lines.append(f"Command ({role}): {context.commands[role]}")

    if context.variables:
        lines.append("")
        lines.append("Variables:")
        for key in sorted(context.variables):
            lines.append(f"  {key} = {context.variables[key]}")

    result = context.last_result
    lines.append("")
    if result is None:
        lines.append("Never executed")
    else:
        lines.append("Last Execution:")
        lines.append(f"  Time: {result.timestamp.strftime(TIME_FORMAT)}")
        lines.append(
            f"  Status: {result.status_label} (Exit Code: {result.exit_code})"
        )
        if result.output:
            lines.append("  Output:")
            lines.append(result.output.rstrip("\n"))
    return "\n".join(lines)


def format_job_result(context: Context, result: ExecutionResult) -> str:
    return (
        f"Executed: {context.label}\n"
        f"Status: {result.status_label} (Exit Code: {result.exit_code})\n"
        f"\n{result.output}"
    )


def format_switch_outcome(context: Context, outcome: RunOutcome | None) -> str:
    if outcome is None:
        return f"Activated: {context.label}"
    if outcome.success:
        return f"Activated: {context.label}\n\nCommand output:\n{outcome.report}"
    return (
        f"Activated: {context.label} (activation command failed)\n\n"
        f"Output:\n{outcome.report}"
    )


# ----------------------------
# Transitions
# ----------------------------


def reduce(state: SelectionState, event: Event) -> SelectionState:
    """Apply an event that needs no kernel access."""
    if isinstance(event, MoveUp):
        return replace(state, cursor=clamp_cursor(state.cursor - 1, len(state.contexts)))
    if isinstance(event, MoveDown):
        return replace(state, cursor=clamp_cursor(state.cursor + 1, len(state.contexts)))
    if isinstance(event, Resize):
        return replace(state, width=event.width, height=event.height)
    if isinstance(event, ShowDetails):
        ctx = state.selected
        if ctx is None:
            return replace(state, last_output="No context selected")
        return replace(state, last_output=describe_context(ctx))
    if isinstance(event, Quit):
        return replace(state, running=False)
    return state


class SelectionModel:
    """Owns the snapshot and drives the kernel on Activate."""

    def __init__(
        self,
        kernel: Kernel,
        mode: str = MODE_RUN,
        width: int = 80,
        height: int = 24,
        ready_text: str = "Ready to execute commands...",
    ) -> None:
        if mode not in (MODE_RUN, MODE_SWITCH):
            raise ValueError(f"unknown mode: {mode}")
        self.kernel = kernel
        self.mode = mode
        self.state = SelectionState(
            contexts=tuple(kernel.list_contexts()),
            width=width,
            height=height,
            last_output=ready_text,
            current=kernel.config.current_context,
        )

    def dispatch(self, event: Event) -> SelectionState:
        if isinstance(event, Activate):
            self.state = self._activate(self.state)
        else:
            self.state = reduce(self.state, event)
        return self.state

    def _refresh(self, state: SelectionState, name: str) -> SelectionState:
        contexts = tuple(self.kernel.list_contexts())
        return replace(
            state,
            contexts=contexts,
            cursor=reanchor_cursor(contexts, name, state.cursor),
            current=self.kernel.config.current_context,
        )

    def _activate(self, state: SelectionState) -> SelectionState:
        context = state.selected
        if context is None:
            return state
        name = context.name

        try:
            if self.mode == MODE_SWITCH:
                outcome = self.kernel.switch(name, capture_output=True)
                output = format_switch_outcome(context, outcome)
            else:
                result = self.kernel.execute_job(name)
                output = format_job_result(context, result)
        except (NotFoundError, NoRunCommandError) as e:
            output = f"Error: {e}"
        except PersistenceError as e:
            # Show what happened, then let the caller decide; the kernel
            # has already applied the change in memory.
            self.state = self._refresh(
                replace(state, last_output=f"Error: failed to save config: {e}"),
                name,
            )
            raise

        return self._refresh(replace(state, last_output=output), name)
