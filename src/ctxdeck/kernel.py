# ctxdeck — Context & Job Deck for the Terminal
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
ctxdeck kernel.

The context store:
- name-sorted listing + current-context lookup
- switch (activation command, passthrough) and job execution (captured)
- add / remove

Important boundary:
- Kernel does not read or write files.
- Kernel consumes the injected Config, ConfigStore and Executor, and calls
  ConfigStore.save() after every mutation, before returning.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path

from . import config as cfg_module
from .errors import NoRunCommandError, NotFoundError
from .executor import RunOutcome
from .interfaces import ConfigStore, Executor
from .models import Config, Context, ExecutionResult


def write_crash_log(
    error: BaseException,
    command: str = "",
    context_name: str = "",
    config_file: Path | None = None,
) -> None:
    """Append one entry for ``error`` to <config_home>/logs/crash.log.

    The logs directory is created on the first entry. Failing to write the
    log is ignored; the caller is already reporting an error.
    """
    fields = {
        "command": command,
        "context": context_name,
        "config": str(config_file) if config_file else "",
    }
    entry = [datetime.now().astimezone().isoformat(timespec="seconds")]
    entry += [f"{key}={value}" for key, value in fields.items() if value]
    entry.append(f"error={type(error).__name__}: {error}")
    entry.append("traceback:")
    entry.append(
        "".join(traceback.format_exception(type(error), error, error.__traceback__))
    )
    entry.append("----")

    log_dir = cfg_module.logs_dir(cfg_module.get_config_home())
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        with (log_dir / "crash.log").open("a", encoding="utf-8") as f:
            f.write("\n".join(entry) + "\n")
    except OSError:
        pass


@dataclass
class Kernel:
    """Context store: owns the Config for the life of the process."""

    config: Config
    store: ConfigStore
    executor: Executor

    # -----------------------
    # Queries
    # -----------------------

    def list_contexts(self) -> list[Context]:
        """All contexts, sorted by name."""
        return [self.config.contexts[n] for n in sorted(self.config.contexts)]

    def get(self, name: str) -> Context:
        try:
            return self.config.contexts[name]
        except KeyError:
            raise NotFoundError(name) from None

    def get_current(self) -> Context | None:
        """The current context, or None if unset or no longer defined."""
        name = self.config.current_context
        if not name:
            return None
        return self.config.contexts.get(name)

    # -----------------------
    # Mutations (each persists before returning)
    # -----------------------

    def switch(
        self, name: str, capture_output: bool = False
    ) -> RunOutcome | None:
        """Make ``name`` the current context.

        Runs the activation command first, if the context has one. The
        switch is committed whatever the command's exit code; the outcome
        is returned so the caller can report a failed activation.

        Raises:
            NotFoundError: unknown name (nothing is run or changed)
            PersistenceError: save failed (in-memory switch is kept)
        """
        context = self.get(name)

        outcome = None
        cmd = context.activation_command
        if cmd is not None:
            outcome = self.executor.run(
                cmd, context.variables, capture_output=capture_output
            )

        self.config.current_context = name
        self.store.save(self.config)
        return outcome

    def execute_job(self, name: str) -> ExecutionResult:
        """Run the context's 'run' command and record the result on it.

        Failures of the command itself are recorded, not raised.

        Raises:
            NotFoundError: unknown name
            NoRunCommandError: context has no 'run' command
            PersistenceError: save failed (in-memory result is kept)
        """
        context = self.get(name)
        cmd = context.run_command
        if cmd is None:
            raise NoRunCommandError(name)

        outcome = self.executor.run(cmd, context.variables, capture_output=True)
        result = ExecutionResult(
            timestamp=datetime.now().astimezone(),
            success=outcome.success,
            exit_code=outcome.exit_code,
            output=outcome.report,
        )

        self.config.contexts[name] = replace(context, last_result=result)
        self.store.save(self.config)
        return result

    def add(self, context: Context) -> None:
        """Insert or overwrite a context by name."""
        self.config.contexts[context.name] = context
        self.store.save(self.config)

    def remove(self, name: str) -> None:
        """Delete a context, clearing the current pointer if it was current."""
        if name not in self.config.contexts:
            raise NotFoundError(name)

        del self.config.contexts[name]
        if self.config.current_context == name:
            self.config.current_context = ""

        self.store.save(self.config)
