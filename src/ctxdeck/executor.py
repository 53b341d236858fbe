# ctxdeck — Context & Job Deck for the Terminal
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Subprocess-backed executor implementation for ctxdeck.

This module provides:
- expand_variables(): ``${KEY}`` substitution into a command template
- format_report(): the combined Command / Exit Code / STDOUT / STDERR text
- SubprocessExecutor.run(): one shell invocation, either captured
  (output lands in the report) or passthrough (inherits the terminal)

No timeout is enforced and nothing is retried: a captured run returns once
the subprocess terminates, however long that takes.
"""

from __future__ import annotations

import re
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from .errors import LaunchError

SEPARATOR = "━" * 40
NO_OUTPUT = "(no output)"


def expand_variables(command: str, variables: Mapping[str, str]) -> str:
    """Replace every literal ``${KEY}`` in ``command`` with its value.

    All placeholders are substituted in a single pass over the original
    text, so a value that itself contains ``${...}`` is left as is.
    Placeholders with no matching key stay verbatim.
    """
    if not variables or "${" not in command:
        return command

    # Longest first so "${AB}" is never shadowed by "${A}" in the alternation
    keys = sorted(variables, key=lambda k: (-len(k), k))
    pattern = re.compile(
        "|".join(re.escape("${" + k + "}") for k in keys)
    )
    return pattern.sub(lambda m: str(variables[m.group(0)[2:-1]]), command)


def format_report(command: str, exit_code: int, stdout: str, stderr: str) -> str:
    """Build the human-readable report stored on an ExecutionResult."""
    lines = [
        f"Command: {command}\n",
        f"Exit Code: {exit_code}\n",
        SEPARATOR + "\n",
    ]

    if stdout:
        lines.append("STDOUT:\n")
        lines.append(stdout if stdout.endswith("\n") else stdout + "\n")

    if stderr:
        if stdout:
            lines.append("\n")
        lines.append("STDERR:\n")
        lines.append(stderr if stderr.endswith("\n") else stderr + "\n")

    if not stdout and not stderr:
        lines.append(NO_OUTPUT + "\n")

    return "".join(lines)


class OutcomeKind(Enum):
    OK = "ok"
    NON_ZERO_EXIT = "non_zero_exit"
    LAUNCH_ERROR = "launch_error"


@dataclass(frozen=True)
class RunOutcome:
    """Result of one shell invocation.

    ``exit_code`` is 0 when the process never ran; use ``kind`` (or
    ``success``) to tell a launch error from a clean exit.
    """

    command: str
    exit_code: int
    stdout: str
    stderr: str
    report: str
    launch_error: str | None = None

    @property
    def kind(self) -> OutcomeKind:
        if self.launch_error is not None:
            return OutcomeKind.LAUNCH_ERROR
        if self.exit_code != 0:
            return OutcomeKind.NON_ZERO_EXIT
        return OutcomeKind.OK

    @property
    def success(self) -> bool:
        return self.launch_error is None and self.exit_code == 0

    def raise_for_launch(self) -> None:
        """Escalate a launch error for callers that treat it as fatal."""
        if self.launch_error is not None:
            raise LaunchError(self.command, self.launch_error)


class SubprocessExecutor:
    """Subprocess implementation of Executor protocol."""

    def __init__(self, shell: str = "/bin/sh", cwd: str | None = None):
        """Initialize executor with configuration.

        Args:
            shell: POSIX shell binary, invoked as ``<shell> -c <command>``
            cwd: working directory for commands (default: current directory)
        """
        self.shell = shell
        self.cwd = cwd

    def run(
        self,
        command: str,
        variables: Mapping[str, str] | None = None,
        capture_output: bool = True,
    ) -> RunOutcome:
        """Expand ``variables`` into ``command`` and run it through the shell.

        Args:
            command: command template
            variables: substitution values for ``${KEY}`` placeholders
            capture_output: capture stdout/stderr into the outcome; when
                False the child inherits this process's standard streams

        Returns:
            RunOutcome
        """
        expanded = expand_variables(command, variables or {})
        argv = [self.shell, "-c", expanded]

        if capture_output:
            pipe = subprocess.PIPE
        else:
            pipe = None  # inherit from parent

        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL if capture_output else None,
                stdout=pipe,
                stderr=pipe,
                text=True,
                errors="replace",
                cwd=self.cwd,
            )
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            stderr = f"Error executing command: {e}"
            return RunOutcome(
                command=expanded,
                exit_code=0,
                stdout="",
                stderr=stderr,
                report=format_report(expanded, 0, "", stderr),
                launch_error=str(e),
            )

        stdout, stderr = proc.communicate()
        exit_code = proc.returncode if proc.returncode is not None else 0

        stdout = stdout or ""
        stderr = stderr or ""
        return RunOutcome(
            command=expanded,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            report=format_report(expanded, exit_code, stdout, stderr),
        )
