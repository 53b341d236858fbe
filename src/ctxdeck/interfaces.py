# ctxdeck — Context & Job Deck for the Terminal
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Protocol definitions for dependency injection.

These interfaces enable clean separation between the context store,
config persistence, and command execution.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .executor import RunOutcome  # pragma: no cover
    from .models import Config  # pragma: no cover


class ConfigStore(Protocol):
    """Protocol for durable config storage."""

    def load(self) -> Config:
        """Load the config, or a default one if nothing is stored yet.

        Raises:
            PersistenceError: the stored config cannot be read or parsed
        """
        ...

    def save(self, config: Config) -> None:
        """Persist the full config synchronously.

        Raises:
            PersistenceError: the write failed
        """
        ...


class Executor(Protocol):
    """Protocol for command execution."""

    def run(
        self,
        command: str,
        variables: Mapping[str, str] | None = None,
        capture_output: bool = True,
    ) -> RunOutcome:
        """Expand variables into a shell command, run it, report the outcome."""
        ...
