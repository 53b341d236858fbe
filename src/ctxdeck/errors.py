# ctxdeck — Context & Job Deck for the Terminal
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Error taxonomy for ctxdeck.

Lookup errors (NotFoundError, NoRunCommandError) abort an operation before
any state is touched. Execution failures are recorded on the outcome, not
raised. PersistenceError is the one callers must not swallow.
"""

from __future__ import annotations


class CtxDeckError(Exception):
    """Base class for all ctxdeck errors."""


class NotFoundError(CtxDeckError):
    """Unknown context name."""

    def __init__(self, name: str):
        super().__init__(f"context '{name}' not found")
        self.name = name


class NoRunCommandError(CtxDeckError):
    """Context has no 'run' command."""

    def __init__(self, name: str):
        super().__init__(f"context '{name}' has no run command")
        self.name = name


class LaunchError(CtxDeckError):
    """Subprocess could not be started (shell missing, exec failure)."""

    def __init__(self, command: str, reason: str):
        super().__init__(f"failed to start '{command}': {reason}")
        self.command = command
        self.reason = reason


class PersistenceError(CtxDeckError):
    """Durable read or write of the config file failed."""

    def __init__(self, path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
