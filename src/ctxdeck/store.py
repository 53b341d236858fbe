# ctxdeck — Context & Job Deck for the Terminal
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
JSON-file storage implementation for ctxdeck.

Handles loading and saving the whole Config as one JSON document.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from .errors import PersistenceError
from .models import Config, Theme


class JSONConfigStore:
    """JSON file implementation of ConfigStore protocol."""

    def __init__(
        self, path: Path, theme_defaults: dict[str, str] | None = None
    ):
        """Initialize store with config file path.

        Args:
            path: Path to config.json (need not exist yet)
            theme_defaults: palette used for missing/empty theme slots

        Note:
            Store does NOT create the file or its directory on init.
            Both are created on the first save().
        """
        self.path = path
        self.theme_defaults = theme_defaults

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Config:
        """Load config from disk; a missing file yields a default Config."""
        if not self.path.exists():
            return Config(theme=Theme.from_dict({}, self.theme_defaults))

        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(self.path, str(e)) from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise PersistenceError(self.path, f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(self.path, "top-level JSON must be an object")

        try:
            return Config.from_dict(data, theme_defaults=self.theme_defaults)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(self.path, f"malformed config: {e}") from e

    def save(self, config: Config) -> None:
        """Write config atomically (temp file in the same dir + replace).

        A crash mid-write leaves the previous file intact.
        """
        data = json.dumps(config.to_dict(), indent=2, ensure_ascii=False)

        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp",
                dir=str(self.path.parent),
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
                f.write("\n")
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise PersistenceError(self.path, str(e)) from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
