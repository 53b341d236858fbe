# ctxdeck — Context & Job Deck for the Terminal
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Filesystem discovery and packaged defaults for ctxdeck.

Handles:
- Config home resolution (CTXDECK_HOME, ~/.config/ctxdeck)
- Config file / log directory path helpers
- Packaged YAML defaults loading (ctxdeck.defaults/*.yaml)
"""

from __future__ import annotations

import os
from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "config.json"
DEFAULTS_PACKAGE = "ctxdeck.defaults"


# -----------------------
# System settings wrapper
# -----------------------


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


class YAMLConfig:
    """Read-only view over the mapping loaded from system.yaml."""

    def __init__(self, data: dict[str, Any]):
        self._data = data

    @property
    def theme(self) -> dict[str, str]:
        """Theme slots as strings (YAML may load bare color indexes as ints)."""
        return {
            str(slot): str(color)
            for slot, color in _section(self._data, "theme").items()
            if color is not None
        }

    def get_path(self, path: str, default: Any = None) -> Any:
        """
        Look up a dotted key, e.g. get_path("ui.layout.min_top_height", 8).
        Any missing or non-mapping step yields ``default``.
        """
        if not path:
            return default

        node: Any = self._data
        for key in path.split("."):
            try:
                node = node[key]
            except (KeyError, TypeError, IndexError):
                return default
        return node


# -----------------------
# Config home + paths
# -----------------------


def get_config_home() -> Path:
    """Get the config directory for ctxdeck.

    Resolution order:
    1. CTXDECK_HOME environment variable (if set)
    2. ~/.config/ctxdeck (default)

    The directory is not created here; it is created on first save.
    """
    ctxdeck_home = os.getenv("CTXDECK_HOME")
    if ctxdeck_home:
        return Path(ctxdeck_home)
    return Path.home() / ".config" / "ctxdeck"


def config_path(config_home: Path) -> Path:
    """<config_home>/config.json"""
    return config_home / CONFIG_FILENAME


def logs_dir(config_home: Path) -> Path:
    """<config_home>/logs"""
    return config_home / "logs"


# -----------------------
# Packaged defaults
# -----------------------


def load_defaults_yaml(filename: str) -> dict[str, Any]:
    """Parse one YAML file shipped in the ctxdeck.defaults package."""
    resource = importlib_resources.files(DEFAULTS_PACKAGE).joinpath(filename)
    if not resource.is_file():
        raise FileNotFoundError(
            f"{filename} is not among the packaged defaults ({DEFAULTS_PACKAGE})"
        )

    data = yaml.safe_load(resource.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{filename}: top level must be a mapping")
    return data


def load_system_config() -> YAMLConfig:
    return YAMLConfig(load_defaults_yaml("system.yaml"))


def load_example_contexts() -> list[dict[str, Any]]:
    """Example context definitions written by ``ctxdeck init``."""
    data = load_defaults_yaml("examples.yaml")
    contexts = data.get("contexts", [])
    if not isinstance(contexts, list):
        raise ValueError("examples.yaml: 'contexts' must be a list.")
    return [c for c in contexts if isinstance(c, dict) and c.get("name")]
