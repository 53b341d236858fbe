# ctxdeck — Context & Job Deck for the Terminal
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Data model for ctxdeck.

Context and ExecutionResult are immutable values; Config is the one mutable
aggregate and is owned by whoever loaded it (see kernel.Kernel).

Every type round-trips through ``to_dict()`` / ``from_dict()`` using the
on-disk JSON field names (snake_case).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

RUN_ROLE = "run"
ACTIVATE_ROLE = "activate"

# xterm-256 indexes; matches the palette shipped in defaults/system.yaml
DEFAULT_THEME: dict[str, str] = {
    "title": "205",
    "selected": "199",
    "border": "168",
    "output_title": "212",
}


def format_timestamp(ts: datetime) -> str:
    """RFC3339 text for an aware datetime (naive values are taken as local)."""
    if ts.tzinfo is None:
        ts = ts.astimezone()
    return ts.isoformat()


def parse_timestamp(text: str) -> datetime:
    # fromisoformat accepts a trailing 'Z' and >6 fractional digits on 3.11+
    ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _str_map(raw: Any) -> dict[str, str]:
    if not isinstance(raw, dict):
        return {}
    return {str(k): str(v) for k, v in raw.items()}


@dataclass(frozen=True)
class ExecutionResult:
    timestamp: datetime
    success: bool
    exit_code: int
    output: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": format_timestamp(self.timestamp),
            "success": self.success,
            "exit_code": self.exit_code,
            "output": self.output,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutionResult:
        return cls(
            timestamp=parse_timestamp(str(data["timestamp"])),
            success=bool(data.get("success", False)),
            exit_code=int(data.get("exit_code", 0)),
            output=str(data.get("output") or ""),
        )

    @property
    def status_label(self) -> str:
        return "SUCCESS" if self.success else "FAILED"


@dataclass(frozen=True)
class Context:
    """A named bundle of command templates and substitution variables.

    ``name`` is the identity. Two snapshots of the same context compare by
    value, so code that needs "the same context" must compare names.
    """

    name: str
    label: str
    description: str = ""
    commands: Mapping[str, str] = field(default_factory=dict, hash=False)
    variables: Mapping[str, str] = field(default_factory=dict, hash=False)
    last_result: ExecutionResult | None = None

    def __post_init__(self) -> None:
        # Read-only copies, so a snapshot never shares state with its source
        object.__setattr__(self, "commands", MappingProxyType(dict(self.commands)))
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    @property
    def run_command(self) -> str | None:
        return self.commands.get(RUN_ROLE)

    @property
    def activation_command(self) -> str | None:
        """Command run on switch: 'activate' if defined, else 'run'."""
        cmd = self.commands.get(ACTIVATE_ROLE)
        if cmd is None:
            cmd = self.commands.get(RUN_ROLE)
        return cmd

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "label": self.label,
            "description": self.description,
            "commands": dict(self.commands),
            "variables": dict(self.variables),
        }
        if self.last_result is not None:
            data["last_result"] = self.last_result.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], name: str | None = None) -> Context:
        raw_result = data.get("last_result")
        key = str(data.get("name") or name or "")
        return cls(
            name=key,
            label=str(data.get("label", key) or ""),
            description=str(data.get("description") or ""),
            commands=_str_map(data.get("commands")),
            variables=_str_map(data.get("variables")),
            last_result=(
                ExecutionResult.from_dict(raw_result)
                if isinstance(raw_result, dict) else None
            ),
        )


@dataclass
class Theme:
    title: str = DEFAULT_THEME["title"]
    selected: str = DEFAULT_THEME["selected"]
    border: str = DEFAULT_THEME["border"]
    output_title: str = DEFAULT_THEME["output_title"]

    def to_dict(self) -> dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(
        cls, data: Any, defaults: dict[str, str] | None = None
    ) -> Theme:
        """Build a theme, filling empty or missing slots from ``defaults``."""
        palette = dict(DEFAULT_THEME)
        if defaults:
            palette.update({k: str(v) for k, v in defaults.items() if v})
        raw = data if isinstance(data, dict) else {}
        values = {}
        for f in fields(cls):
            val = raw.get(f.name)
            values[f.name] = str(val) if val else palette[f.name]
        return cls(**values)


@dataclass
class Config:
    """All durable state: contexts, the current-context pointer, the theme."""

    contexts: dict[str, Context] = field(default_factory=dict)
    current_context: str = ""
    theme: Theme = field(default_factory=Theme)

    def to_dict(self) -> dict[str, Any]:
        return {
            "contexts": {
                name: self.contexts[name].to_dict()
                for name in sorted(self.contexts)
            },
            "current_context": self.current_context,
            "theme": self.theme.to_dict(),
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], theme_defaults: dict[str, str] | None = None
    ) -> Config:
        raw_contexts = data.get("contexts") or {}
        contexts: dict[str, Context] = {}
        if isinstance(raw_contexts, dict):
            for key, raw in raw_contexts.items():
                if not isinstance(raw, dict):
                    continue
                ctx = Context.from_dict(raw, name=str(key))
                # The mapping key wins; it is what every lookup uses.
                if ctx.name != key:
                    ctx = replace(ctx, name=str(key))
                contexts[str(key)] = ctx
        return cls(
            contexts=contexts,
            current_context=str(data.get("current_context") or ""),
            theme=Theme.from_dict(data.get("theme"), theme_defaults),
        )
