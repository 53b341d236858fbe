# ctxdeck — Context & Job Deck for the Terminal
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
ctxdeck CLI entry point.

Design:
- CLI owns process startup: config is loaded once here and injected.
- Kernel is the context store (config + store + executor injected).
- Each command is a thin function over the kernel; the TUI is one of them.
"""

from __future__ import annotations

import argparse
import sys

from . import config
from .errors import CtxDeckError
from .executor import OutcomeKind, SubprocessExecutor
from .init import init_config
from .kernel import Kernel, write_crash_log
from .layout import MODE_RUN, MODE_SWITCH, LayoutSettings
from .models import Context
from .selection import SelectionModel
from .store import JSONConfigStore
from .utils import format_table, parse_assignments

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

USAGE = """Usage: ctxdeck <command> [arguments]

Commands:
  init                    Initialize configuration with example contexts
  list, ls                List all contexts
  current                 Show current context
  switch, sw, exec <name> Switch to context (runs its activation command)
  run <name>              Execute job and record the result
  add --name N --label L  Add context [--description D] [--run CMD]
                          [--activate CMD] [--var KEY=VALUE ...]
  remove, rm <name>       Remove context
  tui [--switch]          Start TUI mode (space runs jobs, or switches
                          context with --switch)
  help                    Show this help

Examples:
  ctxdeck init
  ctxdeck list
  ctxdeck run monitoring
  ctxdeck tui
"""


def _err(text: str) -> None:
    print(text, file=sys.stderr)


def build_store(system_cfg: config.YAMLConfig) -> JSONConfigStore:
    path = config.config_path(config.get_config_home())
    return JSONConfigStore(path, theme_defaults=system_cfg.theme)


def build_kernel(system_cfg: config.YAMLConfig) -> Kernel:
    """Explicit wiring: config + store + executor injected into kernel."""
    store = build_store(system_cfg)
    cfg = store.load()
    executor = SubprocessExecutor(
        shell=str(system_cfg.get_path("execution.shell", "/bin/sh"))
    )
    return Kernel(config=cfg, store=store, executor=executor)


# -------------------------------------------------------------------
# Commands
# -------------------------------------------------------------------


def _require_name(args: list[str], cmd: str) -> str | None:
    if not args:
        _err(f"Usage: ctxdeck {cmd} <context-name>")
        return None
    return args[0]


def cmd_list(kernel: Kernel) -> int:
    contexts = kernel.list_contexts()
    if not contexts:
        print("No contexts configured")
        return 0

    current = kernel.get_current()
    rows = []
    for ctx in contexts:
        marker = "*" if current is not None and current.name == ctx.name else " "
        last_run = "Never"
        if ctx.last_result is not None:
            last_run = "✓ Success" if ctx.last_result.success else "✗ Failed"
        rows.append([marker + ctx.name, ctx.label, last_run, ctx.description])

    print(
        format_table(
            ["NAME", "LABEL", "LAST RUN", "DESCRIPTION"], rows, underline=True
        )
    )
    return 0


def cmd_current(kernel: Kernel) -> int:
    current = kernel.get_current()
    if current is None:
        print("No context is currently active")
        return 0

    print(f"Current context: {current.name}")
    print(f"Label: {current.label}")
    if current.description:
        print(f"Description: {current.description}")

    result = current.last_result
    if result is None:
        print("Status: Never executed")
    else:
        print(f"Last execution: {result.timestamp.strftime(TIME_FORMAT)}")
        mark = "✓" if result.success else "✗"
        status = "Success" if result.success else "Failed"
        print(f"Status: {mark} {status} (Exit Code: {result.exit_code})")
    return 0


def cmd_switch(kernel: Kernel, name: str) -> int:
    outcome = kernel.switch(name)
    if outcome is not None:
        if outcome.kind is OutcomeKind.LAUNCH_ERROR:
            _err(f"Warning: activation command could not start: {outcome.launch_error}")
        elif outcome.kind is OutcomeKind.NON_ZERO_EXIT:
            _err(f"Warning: activation command exited with code {outcome.exit_code}")
    print(f"Switched to context: {name}")
    return 0


def cmd_run(kernel: Kernel, name: str) -> int:
    context = kernel.get(name)
    print(f"Executing job: {context.label}")
    result = kernel.execute_job(name)

    print("\nJob execution completed:")
    print(f"Exit Code: {result.exit_code}")
    print("Status: ✓ Success" if result.success else "Status: ✗ Failed")
    print(f"\nOutput:\n{result.output}")
    return 0 if result.success else 1


def cmd_add(kernel: Kernel, args: list[str]) -> int:
    parser = argparse.ArgumentParser(prog="ctxdeck add")
    parser.add_argument("--name", "-name", required=True, help="Context name")
    parser.add_argument("--label", "-label", required=True, help="Context label")
    parser.add_argument("--description", "-description", default="")
    parser.add_argument("--run", dest="run_cmd", default=None,
                        help="Command run by 'ctxdeck run'")
    parser.add_argument("--activate", dest="activate_cmd", default=None,
                        help="Command run on switch (defaults to --run)")
    parser.add_argument("--var", action="append", default=[],
                        metavar="KEY=VALUE", help="Substitution variable")
    ns = parser.parse_args(args)

    if not ns.name.strip() or not ns.label.strip():
        _err("Error: name and label must not be empty")
        return 1

    try:
        variables = parse_assignments(ns.var)
    except ValueError as e:
        _err(f"Error: {e}")
        return 1

    commands = {}
    if ns.run_cmd is not None:
        commands["run"] = ns.run_cmd
    if ns.activate_cmd is not None:
        commands["activate"] = ns.activate_cmd

    kernel.add(
        Context(
            name=ns.name.strip(),
            label=ns.label,
            description=ns.description,
            commands=commands,
            variables=variables,
        )
    )
    print(f"Added context: {ns.name.strip()}")
    return 0


def cmd_remove(kernel: Kernel, name: str) -> int:
    kernel.remove(name)
    print(f"Removed context: {name}")
    return 0


def cmd_tui(
    kernel: Kernel, system_cfg: config.YAMLConfig, args: list[str]
) -> int:
    from .ui import DeckUI

    mode = MODE_SWITCH if "--switch" in args else MODE_RUN
    settings = LayoutSettings.from_config(system_cfg, mode)
    ready = system_cfg.get_path(f"ui.{mode}.ready", "Ready to execute commands...")
    model = SelectionModel(kernel, mode=mode, ready_text=str(ready))
    DeckUI(model, settings=settings).run()
    return 0


# -------------------------------------------------------------------
# Dispatch
# -------------------------------------------------------------------


def dispatch(argv: list[str], system_cfg: config.YAMLConfig) -> int:
    cmd, args = argv[0], argv[1:]

    if cmd in ("help", "-h", "--help"):
        print(USAGE, end="")
        return 0

    if cmd == "init":
        # Declining the overwrite prompt is not an error.
        init_config(build_store(system_cfg), theme_defaults=system_cfg.theme)
        return 0

    kernel = build_kernel(system_cfg)

    if cmd in ("list", "ls"):
        return cmd_list(kernel)
    if cmd == "current":
        return cmd_current(kernel)
    if cmd in ("switch", "sw", "exec", "execute"):
        name = _require_name(args, "switch")
        return 1 if name is None else cmd_switch(kernel, name)
    if cmd == "run":
        name = _require_name(args, "run")
        return 1 if name is None else cmd_run(kernel, name)
    if cmd == "add":
        return cmd_add(kernel, args)
    if cmd in ("remove", "rm"):
        name = _require_name(args, "remove")
        return 1 if name is None else cmd_remove(kernel, name)
    if cmd == "tui":
        return cmd_tui(kernel, system_cfg, args)

    _err(f"Unknown command: {cmd}")
    _err(USAGE)
    return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point for ctxdeck CLI."""
    if argv is None:
        argv = sys.argv[1:]

    if not argv:
        print(USAGE, end="")
        return 0

    system_cfg = config.load_system_config()

    try:
        return dispatch(argv, system_cfg)
    except CtxDeckError as e:
        _err(f"Error: {e}")
        return 1
    except (KeyboardInterrupt, EOFError):
        _err("\nInterrupted")
        return 130
    except Exception as e:
        # Unhandled exception - write crash log
        write_crash_log(
            e,
            command=" ".join(argv),
            config_file=config.config_path(config.get_config_home()),
        )
        _err(f"[ERROR] Unhandled exception: {type(e).__name__}: {e}")
        return 1
