# tests/test_cli.py
from __future__ import annotations

import json
from pathlib import Path

import pytest

import ctxdeck.cli as cli
from ctxdeck.store import JSONConfigStore


@pytest.fixture
def ctx_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "ctxdeck"
    monkeypatch.setenv("CTXDECK_HOME", str(home))
    return home


def _config_file(home: Path) -> Path:
    return home / "config.json"


def _read(home: Path) -> dict:
    return json.loads(_config_file(home).read_text(encoding="utf-8"))


def _seed(home: Path, contexts: dict, current: str = "") -> None:
    home.mkdir(parents=True, exist_ok=True)
    _config_file(home).write_text(
        json.dumps({"contexts": contexts, "current_context": current}),
        encoding="utf-8",
    )


def _ctx(name: str, run: str | None = None, **extra) -> dict:
    data = {"name": name, "label": name.title(), "commands": {}, "variables": {}}
    if run is not None:
        data["commands"]["run"] = run
    data.update(extra)
    return data


# -------------------------------------------------------------------
# Usage / dispatch
# -------------------------------------------------------------------


def test_no_args_prints_usage(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([]) == 0
    assert "Usage: ctxdeck" in capsys.readouterr().out


def test_help_does_not_touch_config(ctx_home: Path, capsys) -> None:
    assert cli.main(["help"]) == 0
    assert "Commands:" in capsys.readouterr().out
    assert not ctx_home.exists()


def test_unknown_command_returns_1(ctx_home: Path, capsys) -> None:
    assert cli.main(["frobnicate"]) == 1
    assert "Unknown command: frobnicate" in capsys.readouterr().err


def test_missing_name_argument_returns_1(ctx_home: Path, capsys) -> None:
    assert cli.main(["run"]) == 1
    assert "Usage: ctxdeck run <context-name>" in capsys.readouterr().err


# -------------------------------------------------------------------
# init
# -------------------------------------------------------------------


def test_init_creates_example_config(ctx_home: Path, capsys) -> None:
    assert cli.main(["init"]) == 0

    data = _read(ctx_home)
    assert "monitoring" in data["contexts"]
    assert "Configuration initialized at" in capsys.readouterr().out


def test_init_declined_exits_zero(ctx_home: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    _seed(ctx_home, {"mine": _ctx("mine")})
    monkeypatch.setattr("builtins.input", lambda prompt="": "n")

    assert cli.main(["init"]) == 0

    assert list(_read(ctx_home)["contexts"]) == ["mine"]
    assert "Initialization cancelled." in capsys.readouterr().out


# -------------------------------------------------------------------
# list / current
# -------------------------------------------------------------------


def test_list_empty(ctx_home: Path, capsys) -> None:
    assert cli.main(["list"]) == 0
    assert "No contexts configured" in capsys.readouterr().out


def test_list_sorted_with_current_marker(ctx_home: Path, capsys) -> None:
    _seed(ctx_home, {"zeta": _ctx("zeta"), "alpha": _ctx("alpha", description="first")}, current="zeta")

    assert cli.main(["ls"]) == 0

    lines = capsys.readouterr().out.strip().split("\n")
    assert lines[0].split() == ["NAME", "LABEL", "LAST", "RUN", "DESCRIPTION"]
    assert lines[2].startswith(" alpha")
    assert lines[2].endswith("first")
    assert lines[3].startswith("*zeta")
    assert "Never" in lines[3]


def test_current_when_unset(ctx_home: Path, capsys) -> None:
    assert cli.main(["current"]) == 0
    assert "No context is currently active" in capsys.readouterr().out


# -------------------------------------------------------------------
# switch / run
# -------------------------------------------------------------------


def test_switch_persists_current(ctx_home: Path, capsys) -> None:
    _seed(ctx_home, {"dev": _ctx("dev", run="true")})

    assert cli.main(["switch", "dev"]) == 0

    assert _read(ctx_home)["current_context"] == "dev"
    assert "Switched to context: dev" in capsys.readouterr().out


def test_switch_warns_on_failed_activation(ctx_home: Path, capsys) -> None:
    _seed(ctx_home, {"dev": _ctx("dev", run="exit 4")})

    assert cli.main(["sw", "dev"]) == 0

    captured = capsys.readouterr()
    assert "exited with code 4" in captured.err
    assert _read(ctx_home)["current_context"] == "dev"


def test_switch_unknown_returns_1(ctx_home: Path, capsys) -> None:
    _seed(ctx_home, {"dev": _ctx("dev")})

    assert cli.main(["switch", "nope"]) == 1

    assert "Error: context 'nope' not found" in capsys.readouterr().err
    assert _read(ctx_home)["current_context"] == ""


def test_run_records_result(ctx_home: Path, capsys) -> None:
    _seed(ctx_home, {"greet": _ctx("greet", run="echo hello ${WHO}", variables={"WHO": "deck"})})

    assert cli.main(["run", "greet"]) == 0

    out = capsys.readouterr().out
    assert "Executing job: Greet" in out
    assert "Status: ✓ Success" in out
    assert "hello deck" in out

    result = _read(ctx_home)["contexts"]["greet"]["last_result"]
    assert result["success"] is True
    assert result["exit_code"] == 0
    assert "Command: echo hello deck" in result["output"]


def test_run_failure_returns_1(ctx_home: Path, capsys) -> None:
    _seed(ctx_home, {"bad": _ctx("bad", run="exit 5")})

    assert cli.main(["run", "bad"]) == 1

    assert "Exit Code: 5" in capsys.readouterr().out
    assert _read(ctx_home)["contexts"]["bad"]["last_result"]["success"] is False


def test_run_without_command_returns_1(ctx_home: Path, capsys) -> None:
    _seed(ctx_home, {"empty": _ctx("empty")})

    assert cli.main(["run", "empty"]) == 1

    assert "has no run command" in capsys.readouterr().err
    assert "last_result" not in _read(ctx_home)["contexts"]["empty"]


def test_current_after_run_shows_status(ctx_home: Path, capsys) -> None:
    _seed(ctx_home, {"dev": _ctx("dev", run="true")}, current="dev")
    cli.main(["run", "dev"])
    capsys.readouterr()

    assert cli.main(["current"]) == 0

    out = capsys.readouterr().out
    assert "Current context: dev" in out
    assert "Status: ✓ Success (Exit Code: 0)" in out


# -------------------------------------------------------------------
# add / remove
# -------------------------------------------------------------------


def test_add_then_remove(ctx_home: Path, capsys) -> None:
    rc = cli.main([
        "add", "--name", "k8s", "--label", "Kubernetes",
        "--run", "kubectl get pods -n ${NS}", "--var", "NS=default",
    ])
    assert rc == 0
    ctx = _read(ctx_home)["contexts"]["k8s"]
    assert ctx["commands"] == {"run": "kubectl get pods -n ${NS}"}
    assert ctx["variables"] == {"NS": "default"}

    assert cli.main(["rm", "k8s"]) == 0
    assert _read(ctx_home)["contexts"] == {}
    assert "Removed context: k8s" in capsys.readouterr().out


def test_add_rejects_bad_variable(ctx_home: Path, capsys) -> None:
    assert cli.main(["add", "--name", "x", "--label", "X", "--var", "oops"]) == 1
    assert "expected KEY=VALUE" in capsys.readouterr().err
    assert not _config_file(ctx_home).exists()


def test_remove_current_clears_it(ctx_home: Path) -> None:
    _seed(ctx_home, {"dev": _ctx("dev")}, current="dev")

    assert cli.main(["remove", "dev"]) == 0

    assert _read(ctx_home)["current_context"] == ""


# -------------------------------------------------------------------
# Failure handling
# -------------------------------------------------------------------


def test_corrupt_config_reports_error(ctx_home: Path, capsys) -> None:
    ctx_home.mkdir(parents=True)
    _config_file(ctx_home).write_text("not json", encoding="utf-8")

    assert cli.main(["list"]) == 1

    assert "invalid JSON" in capsys.readouterr().err


def test_unhandled_exception_writes_crash_log(
    ctx_home: Path, monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    def boom(self):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(JSONConfigStore, "load", boom)

    assert cli.main(["list"]) == 1

    assert "[ERROR] Unhandled exception: RuntimeError: kaboom" in capsys.readouterr().err
    log = (ctx_home / "logs" / "crash.log").read_text(encoding="utf-8")
    assert "command=list" in log
    assert "error=RuntimeError: kaboom" in log
