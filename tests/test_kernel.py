# tests/test_kernel.py
"""
Kernel tests with dependency injection.
Kernel owns the Config and delegates disk and subprocess work to the
injected ConfigStore and Executor.
"""
from __future__ import annotations

from pathlib import Path

import pytest

import ctxdeck.kernel as kernel_mod
from ctxdeck.errors import NoRunCommandError, NotFoundError, PersistenceError
from ctxdeck.executor import RunOutcome, format_report
from ctxdeck.kernel import Kernel, write_crash_log
from ctxdeck.models import Config, Context

# ----------------------------------------------------------------
# Boundary tests (hard gates)
# ----------------------------------------------------------------


def test_kernel_module_does_not_touch_files_or_subprocesses() -> None:
    """
    HARD BOUNDARY:
    - Kernel must not read or write the config file itself.
    - Kernel must not spawn processes itself.
    """
    text = Path(kernel_mod.__file__).read_text(encoding="utf-8")

    forbidden_substrings = [
        "import json",
        "import subprocess",
        "from .store import",
        "Popen(",
        "read_text(",
    ]

    hits = [s for s in forbidden_substrings if s in text]
    assert not hits, f"Kernel must delegate I/O. Found: {hits}"


# ----------------------------------------------------------------
# Mock dependencies
# ----------------------------------------------------------------


class FakeStore:
    """Mock ConfigStore recording every save."""

    def __init__(self, fail: bool = False):
        self.saved: list[dict] = []
        self.fail = fail

    def load(self) -> Config:
        return Config()

    def save(self, config: Config) -> None:
        if self.fail:
            raise PersistenceError("/fake/config.json", "read-only file system")
        self.saved.append(config.to_dict())


class FakeExecutor:
    """Mock Executor returning a canned exit code."""

    def __init__(self, exit_code: int = 0, stdout: str = "ok\n"):
        self.exit_code = exit_code
        self.stdout = stdout
        self.calls: list[tuple[str, dict, bool]] = []

    def run(self, command, variables=None, capture_output=True) -> RunOutcome:
        self.calls.append((command, dict(variables or {}), capture_output))
        return RunOutcome(
            command=command,
            exit_code=self.exit_code,
            stdout=self.stdout,
            stderr="",
            report=format_report(command, self.exit_code, self.stdout, ""),
        )


def _config() -> Config:
    return Config(
        contexts={
            "vpn": Context(
                name="vpn",
                label="VPN",
                commands={"run": "ping ${HOST}", "activate": "vpn up"},
                variables={"HOST": "10.0.0.1"},
            ),
            "docker": Context(
                name="docker", label="Docker", commands={"run": "docker ps"}
            ),
            "notes": Context(name="notes", label="Notes"),
        }
    )


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def kernel(store: FakeStore, executor: FakeExecutor) -> Kernel:
    return Kernel(config=_config(), store=store, executor=executor)


# ----------------------------------------------------------------
# Queries
# ----------------------------------------------------------------


def test_list_contexts_sorted_by_name(kernel: Kernel) -> None:
    names = [c.name for c in kernel.list_contexts()]
    assert names == ["docker", "notes", "vpn"]
    assert [c.name for c in kernel.list_contexts()] == names


def test_get_unknown_raises_not_found(kernel: Kernel) -> None:
    with pytest.raises(NotFoundError, match="context 'nope' not found"):
        kernel.get("nope")


def test_get_current_none_when_unset(kernel: Kernel) -> None:
    assert kernel.get_current() is None


def test_get_current_none_when_dangling(kernel: Kernel) -> None:
    kernel.config.current_context = "deleted-elsewhere"
    assert kernel.get_current() is None


# ----------------------------------------------------------------
# Switch
# ----------------------------------------------------------------


def test_switch_runs_activate_command_with_variables(
    kernel: Kernel, store: FakeStore, executor: FakeExecutor
) -> None:
    outcome = kernel.switch("vpn")

    assert executor.calls == [("vpn up", {"HOST": "10.0.0.1"}, False)]
    assert outcome is not None and outcome.success
    assert kernel.get_current().name == "vpn"
    assert store.saved[-1]["current_context"] == "vpn"


def test_switch_falls_back_to_run_command(kernel: Kernel, executor: FakeExecutor) -> None:
    kernel.switch("docker", capture_output=True)

    assert executor.calls == [("docker ps", {}, True)]


def test_switch_without_command_returns_none(
    kernel: Kernel, store: FakeStore, executor: FakeExecutor
) -> None:
    assert kernel.switch("notes") is None
    assert executor.calls == []
    assert kernel.config.current_context == "notes"
    assert len(store.saved) == 1


def test_switch_commits_even_when_activation_fails(store: FakeStore) -> None:
    kernel = Kernel(config=_config(), store=store, executor=FakeExecutor(exit_code=1))

    outcome = kernel.switch("vpn")

    assert outcome is not None and not outcome.success
    assert kernel.config.current_context == "vpn"
    assert store.saved[-1]["current_context"] == "vpn"


def test_switch_unknown_changes_nothing(
    kernel: Kernel, store: FakeStore, executor: FakeExecutor
) -> None:
    kernel.config.current_context = "docker"

    with pytest.raises(NotFoundError):
        kernel.switch("nope")

    assert kernel.config.current_context == "docker"
    assert executor.calls == []
    assert store.saved == []


# ----------------------------------------------------------------
# Job execution
# ----------------------------------------------------------------


def test_execute_job_records_result(kernel: Kernel, store: FakeStore, executor: FakeExecutor) -> None:
    result = kernel.execute_job("vpn")

    assert executor.calls == [("ping ${HOST}", {"HOST": "10.0.0.1"}, True)]
    assert result.success
    assert result.exit_code == 0
    assert result.timestamp.tzinfo is not None
    assert "STDOUT:\nok\n" in result.output
    assert kernel.get("vpn").last_result == result
    assert store.saved[-1]["contexts"]["vpn"]["last_result"]["exit_code"] == 0


def test_execute_job_records_failure(store: FakeStore) -> None:
    kernel = Kernel(config=_config(), store=store, executor=FakeExecutor(exit_code=2))

    result = kernel.execute_job("docker")

    assert not result.success
    assert result.exit_code == 2
    assert kernel.get("docker").last_result.success is False


def test_execute_job_does_not_change_current(kernel: Kernel) -> None:
    kernel.config.current_context = "vpn"
    kernel.execute_job("docker")
    assert kernel.config.current_context == "vpn"


def test_execute_job_result_visible_via_get_current(kernel: Kernel) -> None:
    kernel.switch("vpn")
    result = kernel.execute_job("vpn")
    assert kernel.get_current().last_result == result


def test_execute_job_without_run_command(
    kernel: Kernel, store: FakeStore, executor: FakeExecutor
) -> None:
    with pytest.raises(NoRunCommandError):
        kernel.execute_job("notes")

    assert kernel.get("notes").last_result is None
    assert executor.calls == []
    assert store.saved == []


def test_execute_job_unknown(kernel: Kernel) -> None:
    with pytest.raises(NotFoundError):
        kernel.execute_job("nope")


# ----------------------------------------------------------------
# Add / remove
# ----------------------------------------------------------------


def test_add_inserts_and_persists(kernel: Kernel, store: FakeStore) -> None:
    kernel.add(Context(name="aws", label="AWS", commands={"run": "aws sts get-caller-identity"}))

    assert [c.name for c in kernel.list_contexts()][0] == "aws"
    assert "aws" in store.saved[-1]["contexts"]


def test_add_overwrites_existing(kernel: Kernel) -> None:
    kernel.add(Context(name="vpn", label="Corporate VPN"))
    assert kernel.get("vpn").label == "Corporate VPN"
    assert len(kernel.list_contexts()) == 3


def test_remove_current_clears_pointer(kernel: Kernel, store: FakeStore) -> None:
    kernel.switch("notes")

    kernel.remove("notes")

    assert kernel.config.current_context == ""
    assert kernel.get_current() is None
    assert "notes" not in store.saved[-1]["contexts"]


def test_remove_other_keeps_current(kernel: Kernel) -> None:
    kernel.switch("notes")
    kernel.remove("docker")
    assert kernel.config.current_context == "notes"


def test_remove_unknown(kernel: Kernel, store: FakeStore) -> None:
    with pytest.raises(NotFoundError):
        kernel.remove("nope")
    assert store.saved == []


# ----------------------------------------------------------------
# Persistence failures
# ----------------------------------------------------------------


def test_persistence_error_propagates_and_keeps_memory_state() -> None:
    kernel = Kernel(config=_config(), store=FakeStore(fail=True), executor=FakeExecutor())

    with pytest.raises(PersistenceError):
        kernel.switch("vpn")
    assert kernel.config.current_context == "vpn"

    with pytest.raises(PersistenceError):
        kernel.execute_job("docker")
    assert kernel.get("docker").last_result is not None


# ----------------------------------------------------------------
# Crash log
# ----------------------------------------------------------------


def test_write_crash_log_appends_under_config_home(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("CTXDECK_HOME", str(tmp_path))

    try:
        raise RuntimeError("boom")
    except RuntimeError as e:
        write_crash_log(e, command="run vpn", context_name="vpn")
        write_crash_log(e)

    text = (tmp_path / "logs" / "crash.log").read_text(encoding="utf-8")
    assert text.count("error=RuntimeError: boom") == 2
    assert "command=run vpn" in text
    assert "context=vpn" in text
    assert "Traceback" in text
