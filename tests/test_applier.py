from __future__ import annotations

from collections.abc import Sequence

from easytty.core.applier import RuleApplier
from easytty.core.model import CommandOutput, ErrorKind
from easytty.core.system import HostSystem


class FakeSystem(HostSystem):
    def __init__(self, outputs: dict[str, tuple[int, str]], *, privileged: bool = True) -> None:
        self.outputs = outputs
        self.privileged = privileged
        self.calls: list[list[str]] = []

    def is_privileged(self) -> bool:
        return self.privileged

    def run(self, cmd: Sequence[str], *, input_text: str | None = None) -> CommandOutput:
        self.calls.append(list(cmd))
        returncode, output = self.outputs.get(cmd[-1], (0, ""))
        return CommandOutput(command=tuple(cmd), returncode=returncode, output=output)


def test_apply_runs_reload_then_trigger() -> None:
    system = FakeSystem({})
    result = RuleApplier(system).apply()

    assert result.ok
    assert system.calls == [
        ["udevadm", "control", "--reload-rules"],
        ["udevadm", "trigger"],
    ]


def test_unprivileged_commands_use_sudo() -> None:
    system = FakeSystem({}, privileged=False)
    RuleApplier(system).apply()
    assert all(call[0] == "sudo" for call in system.calls)


def test_reload_failure_short_circuits() -> None:
    system = FakeSystem({"--reload-rules": (1, "udevadm: failed to send reload request: Connection refused")})
    result = RuleApplier(system).apply()

    assert not result.ok
    assert result.kind is ErrorKind.EXTERNAL_TOOL_FAILURE
    assert "reload" in result.message
    assert len(system.calls) == 1


def test_trigger_error_marker_fails() -> None:
    system = FakeSystem({"trigger": (0, "some error while triggering")})
    result = RuleApplier(system).apply()

    assert not result.ok
    assert "trigger" in result.message


def test_markers_are_case_sensitive() -> None:
    system = FakeSystem({"--reload-rules": (1, "Failed to send reload request")})
    assert RuleApplier(system).reload().ok is True


def test_strict_mode_checks_exit_status() -> None:
    system = FakeSystem({"--reload-rules": (1, "")})
    assert RuleApplier(system).reload().ok
    result = RuleApplier(system, strict_exit_codes=True).reload()
    assert not result.ok
    assert "exit status 1" in result.message


def test_strict_reload_failure_short_circuits() -> None:
    system = FakeSystem({"--reload-rules": (1, "")})
    result = RuleApplier(system, strict_exit_codes=True).apply()

    assert result.kind is ErrorKind.EXTERNAL_TOOL_FAILURE
    assert system.calls == [["udevadm", "control", "--reload-rules"]]
