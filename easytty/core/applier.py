"""Reload and re-trigger udev after the rule directory changes."""

from __future__ import annotations

import logging

from easytty.core.model import CommandOutput, ErrorKind, OperationResult
from easytty.core.system import HostSystem

RELOAD_COMMAND = ("udevadm", "control", "--reload-rules")
TRIGGER_COMMAND = ("udevadm", "trigger")
FAILURE_MARKERS = ("error", "failed")
LOGGER = logging.getLogger(__name__)


class RuleApplier:
    """Runs udevadm reload/trigger and classifies the outcome.

    By default a step fails when its output mentions one of
    ``FAILURE_MARKERS`` (case-sensitive). With ``strict_exit_codes`` a
    non-zero exit status fails the step as well.
    """

    def __init__(self, system: HostSystem | None = None, *, strict_exit_codes: bool = False) -> None:
        self.system = system or HostSystem()
        self.strict_exit_codes = strict_exit_codes

    def _command(self, base: tuple[str, ...]) -> list[str]:
        if self.system.is_privileged():
            return list(base)
        return ["sudo", *base]

    def _failed(self, result: CommandOutput) -> bool:
        if any(marker in result.output for marker in FAILURE_MARKERS):
            return True
        return self.strict_exit_codes and result.returncode != 0

    def _run_step(self, base: tuple[str, ...], verb: str) -> OperationResult:
        result = self.system.run(self._command(base))
        if self._failed(result):
            LOGGER.warning("udevadm %s failed (exit %d): %s", verb, result.returncode, result.output)
            detail = result.output or f"exit status {result.returncode}"
            return OperationResult.failure(
                ErrorKind.EXTERNAL_TOOL_FAILURE,
                f"Failed to {verb} rules: {detail}",
            )
        return OperationResult.success(f"Rules {verb}ed successfully")

    def reload(self) -> OperationResult:
        return self._run_step(RELOAD_COMMAND, "reload")

    def trigger(self) -> OperationResult:
        return self._run_step(TRIGGER_COMMAND, "trigger")

    def apply(self) -> OperationResult:
        result = self.reload()
        if not result.ok:
            return result
        result = self.trigger()
        if not result.ok:
            return result
        return OperationResult.success("Rules reloaded and applied successfully")
