"""Host system access: files, commands, and privilege queries.

Writes and deletes under the rule directory go straight to disk when the
process may do so, and fall back to ``sudo tee`` / ``sudo rm -f`` otherwise.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence
from pathlib import Path

from easytty.core.model import CommandOutput, ErrorKind, OperationResult

LOGGER = logging.getLogger(__name__)


class HostSystem:
    def is_privileged(self) -> bool:
        return os.geteuid() == 0

    def has_write_access(self, directory: Path) -> bool:
        return directory.is_dir() and (self.is_privileged() or os.access(directory, os.W_OK))

    def list_dir(self, directory: Path) -> list[Path]:
        if not directory.is_dir():
            return []
        try:
            return sorted(directory.iterdir())
        except OSError as exc:
            LOGGER.warning("Could not list %s: %s", directory, exc)
            return []

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_file(self, path: Path) -> bool:
        return path.is_file()

    def run(self, cmd: Sequence[str], *, input_text: str | None = None) -> CommandOutput:
        """Run ``cmd`` and return its merged stdout/stderr, trimmed.

        A program that cannot be started (missing, not executable) is
        reported as exit status 127 with the error text as output, so callers
        never see OSError.
        """
        LOGGER.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                list(cmd),
                check=False,
                input=input_text,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as exc:
            return CommandOutput(command=tuple(cmd), returncode=127, output=f"failed to execute: {exc}")
        return CommandOutput(
            command=tuple(cmd),
            returncode=result.returncode,
            output=(result.stdout or "").strip(),
        )

    def write_file(self, path: Path, content: str) -> OperationResult:
        if self.has_write_access(path.parent):
            try:
                path.write_text(content, encoding="utf-8")
            except OSError as exc:
                return OperationResult.failure(
                    ErrorKind.PERMISSION_DENIED,
                    f"Failed to create rule file {path}: {exc}",
                )
            return OperationResult.success(f"Wrote {path}")

        LOGGER.info("No direct write access to %s, using sudo", path.parent)
        result = self.run(["sudo", "tee", str(path)], input_text=content)
        if result.returncode != 0:
            return OperationResult.failure(
                ErrorKind.PERMISSION_DENIED,
                "Failed to create rule file (sudo required)",
            )
        return OperationResult.success(f"Wrote {path}")

    def remove_file(self, path: Path) -> OperationResult:
        if not path.exists():
            return OperationResult.failure(ErrorKind.NOT_FOUND, f"Rule file does not exist: {path}")

        if self.has_write_access(path.parent):
            try:
                path.unlink()
            except OSError as exc:
                return OperationResult.failure(
                    ErrorKind.PERMISSION_DENIED,
                    f"Failed to delete rule: {exc}",
                )
            return OperationResult.success("Rule deleted successfully")

        LOGGER.info("No direct write access to %s, using sudo", path.parent)
        self.run(["sudo", "rm", "-f", str(path)])
        if path.exists():
            return OperationResult.failure(
                ErrorKind.PERMISSION_DENIED,
                "Failed to delete rule file (sudo required)",
            )
        return OperationResult.success("Rule deleted successfully")
