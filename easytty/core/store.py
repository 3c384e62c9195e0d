"""Rule store backed by the udev rule directory.

The in-memory rule list is always rebuilt from disk. Nothing is patched
incrementally, so edits made by other tools show up on the next refresh.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

from easytty.core.model import Device, ErrorKind, MatchKind, OperationResult, Rule
from easytty.core.naming import is_safe_rule_value, is_valid_symlink_name
from easytty.core.rule_format import (
    DEFAULT_PRIORITY,
    DEFAULT_TAG,
    is_rule_file_name,
    parse_rule_file,
    render_rule,
    rule_file_name,
)
from easytty.core.system import HostSystem

DEFAULT_RULES_DIR = Path("/etc/udev/rules.d")
DEFAULT_DEVICE_DIR = Path("/dev")
LOGGER = logging.getLogger(__name__)


class RuleStore:
    def __init__(
        self,
        rules_dir: Path = DEFAULT_RULES_DIR,
        *,
        tag: str = DEFAULT_TAG,
        priority: int = DEFAULT_PRIORITY,
        device_dir: Path = DEFAULT_DEVICE_DIR,
        system: HostSystem | None = None,
    ) -> None:
        self.rules_dir = Path(rules_dir)
        self.tag = tag
        self.priority = priority
        self.device_dir = Path(device_dir)
        self.system = system or HostSystem()
        self._rules: list[Rule] = []
        self.refresh()

    @property
    def rules(self) -> tuple[Rule, ...]:
        return tuple(self._rules)

    def refresh(self) -> None:
        self._rules = []
        for path in self.system.list_dir(self.rules_dir):
            if not is_rule_file_name(path.name, tag=self.tag):
                continue
            if not self.system.is_file(path):
                continue
            rule = parse_rule_file(path)
            if rule is None or not rule.is_well_formed():
                LOGGER.debug("Skipping %s: not a well-formed easytty rule", path)
                continue
            self._rules.append(replace(rule, active=self.verify_symlink(rule.symlink)))
        self._rules.sort(key=lambda r: r.symlink)
        LOGGER.debug("Loaded %d rule(s) from %s", len(self._rules), self.rules_dir)

    def exists(self, device: Device) -> bool:
        return any(rule.matches(device) for rule in self._rules)

    def matching_rule(self, device: Device) -> Rule | None:
        for rule in self._rules:
            if rule.matches(device):
                return rule
        return None

    def match_kind(self, device: Device) -> MatchKind:
        rule = self.matching_rule(device)
        if rule is None:
            return MatchKind.NONE
        return rule.match_kind

    def symlink_in_use(self, name: str) -> bool:
        return any(rule.symlink == name for rule in self._rules)

    def find_rule(self, name: str) -> Rule | None:
        for rule in self._rules:
            if rule.symlink == name or rule.name == name:
                return rule
        return None

    def rule_path(self, symlink: str) -> Path:
        return self.rules_dir / rule_file_name(symlink, priority=self.priority, tag=self.tag)

    def create_rule(self, device: Device, name: str, *, created: str | None = None) -> OperationResult:
        if not is_valid_symlink_name(name):
            return OperationResult.failure(
                ErrorKind.INVALID_INPUT,
                "Invalid symlink name. Use only letters, numbers, underscores, and hyphens. "
                "Must start with a letter.",
            )
        if not device.is_valid():
            return OperationResult.failure(ErrorKind.INVALID_INPUT, "Invalid device information")

        for field_name in ("vendor_id", "product_id", "serial"):
            if not is_safe_rule_value(getattr(device, field_name)):
                return OperationResult.failure(
                    ErrorKind.INVALID_INPUT,
                    f"Device {field_name.replace('_', ' ')} contains characters that cannot be "
                    "written into a udev rule",
                )

        if self.symlink_in_use(name):
            return OperationResult.failure(ErrorKind.CONFLICT, f"Symlink name '{name}' is already in use")

        existing = self.matching_rule(device)
        if existing is not None:
            return OperationResult.failure(
                ErrorKind.CONFLICT,
                f"A rule for this device already exists as '{existing.symlink}'",
            )

        path = self.rule_path(name)
        content = render_rule(device, name, created=created)
        result = self.system.write_file(path, content)
        if not result.ok:
            LOGGER.warning("Writing %s failed: %s", path, result.message)
            self.refresh()
            return result

        LOGGER.info("Created rule %s for %s", path, device.identity)
        self.refresh()
        return OperationResult.success(f"Rule created successfully: {self.device_dir / name}")

    def delete_rule_file(self, path: str | Path) -> OperationResult:
        target = Path(path)
        try:
            if not self.system.exists(target):
                return OperationResult.failure(ErrorKind.NOT_FOUND, f"Rule file does not exist: {target}")
            result = self.system.remove_file(target)
            if result.ok:
                LOGGER.info("Deleted rule file %s", target)
            else:
                LOGGER.warning("Deleting %s failed: %s", target, result.message)
            return result
        finally:
            self.refresh()

    def delete_rule(self, name: str) -> OperationResult:
        rule = self.find_rule(name)
        if rule is None:
            return OperationResult.failure(ErrorKind.NOT_FOUND, f"Rule not found: {name}")
        return self.delete_rule_file(rule.file_path)

    def verify_symlink(self, name: str) -> bool:
        return self.system.exists(self.device_dir / name)
