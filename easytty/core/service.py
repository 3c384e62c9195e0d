"""Service layer used by CLI and future UI frontends."""

from __future__ import annotations

from pathlib import Path

from easytty.core.applier import RuleApplier
from easytty.core.config_loader import Settings, load_settings
from easytty.core.model import Device, MatchKind, OperationResult, Rule
from easytty.core.scanner import DeviceScanner
from easytty.core.store import RuleStore
from easytty.core.system import HostSystem


class EasyttyService:
    def __init__(
        self,
        *,
        settings: Settings | None = None,
        scanner: DeviceScanner | None = None,
        system: HostSystem | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.system = system or HostSystem()
        self.scanner = scanner or DeviceScanner(markers=self.settings.device_markers)
        self.store = RuleStore(
            self.settings.rules_dir,
            tag=self.settings.system_tag,
            priority=self.settings.priority,
            device_dir=self.settings.device_dir,
            system=self.system,
        )
        self.applier = RuleApplier(self.system, strict_exit_codes=self.settings.strict_exit_codes)
        self.runtime_warnings = _runtime_warnings(self.settings, self.system)

    def scan_all(self) -> list[Device]:
        return self.scanner.scan()

    def scan_filtered(self, pattern: str) -> list[Device]:
        return self.scanner.scan_filtered(pattern)

    def lookup_by_path(self, dev_path: str) -> Device | None:
        return self.scanner.get_info(dev_path)

    def refresh(self) -> None:
        self.store.refresh()

    def list_rules(self) -> list[Rule]:
        self.store.refresh()
        return list(self.store.rules)

    def rule_exists_for(self, device: Device) -> bool:
        return self.store.exists(device)

    def match_kind(self, device: Device) -> MatchKind:
        return self.store.match_kind(device)

    def symlink_active(self, name: str) -> bool:
        return self.store.verify_symlink(name)

    def create_rule(self, device: Device, name: str) -> OperationResult:
        self.store.refresh()
        return self.store.create_rule(device, name)

    def delete_rule(self, path: str | Path) -> OperationResult:
        return self.store.delete_rule_file(path)

    def delete_rule_named(self, name: str) -> OperationResult:
        self.store.refresh()
        return self.store.delete_rule(name)

    def apply_rules(self) -> OperationResult:
        return self.applier.apply()


def _runtime_warnings(settings: Settings, system: HostSystem) -> tuple[str, ...]:
    warnings: list[str] = []
    if not settings.rules_dir.is_dir():
        warnings.append(f"Rule directory {settings.rules_dir} does not exist; no rules can be stored.")
    elif not system.has_write_access(settings.rules_dir):
        warnings.append(
            f"No write access to {settings.rules_dir}; rule changes will be made through sudo."
        )
    return tuple(warnings)
