"""Stable public API for building tooling on top of easytty.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from easytty.core.config_loader import Settings, load_settings
from easytty.core.errors import (
    ConfigLoadError,
    ConfigValidationError,
    DeviceEnumerationError,
    EasyttyError,
)
from easytty.core.model import Device, ErrorKind, MatchKind, OperationResult, Rule
from easytty.core.scanner import DeviceScanner
from easytty.core.service import EasyttyService
from easytty.core.system import HostSystem

__all__ = [
    "EasyttyError",
    "ConfigLoadError",
    "ConfigValidationError",
    "DeviceEnumerationError",
    "Device",
    "ErrorKind",
    "MatchKind",
    "OperationResult",
    "Rule",
    "Settings",
    "load_settings",
    "DeviceStatus",
    "Client",
]


@dataclass(frozen=True)
class DeviceStatus:
    """A scanned device together with how the current rules treat it."""

    device: Device
    match_kind: MatchKind
    rule: Rule | None


class Client:
    """Public client for interacting with easytty core capabilities.

    A `Client` instance wraps device scanning, the rule store, and udev
    reload/trigger behind a stable API intended for third-party tools
    (GUI/TUI/services/scripts).
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        scanner: DeviceScanner | None = None,
        system: HostSystem | None = None,
    ) -> None:
        self._service = EasyttyService(settings=settings, scanner=scanner, system=system)

    @property
    def runtime_warnings(self) -> tuple[str, ...]:
        return self._service.runtime_warnings

    def scan_all(self) -> list[Device]:
        return self._service.scan_all()

    def scan_filtered(self, pattern: str) -> list[Device]:
        return self._service.scan_filtered(pattern)

    def lookup_by_path(self, dev_path: str) -> Device | None:
        return self._service.lookup_by_path(dev_path)

    def list_rules(self) -> list[Rule]:
        return self._service.list_rules()

    def device_statuses(self) -> list[DeviceStatus]:
        self._service.refresh()
        statuses = []
        for device in self._service.scan_all():
            statuses.append(
                DeviceStatus(
                    device=device,
                    match_kind=self._service.match_kind(device),
                    rule=self._service.store.matching_rule(device),
                )
            )
        return statuses

    def rule_exists_for(self, device: Device) -> bool:
        return self._service.rule_exists_for(device)

    def match_kind(self, device: Device) -> MatchKind:
        return self._service.match_kind(device)

    def symlink_active(self, name: str) -> bool:
        return self._service.symlink_active(name)

    def create_rule(self, device: Device, name: str, *, apply: bool = False) -> OperationResult:
        result = self._service.create_rule(device, name)
        if result.ok and apply:
            applied = self._service.apply_rules()
            if not applied.ok:
                return applied
        return result

    def delete_rule(self, path: str | Path) -> OperationResult:
        return self._service.delete_rule(path)

    def delete_rule_named(self, name: str) -> OperationResult:
        return self._service.delete_rule_named(name)

    def apply_rules(self) -> OperationResult:
        return self._service.apply_rules()
