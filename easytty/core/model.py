"""Core data models used across scanner, store, service, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MatchKind(Enum):
    NONE = "none"
    SHARED = "shared"
    UNIQUE = "unique"


class ErrorKind(Enum):
    INVALID_INPUT = "invalid_input"
    CONFLICT = "conflict"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    EXTERNAL_TOOL_FAILURE = "external_tool_failure"


@dataclass(frozen=True)
class Device:
    """One attached serial device as seen during a single scan.

    ``identity`` is what ties a device to the same physical unit across
    scans. Serial-less devices fall back to the USB bus/device numbers, which
    the kernel reassigns on re-plug, so that fallback is best-effort only.
    """

    dev_path: str
    sys_path: str = ""
    subsystem: str = ""
    vendor: str = ""
    vendor_id: str = ""
    product_id: str = ""
    serial: str = ""
    manufacturer: str = ""
    product: str = ""
    driver: str = ""
    dev_node: str = ""
    bus_num: str = ""
    dev_num: str = ""
    interface_num: str = ""
    kernel_path: str = ""

    def is_valid(self) -> bool:
        return bool(self.dev_path) and bool(self.vendor_id)

    @property
    def identity(self) -> str:
        if self.serial:
            return f"{self.vendor_id}:{self.product_id}:{self.serial}"
        return f"{self.vendor_id}:{self.product_id}:bus{self.bus_num}dev{self.dev_num}"

    @property
    def display_name(self) -> str:
        if self.product:
            return f"{self.product} ({self.dev_node})"
        return self.dev_node


@dataclass(frozen=True)
class Rule:
    name: str
    vendor_id: str
    product_id: str
    symlink: str
    file_path: str
    serial: str = ""
    interface_num: str = ""
    priority: int = 99
    active: bool = False

    def is_well_formed(self) -> bool:
        return bool(self.vendor_id) and bool(self.symlink)

    def matches(self, device: Device) -> bool:
        if self.vendor_id != device.vendor_id or self.product_id != device.product_id:
            return False
        if self.serial:
            return device.serial == self.serial
        # A rule without a serial is shared by serial-less units only.
        return not device.serial

    @property
    def match_kind(self) -> MatchKind:
        return MatchKind.UNIQUE if self.serial else MatchKind.SHARED


@dataclass(frozen=True)
class OperationResult:
    ok: bool
    message: str
    kind: ErrorKind | None = None

    @classmethod
    def success(cls, message: str = "Operation completed successfully") -> OperationResult:
        return cls(ok=True, message=message)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> OperationResult:
        return cls(ok=False, message=message, kind=kind)


@dataclass(frozen=True)
class CommandOutput:
    """Merged, trimmed output of one external command."""

    command: tuple[str, ...]
    returncode: int
    output: str
