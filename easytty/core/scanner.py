"""Serial device discovery through udev."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from typing import Any

import pyudev

from easytty.core.errors import DeviceEnumerationError
from easytty.core.model import Device
from easytty.core.naming import format_hex_id

DEFAULT_DEVICE_MARKERS = ("ttyUSB", "ttyACM", "ttyAMA", "ttySC")
TTY_SUBSYSTEM = "tty"
LOGGER = logging.getLogger(__name__)


def _sysattr(device: Any, name: str) -> str:
    try:
        return device.attributes.asstring(name).strip()
    except KeyError:
        return ""
    except UnicodeDecodeError:
        LOGGER.warning("Could not decode sysfs attribute %s of %s", name, device.sys_path)
        return ""


def device_from_udev(udev_device: Any) -> Device:
    """Build a ``Device`` from a pyudev device in the tty subsystem.

    Identity attributes come from the nearest ``usb_device`` ancestor; the
    bound driver and interface number come from the nearest
    ``usb_interface`` ancestor, which is usually a different node.
    """
    dev_path = udev_device.device_node or ""
    fields: dict[str, str] = {
        "dev_path": dev_path,
        "dev_node": os.path.basename(dev_path),
        "sys_path": udev_device.sys_path or "",
        "subsystem": udev_device.subsystem or "",
    }

    usb_device = udev_device.find_parent("usb", "usb_device")
    if usb_device is not None:
        fields.update(
            vendor=udev_device.properties.get("ID_VENDOR_FROM_DATABASE", ""),
            vendor_id=format_hex_id(_sysattr(usb_device, "idVendor")),
            product_id=format_hex_id(_sysattr(usb_device, "idProduct")),
            serial=_sysattr(usb_device, "serial"),
            manufacturer=_sysattr(usb_device, "manufacturer"),
            product=_sysattr(usb_device, "product"),
            bus_num=_sysattr(usb_device, "busnum"),
            dev_num=_sysattr(usb_device, "devnum"),
            kernel_path=usb_device.sys_name or "",
            driver=usb_device.driver or "",
        )

    interface = udev_device.find_parent("usb", "usb_interface")
    if interface is not None:
        if interface.driver:
            fields["driver"] = interface.driver
        fields["interface_num"] = _sysattr(interface, "bInterfaceNumber")

    return Device(**fields)


class DeviceScanner:
    def __init__(
        self,
        *,
        context: Any | None = None,
        markers: Sequence[str] = DEFAULT_DEVICE_MARKERS,
    ) -> None:
        if context is None:
            try:
                context = pyudev.Context()
            except (ImportError, OSError) as exc:
                raise DeviceEnumerationError(f"Failed to initialize udev: {exc}") from exc
        self.context = context
        self.markers = tuple(markers)

    def _is_serial_node(self, dev_path: str) -> bool:
        return any(marker in dev_path for marker in self.markers)

    def scan(self) -> list[Device]:
        devices: list[Device] = []
        for udev_device in self.context.list_devices(subsystem=TTY_SUBSYSTEM):
            dev_path = udev_device.device_node
            if not dev_path or not self._is_serial_node(dev_path):
                continue
            device = device_from_udev(udev_device)
            if not device.is_valid():
                LOGGER.debug("Skipping %s: no USB vendor id", dev_path)
                continue
            devices.append(device)
        devices.sort(key=lambda d: d.dev_path)
        return devices

    def scan_filtered(self, pattern: str) -> list[Device]:
        return [device for device in self.scan() if pattern in device.dev_path]

    def get_info(self, dev_path: str) -> Device | None:
        sys_path = os.path.join(self.context.sys_path, "class", TTY_SUBSYSTEM, os.path.basename(dev_path))
        try:
            udev_device = pyudev.Devices.from_sys_path(self.context, sys_path)
        except pyudev.DeviceNotFoundError:
            LOGGER.debug("No sysfs entry at %s, falling back to full scan", sys_path)
            for device in self.scan():
                if device.dev_path == dev_path:
                    return device
            return None

        device = device_from_udev(udev_device)
        return device if device.is_valid() else None
