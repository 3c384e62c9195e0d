"""Rendering and parsing of easytty udev rule files."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path

from easytty.core.model import Device, Rule
from easytty.core.naming import flatten_comment

DEFAULT_PRIORITY = 99
DEFAULT_TAG = "easytty"
RULE_SUFFIX = ".rules"
RULE_HEADER = "# EasyTTY auto-generated rule"
FILE_MODE = "0666"
TTY_SUBSYSTEM = "tty"

_DEVICE_MARKER = "# Device:"
_VENDOR_RE = re.compile(r'ATTRS\{idVendor\}=="([0-9a-fA-F]+)"')
_PRODUCT_RE = re.compile(r'ATTRS\{idProduct\}=="([0-9a-fA-F]+)"')
_SERIAL_RE = re.compile(r'ATTRS\{serial\}=="([^"]+)"')
_SYMLINK_RE = re.compile(r'SYMLINK\+="([^"]+)"')
_PRIORITY_RE = re.compile(r"\s*[+-]?[0-9]+")
LOGGER = logging.getLogger(__name__)


def rule_file_name(symlink: str, *, priority: int = DEFAULT_PRIORITY, tag: str = DEFAULT_TAG) -> str:
    return f"{priority:02d}-{tag}-{symlink}{RULE_SUFFIX}"


def is_rule_file_name(file_name: str, *, tag: str = DEFAULT_TAG) -> bool:
    return tag in file_name and file_name.endswith(RULE_SUFFIX)


def format_timestamp(moment: datetime | None = None) -> str:
    """Format a timestamp the way date(1) prints it by default."""
    moment = (moment or datetime.now()).astimezone()
    return moment.strftime("%a %b %d %H:%M:%S %Z %Y")


def render_match_line(device: Device, symlink: str) -> str:
    clauses = [
        f'SUBSYSTEM=="{TTY_SUBSYSTEM}"',
        f'ATTRS{{idVendor}}=="{device.vendor_id}"',
        f'ATTRS{{idProduct}}=="{device.product_id}"',
    ]
    if device.serial:
        clauses.append(f'ATTRS{{serial}}=="{device.serial}"')
    clauses.append(f'SYMLINK+="{symlink}"')
    clauses.append(f'MODE="{FILE_MODE}"')
    return ", ".join(clauses)


def render_rule(device: Device, symlink: str, *, created: str | None = None) -> str:
    """Render the full rule file body for ``device`` under ``/dev/<symlink>``.

    Comment fields are flattened to a single line. Quoted match values are
    written as-is, so callers must reject unsafe values beforehand.
    """
    lines = [
        RULE_HEADER,
        f"{_DEVICE_MARKER} {flatten_comment(device.display_name)}",
        f"# Vendor: {flatten_comment(device.manufacturer)} ({device.vendor_id})",
        f"# Product: {flatten_comment(device.product)} ({device.product_id})",
    ]
    if device.serial:
        lines.append(f"# Serial: {flatten_comment(device.serial)}")
    lines.append(f"# Original: {flatten_comment(device.dev_path)}")
    lines.append(f"# Created: {created if created is not None else format_timestamp()}")
    lines.append("")
    lines.append(render_match_line(device, symlink))
    return "\n".join(lines) + "\n"


def parse_priority(file_name: str) -> int:
    match = _PRIORITY_RE.match(file_name[:2])
    if match is None:
        return DEFAULT_PRIORITY
    return int(match.group(0))


def parse_rule_text(text: str, file_path: str) -> Rule | None:
    """Parse rule text back into a ``Rule``.

    Each attribute is captured independently and the last occurrence wins.
    Returns None unless both a vendor id and a symlink were found.
    """
    name = ""
    vendor_id = ""
    product_id = ""
    serial = ""
    symlink = ""

    for raw_line in text.splitlines():
        line = raw_line.rstrip("\r")
        if _DEVICE_MARKER in line:
            name = line.split(":", 1)[1].strip()

        if not line.strip() or line.startswith("#"):
            continue

        match = _VENDOR_RE.search(line)
        if match:
            vendor_id = match.group(1)
        match = _PRODUCT_RE.search(line)
        if match:
            product_id = match.group(1)
        match = _SERIAL_RE.search(line)
        if match:
            serial = match.group(1)
        match = _SYMLINK_RE.search(line)
        if match:
            symlink = match.group(1)

    if not vendor_id or not symlink:
        return None

    return Rule(
        name=name or symlink,
        vendor_id=vendor_id,
        product_id=product_id,
        serial=serial,
        symlink=symlink,
        file_path=file_path,
        priority=parse_priority(Path(file_path).name),
    )


def parse_rule_file(path: Path) -> Rule | None:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        LOGGER.debug("Skipping unreadable rule file %s: %s", path, exc)
        return None
    return parse_rule_text(text, str(path))
