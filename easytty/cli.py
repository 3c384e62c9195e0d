"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer

from easytty.core.config_loader import load_settings
from easytty.core.errors import EasyttyError
from easytty.core.model import Device, MatchKind, OperationResult, Rule
from easytty.core.service import EasyttyService

__version__ = "1.0.0"

app = typer.Typer(
    help="Persistent names for USB serial devices via udev rules.\n\n"
    "Running without options starts an interactive session. "
    "Some operations require root privileges (sudo is used when needed).",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _build_service(config: Path | None, verbose: bool) -> EasyttyService:
    settings = load_settings(config)
    _configure_logging("DEBUG" if verbose else settings.log_level)
    service = EasyttyService(settings=settings)
    for warning in getattr(service, "runtime_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


def _service_from_context(ctx: typer.Context) -> EasyttyService:
    options = ctx.obj or {}
    return _build_service(options.get("config"), options.get("verbose", False))


def _echo_result(result: OperationResult) -> None:
    if result.ok:
        typer.echo(result.message)
    else:
        typer.echo(f"Error: {result.message}", err=True)


def _print_devices(service: EasyttyService) -> None:
    devices = service.scan_all()
    if not devices:
        typer.echo("No USB serial devices found.")
        return

    typer.echo(f"Found {len(devices)} USB serial device(s):\n")
    for device in devices:
        typer.echo(f"Device: {device.dev_path}")
        typer.echo(f"  Vendor ID:    {device.vendor_id}")
        typer.echo(f"  Product ID:   {device.product_id}")
        if device.manufacturer:
            typer.echo(f"  Manufacturer: {device.manufacturer}")
        if device.product:
            typer.echo(f"  Product:      {device.product}")
        if device.serial:
            typer.echo(f"  Serial:       {device.serial}")
        if device.driver:
            typer.echo(f"  Driver:       {device.driver}")
        if device.kernel_path:
            typer.echo(f"  USB Port:     {device.kernel_path}")
        typer.echo("")


def _print_rules(service: EasyttyService) -> None:
    rules = service.list_rules()
    if not rules:
        typer.echo("No EasyTTY udev rules found.")
        return

    typer.echo(f"Found {len(rules)} EasyTTY udev rule(s):\n")
    for rule in rules:
        typer.echo(f"Symlink: /dev/{rule.symlink}")
        typer.echo(f"  Vendor ID:  {rule.vendor_id}")
        typer.echo(f"  Product ID: {rule.product_id}")
        if rule.serial:
            typer.echo(f"  Serial:     {rule.serial}")
        typer.echo(f"  File:       {rule.file_path}")
        typer.echo(f"  Active:     {'Yes' if service.symlink_active(rule.symlink) else 'No'}")
        typer.echo("")


def _device_label(service: EasyttyService, device: Device) -> str:
    label = f"{device.dev_path}  {device.display_name} [{device.vendor_id}:{device.product_id}]"
    kind = service.match_kind(device)
    if kind is MatchKind.UNIQUE:
        return f"{label}  (named, unique rule)"
    if kind is MatchKind.SHARED:
        return f"{label}  (named, shared rule)"
    return label


def _rule_label(service: EasyttyService, rule: Rule) -> str:
    status = "active" if service.symlink_active(rule.symlink) else "inactive"
    return f"/dev/{rule.symlink} -> {rule.vendor_id}:{rule.product_id} ({status})"


def _pick(prompt: str, count: int) -> int | None:
    raw = typer.prompt(f"{prompt} [1-{count}, empty to cancel]", default="", show_default=False)
    if not raw.strip():
        return None
    try:
        index = int(raw)
    except ValueError:
        typer.echo("Not a number.", err=True)
        return None
    if not 1 <= index <= count:
        typer.echo("Out of range.", err=True)
        return None
    return index - 1


def _print_device_details(service: EasyttyService, device: Device) -> None:
    typer.echo(f"\nDevice: {device.display_name}")
    typer.echo(f"  Path:         {device.dev_path}")
    typer.echo(f"  Vendor:       {device.manufacturer or device.vendor or '-'} ({device.vendor_id})")
    typer.echo(f"  Product:      {device.product or '-'} ({device.product_id})")
    typer.echo(f"  Serial:       {device.serial or '(none, rule will be shared)'}")
    typer.echo(f"  Driver:       {device.driver or '-'}")
    typer.echo(f"  USB Port:     {device.kernel_path or '-'}")
    typer.echo(f"  Interface:    {device.interface_num or '-'}")
    kind = service.match_kind(device)
    if kind is MatchKind.UNIQUE:
        typer.echo("  Rule:         unique rule (serial)")
    elif kind is MatchKind.SHARED:
        typer.echo("  Rule:         shared rule (vendor/product)")
    else:
        typer.echo("  Rule:         none")


def _interactive_create(service: EasyttyService, devices: list[Device]) -> None:
    if not devices:
        typer.echo("No USB serial devices found.")
        return
    index = _pick("Device", len(devices))
    if index is None:
        return
    device = devices[index]
    _print_device_details(service, device)
    if service.rule_exists_for(device):
        typer.echo("A rule already exists for this device.")
        return

    name = typer.prompt("Symlink name (letters, digits, '_' or '-')").strip()
    if not typer.confirm(f"Create /dev/{name} for {device.display_name}?", default=True):
        return
    result = service.create_rule(device, name)
    _echo_result(result)
    if result.ok:
        _echo_result(service.apply_rules())


def _interactive_delete(service: EasyttyService) -> None:
    rules = service.list_rules()
    if not rules:
        typer.echo("No EasyTTY udev rules found.")
        return
    for number, rule in enumerate(rules, start=1):
        typer.echo(f"  {number}) {_rule_label(service, rule)}")
    index = _pick("Rule", len(rules))
    if index is None:
        return
    rule = rules[index]
    if not typer.confirm(f"Delete rule /dev/{rule.symlink}?", default=False):
        return
    result = service.delete_rule(rule.file_path)
    _echo_result(result)
    if result.ok:
        _echo_result(service.apply_rules())


def _interactive(service: EasyttyService) -> None:
    while True:
        rules = service.list_rules()
        devices = service.scan_all()
        typer.echo(f"\nUSB serial devices ({len(devices)}):")
        for number, device in enumerate(devices, start=1):
            typer.echo(f"  {number}) {_device_label(service, device)}")
        typer.echo(f"Rules: {len(rules)}")

        choice = typer.prompt("[c]reate rule, [d]elete rule, [a]pply rules, [r]efresh, [q]uit", default="r")
        choice = choice.strip().lower()[:1]
        if choice == "q":
            return
        if choice == "c":
            _interactive_create(service, devices)
        elif choice == "d":
            _interactive_delete(service)
        elif choice == "a":
            _echo_result(service.apply_rules())
        elif choice != "r":
            typer.echo(f"Unknown choice '{choice}'", err=True)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"EasyTTY version {__version__}")
        typer.echo("USB Device Naming Utility using udev")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    list_devices: bool = typer.Option(False, "--list", "-l", help="List connected USB serial devices."),
    list_rules: bool = typer.Option(False, "--rules", "-r", help="List existing EasyTTY udev rules."),
    config: Path | None = typer.Option(None, "--config", help="Path to config.yaml"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version information.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    ctx.obj = {"config": config, "verbose": verbose}
    if ctx.invoked_subcommand is not None:
        return

    try:
        service = _build_service(config, verbose)
        if list_devices:
            _print_devices(service)
            return
        if list_rules:
            _print_rules(service)
            return
        _interactive(service)
    except EasyttyError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None
    except typer.Abort:
        typer.echo("")


@app.command("create")
def create_rule(
    ctx: typer.Context,
    device: str = typer.Argument(..., help="Device node, e.g. /dev/ttyUSB0"),
    name: str = typer.Argument(..., help="Symlink name to create under /dev"),
    apply: bool = typer.Option(True, "--apply/--no-apply", help="Reload and trigger udev afterwards."),
) -> None:
    """Create a persistent-name rule for DEVICE."""
    try:
        service = _service_from_context(ctx)
        found = service.lookup_by_path(device)
        if found is None:
            typer.echo(f"Error: No USB serial device found at {device}", err=True)
            raise typer.Exit(code=1)
        result = service.create_rule(found, name)
        _echo_result(result)
        if not result.ok:
            raise typer.Exit(code=1)
        if apply:
            applied = service.apply_rules()
            _echo_result(applied)
            if not applied.ok:
                raise typer.Exit(code=1)
    except EasyttyError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("delete")
def delete_rule(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Symlink or display name of the rule"),
    apply: bool = typer.Option(True, "--apply/--no-apply", help="Reload and trigger udev afterwards."),
) -> None:
    """Delete the rule that creates /dev/NAME."""
    try:
        service = _service_from_context(ctx)
        result = service.delete_rule_named(name)
        _echo_result(result)
        if not result.ok:
            raise typer.Exit(code=1)
        if apply:
            applied = service.apply_rules()
            _echo_result(applied)
            if not applied.ok:
                raise typer.Exit(code=1)
    except EasyttyError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("apply")
def apply_rules(ctx: typer.Context) -> None:
    """Reload udev rules and re-trigger device enumeration."""
    try:
        service = _service_from_context(ctx)
        result = service.apply_rules()
        _echo_result(result)
        if not result.ok:
            raise typer.Exit(code=1)
    except EasyttyError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
