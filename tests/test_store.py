from __future__ import annotations

from pathlib import Path

import pytest

from easytty.core.model import Device, ErrorKind, MatchKind, OperationResult
from easytty.core.store import RuleStore
from easytty.core.system import HostSystem

CREATED = "Mon Jan 01 00:00:00 UTC 2024"


def _device(serial: str = "", dev_path: str = "/dev/ttyUSB0", dev_num: str = "4") -> Device:
    return Device(
        dev_path=dev_path,
        dev_node=dev_path.rsplit("/", 1)[-1],
        vendor_id="0403",
        product_id="6001",
        serial=serial,
        manufacturer="FTDI",
        product="FT232R USB UART",
        bus_num="1",
        dev_num=dev_num,
    )


@pytest.fixture
def rules_dir(tmp_path: Path) -> Path:
    path = tmp_path / "rules.d"
    path.mkdir()
    return path


@pytest.fixture
def device_dir(tmp_path: Path) -> Path:
    path = tmp_path / "dev"
    path.mkdir()
    return path


@pytest.fixture
def store(rules_dir: Path, device_dir: Path) -> RuleStore:
    return RuleStore(rules_dir, device_dir=device_dir)


def test_create_shared_rule_scenario(store: RuleStore, rules_dir: Path) -> None:
    device = _device()
    assert store.match_kind(device) is MatchKind.NONE

    result = store.create_rule(device, "RS485", created=CREATED)

    assert result.ok, result.message
    path = rules_dir / "99-easytty-RS485.rules"
    assert path.is_file()
    assert "ATTRS{serial}" not in path.read_text(encoding="utf-8")
    assert store.match_kind(device) is MatchKind.SHARED
    assert store.exists(device)
    assert [r.symlink for r in store.rules] == ["RS485"]


def test_serial_device_gets_unique_rule_next_to_shared_rule(store: RuleStore) -> None:
    assert store.create_rule(_device(), "RS485", created=CREATED).ok

    serial_device = _device(serial="AB12", dev_path="/dev/ttyUSB1", dev_num="5")
    assert not store.exists(serial_device)

    result = store.create_rule(serial_device, "GPS")

    assert result.ok, result.message
    assert store.match_kind(serial_device) is MatchKind.UNIQUE
    assert store.match_kind(_device()) is MatchKind.SHARED


def test_second_rule_for_same_identity_conflicts(store: RuleStore) -> None:
    device = _device(serial="AB12")
    assert store.create_rule(device, "first").ok

    result = store.create_rule(device, "second")

    assert not result.ok
    assert result.kind is ErrorKind.CONFLICT
    assert "first" in result.message
    assert [r.symlink for r in store.rules] == ["first"]


def test_symlink_name_in_use_conflicts_for_unrelated_device(store: RuleStore) -> None:
    assert store.create_rule(_device(serial="AB12"), "modem").ok
    other = Device(dev_path="/dev/ttyACM0", dev_node="ttyACM0", vendor_id="2341", product_id="0043")

    result = store.create_rule(other, "modem")

    assert not result.ok
    assert result.kind is ErrorKind.CONFLICT
    assert store.symlink_in_use("modem")
    assert not store.symlink_in_use("Modem")


@pytest.mark.parametrize("name", ["", "1abc", "a b", "a" * 65, "abc\n"])
def test_invalid_names_rejected(store: RuleStore, rules_dir: Path, name: str) -> None:
    result = store.create_rule(_device(), name)
    assert result.kind is ErrorKind.INVALID_INPUT
    assert list(rules_dir.iterdir()) == []


def test_invalid_device_rejected(store: RuleStore) -> None:
    result = store.create_rule(Device(dev_path="/dev/ttyUSB0"), "RS485")
    assert result.kind is ErrorKind.INVALID_INPUT


def test_unsafe_serial_rejected(store: RuleStore, rules_dir: Path) -> None:
    result = store.create_rule(_device(serial='AB"12'), "RS485")
    assert result.kind is ErrorKind.INVALID_INPUT
    assert list(rules_dir.iterdir()) == []


def test_refresh_skips_foreign_and_malformed_files(store: RuleStore, rules_dir: Path) -> None:
    (rules_dir / "70-persistent-net.rules").write_text(
        'ATTRS{idVendor}=="0403", SYMLINK+="foreign"\n', encoding="utf-8"
    )
    (rules_dir / "99-easytty-broken.rules").write_text("# Device: nothing here\n", encoding="utf-8")
    (rules_dir / "99-easytty-notes.txt").write_text('ATTRS{idVendor}=="0403", SYMLINK+="x"\n', encoding="utf-8")
    (rules_dir / "99-easytty-dir.rules").mkdir()
    (rules_dir / "99-easytty-zeta.rules").write_text(
        'SUBSYSTEM=="tty", ATTRS{idVendor}=="10c4", ATTRS{idProduct}=="ea60", SYMLINK+="zeta"\n',
        encoding="utf-8",
    )
    (rules_dir / "10-easytty-alpha.rules").write_text(
        'SUBSYSTEM=="tty", ATTRS{idVendor}=="0403", ATTRS{idProduct}=="6001", SYMLINK+="alpha"\n',
        encoding="utf-8",
    )

    store.refresh()

    assert [r.symlink for r in store.rules] == ["alpha", "zeta"]
    assert store.rules[0].priority == 10
    assert store.rules[0].name == "alpha"


def test_missing_rules_dir_yields_no_rules(tmp_path: Path) -> None:
    store = RuleStore(tmp_path / "missing", device_dir=tmp_path)
    assert store.rules == ()


def test_refresh_picks_up_external_edits(store: RuleStore, rules_dir: Path) -> None:
    assert store.create_rule(_device(), "RS485").ok
    (rules_dir / "99-easytty-RS485.rules").unlink()

    store.refresh()

    assert store.rules == ()
    assert not store.exists(_device())


def test_delete_missing_file_is_not_found(store: RuleStore, rules_dir: Path) -> None:
    assert store.create_rule(_device(), "RS485").ok
    before = store.rules

    result = store.delete_rule_file(rules_dir / "99-easytty-nope.rules")

    assert not result.ok
    assert result.kind is ErrorKind.NOT_FOUND
    assert store.rules == before


def test_delete_rule_file_removes_and_refreshes(store: RuleStore, rules_dir: Path) -> None:
    assert store.create_rule(_device(), "RS485").ok

    result = store.delete_rule_file(store.rules[0].file_path)

    assert result.ok, result.message
    assert store.rules == ()
    assert not (rules_dir / "99-easytty-RS485.rules").exists()


def test_delete_rule_by_name(store: RuleStore) -> None:
    assert store.create_rule(_device(serial="AB12"), "GPS").ok

    assert store.delete_rule("missing").kind is ErrorKind.NOT_FOUND
    assert store.delete_rule("GPS").ok
    assert store.rules == ()


def test_verify_symlink_and_active_flag(store: RuleStore, device_dir: Path) -> None:
    assert store.create_rule(_device(), "RS485").ok
    assert not store.verify_symlink("RS485")
    assert store.rules[0].active is False

    (device_dir / "ttyUSB0").touch()
    (device_dir / "RS485").symlink_to(device_dir / "ttyUSB0")
    store.refresh()

    assert store.verify_symlink("RS485")
    assert store.rules[0].active is True


def test_failed_write_reports_permission_denied(rules_dir: Path, device_dir: Path) -> None:
    class ReadOnlySystem(HostSystem):
        def write_file(self, path: Path, content: str) -> OperationResult:
            return OperationResult.failure(ErrorKind.PERMISSION_DENIED, "Failed to create rule file (sudo required)")

    store = RuleStore(rules_dir, device_dir=device_dir, system=ReadOnlySystem())
    result = store.create_rule(_device(), "RS485")

    assert result.kind is ErrorKind.PERMISSION_DENIED
    assert store.rules == ()


def test_custom_tag_and_priority(rules_dir: Path, device_dir: Path) -> None:
    store = RuleStore(rules_dir, tag="lab", priority=60, device_dir=device_dir)
    assert store.create_rule(_device(), "bench").ok
    assert (rules_dir / "60-lab-bench.rules").is_file()
    assert store.rules[0].priority == 60


def test_trailing_newline_name_cannot_bypass_uniqueness(store: RuleStore, rules_dir: Path) -> None:
    device = _device()

    assert store.create_rule(device, "RS485\n").kind is ErrorKind.INVALID_INPUT
    assert store.create_rule(device, "RS485\n").kind is ErrorKind.INVALID_INPUT
    assert list(rules_dir.iterdir()) == []
    assert not store.exists(device)
