"""Settings loading and validation for the YAML easytty config file."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from easytty.core.errors import ConfigLoadError, ConfigValidationError
from easytty.core.rule_format import DEFAULT_PRIORITY, DEFAULT_TAG
from easytty.core.scanner import DEFAULT_DEVICE_MARKERS
from easytty.core.store import DEFAULT_DEVICE_DIR, DEFAULT_RULES_DIR

CONFIG_ENV = "EASYTTY_CONFIG"
RULES_DIR_ENV = "EASYTTY_RULES_DIR"
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class Settings:
    rules_dir: Path = DEFAULT_RULES_DIR
    device_dir: Path = DEFAULT_DEVICE_DIR
    system_tag: str = DEFAULT_TAG
    priority: int = DEFAULT_PRIORITY
    device_markers: tuple[str, ...] = DEFAULT_DEVICE_MARKERS
    strict_exit_codes: bool = False
    log_level: str = "WARNING"
    source: Path | None = None


def _load_schema_validator() -> Any:
    schema_text = resources.files("easytty.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def default_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV)
    if override:
        return Path(override)
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "easytty/config.yaml"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigValidationError(f"Config file {path} must contain a mapping at root")
    return loaded


def _build_settings(doc: dict[str, Any], source: Path | None) -> Settings:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ConfigValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    defaults = Settings()
    rules_dir = Path(doc.get("rules_dir", defaults.rules_dir))
    env_rules_dir = os.environ.get(RULES_DIR_ENV)
    if env_rules_dir:
        rules_dir = Path(env_rules_dir)

    return Settings(
        rules_dir=rules_dir,
        device_dir=Path(doc.get("device_dir", defaults.device_dir)),
        system_tag=doc.get("system_tag", defaults.system_tag),
        priority=int(doc.get("priority", defaults.priority)),
        device_markers=tuple(doc.get("device_markers", defaults.device_markers)),
        strict_exit_codes=bool(doc.get("strict_exit_codes", defaults.strict_exit_codes)),
        log_level=doc.get("log_level", defaults.log_level),
        source=source,
    )


def load_settings(path: Path | None = None) -> Settings:
    if path is not None and not path.exists():
        raise ConfigLoadError(f"Config file {path} does not exist")
    config_path = path or default_config_path()
    if not config_path.exists():
        LOGGER.debug("No config file at %s, using defaults", config_path)
        return _build_settings({}, None)
    return _build_settings(_read_yaml(config_path), config_path)
