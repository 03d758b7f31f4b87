"""Loading the switch configuration file, migrating legacy layouts on the way."""

from __future__ import annotations

from pathlib import Path

import yaml

from kubeswitch.migration import convert_configuration
from kubeswitch.models import (
    Config,
    ConfigOld,
    config_from_dict,
    config_old_from_dict,
    config_old_to_dict,
    config_to_dict,
)


class ConfigError(Exception):
    """The configuration file cannot be read, parsed or migrated."""


def load_config_from_file(filepath):
    """Read the configuration at ``filepath``; ``None`` if the file does not exist."""
    try:
        raw = Path(filepath).read_bytes()
    except FileNotFoundError:
        return None

    if not raw:
        return Config()

    try:
        config = config_from_dict(yaml.safe_load(raw))
    except (yaml.YAMLError, ValueError, TypeError):
        config = None

    # without a version and stores this is a legacy configuration
    if config is not None and (config.version or config.kubeconfig_stores):
        return config

    try:
        old = config_old_from_dict(yaml.safe_load(raw))
    except (yaml.YAMLError, ValueError, TypeError) as exc:
        raise ConfigError(f"could not unmarshal config with path '{filepath}': {exc}") from exc
    return migrate_config(old, filepath)


def _write_yaml(path: str, data: dict) -> None:
    try:
        with open(path, "w", encoding="utf-8") as handle:
            yaml.safe_dump(data, handle, sort_keys=False, allow_unicode=True)
    except OSError as exc:
        raise ConfigError(f"failed to migrate SwitchConfig file: {exc}") from exc


def migrate_config(old: ConfigOld, filename) -> Config:
    """Back up the legacy file as ``<filename>.old`` and rewrite it in the current format."""
    _write_yaml(f"{filename}.old", config_old_to_dict(old))
    new = convert_configuration(old)
    _write_yaml(str(filename), config_to_dict(new))
    return new