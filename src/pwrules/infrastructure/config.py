"""Tool configuration read from ``pwrules.yml``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from pwrules.infrastructure.loader import DEFAULT_PROPERTY_NAME

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "pwrules.yml"


class ConfigError(Exception):
    """Raised when an explicitly requested config file is invalid."""


@dataclass(frozen=True)
class CheckConfig:
    """Settings for a check run.

    ``compare_allowed_as_set`` relaxes the ``allowed`` comparison of the diff
    from an ordered sequence to an unordered set.
    """

    property_name: str = DEFAULT_PROPERTY_NAME
    compare_allowed_as_set: bool = False


def _config_from_mapping(data: dict[str, object], source: Path) -> CheckConfig:
    defaults = CheckConfig()

    property_name = data.get("property_name", defaults.property_name)
    if not isinstance(property_name, str) or not property_name:
        msg = f"{source}: 'property_name' must be a non-empty string"
        raise ConfigError(msg)

    as_set = data.get("compare_allowed_as_set", defaults.compare_allowed_as_set)
    if not isinstance(as_set, bool):
        msg = f"{source}: 'compare_allowed_as_set' must be true or false"
        raise ConfigError(msg)

    unknown = sorted(set(data) - {"property_name", "compare_allowed_as_set"})
    if unknown:
        logger.warning("%s: ignoring unknown config keys: %s", source, ", ".join(unknown))

    return CheckConfig(property_name=property_name, compare_allowed_as_set=as_set)


def load_config(config_path: Path | None = None) -> CheckConfig:
    """Load configuration from *config_path* or ``./pwrules.yml``.

    Falls back to defaults when no file is given and the default file is
    absent.  Problems with an explicitly given file raise
    :class:`ConfigError`; problems with the implicit default file are
    logged and the defaults are used.
    """
    explicit = config_path is not None
    path = config_path if config_path is not None else Path.cwd() / DEFAULT_CONFIG_NAME

    if not path.is_file():
        if explicit:
            msg = f"Config file not found: {path}"
            raise ConfigError(msg)
        return CheckConfig()

    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        if explicit:
            msg = f"Failed to read config file {path}: {exc}"
            raise ConfigError(msg) from exc
        logger.warning("Failed to read %s, using default settings", path)
        return CheckConfig()

    if data is None:
        return CheckConfig()
    if not isinstance(data, dict):
        if explicit:
            msg = f"{path}: config must be a mapping"
            raise ConfigError(msg)
        logger.warning("%s is not a mapping, using default settings", path)
        return CheckConfig()

    try:
        return _config_from_mapping(data, path)
    except ConfigError:
        if explicit:
            raise
        logger.warning("Invalid settings in %s, using default settings", path)
        return CheckConfig()
