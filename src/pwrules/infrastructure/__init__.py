"""Infrastructure domain: quirks file loading and tool configuration."""

from pwrules.infrastructure.config import (
    DEFAULT_CONFIG_NAME,
    CheckConfig,
    ConfigError,
    load_config,
)
from pwrules.infrastructure.loader import (
    DEFAULT_PROPERTY_NAME,
    RulesFileError,
    load_rules_map,
)

__all__ = [
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_PROPERTY_NAME",
    "CheckConfig",
    "ConfigError",
    "RulesFileError",
    "load_config",
    "load_rules_map",
]
