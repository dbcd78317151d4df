"""Configuration loading, schema, and defaults."""

from auditrules.config.loader import ConfigError, load_config, resolve_rules_dir
from auditrules.config.schema import AuditRulesConfig, OutputFormat

__all__ = [
    "AuditRulesConfig",
    "ConfigError",
    "OutputFormat",
    "load_config",
    "resolve_rules_dir",
]
