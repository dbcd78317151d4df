"""Load and merge configuration from .auditrules.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from auditrules.config.schema import (
    LOG_LEVELS,
    OUTPUT_FORMATS,
    AuditRulesConfig,
    LoggingConfig,
    OutputConfig,
    StoreConfig,
)

CONFIG_FILENAME = ".auditrules.toml"

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(project_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = project_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _merge_env_overrides(cfg: AuditRulesConfig) -> None:
    """Apply AUDITRULES_* environment variable overrides."""
    if val := os.environ.get("AUDITRULES_RULES_DIR"):
        cfg.store.rules_dir = val
    if val := os.environ.get("AUDITRULES_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("AUDITRULES_LOG_LEVEL"):
        if val.upper() in LOG_LEVELS:
            cfg.logging.level = val.upper()
    if val := os.environ.get("AUDITRULES_LOCK_LANGUAGE"):
        if val.lower() in _TRUTHY:
            cfg.store.lock_language = True
        elif val.lower() in _FALSY:
            cfg.store.lock_language = False


def _validate(cfg: AuditRulesConfig, source: Path) -> None:
    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(
            f"{source}: output.format must be one of {', '.join(OUTPUT_FORMATS)}"
        )
    if str(cfg.logging.level).upper() not in LOG_LEVELS:
        raise ConfigError(f"{source}: unknown logging.level {cfg.logging.level!r}")
    cfg.logging.level = str(cfg.logging.level).upper()


def load_config(
    project_root: Path,
    config_override: Optional[str] = None,
) -> AuditRulesConfig:
    """Load, validate, and return an AuditRulesConfig."""
    config_path = find_config_file(project_root, config_override)

    if config_path is None:
        cfg = AuditRulesConfig()
    else:
        raw = _parse_toml(config_path)
        cfg = AuditRulesConfig(
            version=raw.get("version", "1.0"),
            store=_build_section(raw, StoreConfig, "store"),
            output=_build_section(raw, OutputConfig, "output"),
            logging=_build_section(raw, LoggingConfig, "logging"),
        )
        _validate(cfg, config_path)

    _merge_env_overrides(cfg)
    return cfg


def resolve_rules_dir(cfg: AuditRulesConfig, project_root: Path) -> Path:
    """Return the absolute rules directory for *cfg*."""
    rules_dir = Path(cfg.store.rules_dir).expanduser()
    if not rules_dir.is_absolute():
        rules_dir = project_root / rules_dir
    return rules_dir
