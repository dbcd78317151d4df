"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

OutputFormat = Literal["terminal", "json", "yaml"]

OUTPUT_FORMATS: tuple[str, ...] = ("terminal", "json", "yaml")
LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class StoreConfig:
    rules_dir: str = "rules"  # relative paths resolve against the project root
    lock_language: bool = False  # if True, update() refuses to change a rule's language


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_disabled: bool = True


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class AuditRulesConfig:
    version: str = "1.0"
    store: StoreConfig = field(default_factory=StoreConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
