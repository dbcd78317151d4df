"""Rule files — read import batches from JSON / YAML, write exports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List

import yaml

from auditrules.rules.models import Rule

RULE_FILE_SUFFIXES = (".json", ".yaml", ".yml")
EXPORT_FORMATS = ("json", "yaml")


class RuleFileError(Exception):
    """Raised when a rule file cannot be read or has the wrong shape."""


def load_rule_file(path: Path) -> List[Any]:
    """Return the rule entries held in *path*.

    The file may contain a single rule object or a list of them. Entries are
    returned as parsed; field validation happens in the store.
    """
    if path.suffix not in RULE_FILE_SUFFIXES:
        raise RuleFileError(
            f"Unsupported rule file type '{path.suffix}' (expected .json, .yaml or .yml)"
        )
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuleFileError(f"Cannot read {path}: {exc}") from exc

    try:
        if path.suffix == ".json":
            data = json.loads(text) if text.strip() else None
        else:
            data = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise RuleFileError(f"Failed to parse {path}: {exc}") from exc

    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return data
    raise RuleFileError(f"{path} must contain a rule object or a list of rules")


def dump_rules(rules: Iterable[Rule], fmt: str = "json") -> str:
    """Render *rules* as a JSON or YAML list that ``load_rule_file`` accepts."""
    records = [rule.to_dict() for rule in rules]
    if fmt == "json":
        return json.dumps(records, indent=2, ensure_ascii=False) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(records, sort_keys=False, allow_unicode=True)
    raise ValueError(f"Unknown export format: {fmt}")
