"""JSON reporter for scripts and pipelines."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable

from auditrules.rules.models import Rule
from auditrules.store.file_store import ImportResult


def import_to_dict(result: ImportResult) -> Dict[str, Any]:
    """Convert an ImportResult to a JSON-serialisable dict."""
    return {
        "imported_count": result.imported_count,
        "error_count": len(result.errors),
        "errors": list(result.errors),
    }


def render_rules(rules: Iterable[Rule]) -> str:
    return json.dumps([r.to_dict() for r in rules], indent=2, ensure_ascii=False)


def render_rule(rule: Rule) -> str:
    return json.dumps(rule.to_dict(), indent=2, ensure_ascii=False)


def render_import(result: ImportResult) -> str:
    """Return formatted JSON string."""
    return json.dumps(import_to_dict(result), indent=2, ensure_ascii=False)
