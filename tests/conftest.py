"""Shared test fixtures — temp rule stores, sample rules, rule files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

from auditrules.rules.models import Rule
from auditrules.store.file_store import RuleStore


@pytest.fixture
def rules_dir(tmp_path: Path) -> Path:
    """Backing directory for a store (not created yet)."""
    return tmp_path / "rules"


@pytest.fixture
def store(rules_dir: Path) -> RuleStore:
    return RuleStore(rules_dir)


@pytest.fixture
def sql_injection_rule() -> Rule:
    """The java_001 rule used throughout the examples."""
    return Rule(
        id="java_001",
        language="java",
        name="SQL Injection",
        description="Detects string-built SQL queries",
        severity="high",
        tags=["sqli"],
        pattern='"SELECT * FROM users WHERE name = \'" + input + "\'"',
        remediation="Use prepared statements",
        enabled=True,
    )


@pytest.fixture
def rule_data() -> Callable[..., Dict[str, Any]]:
    """Factory for raw rule records; keyword args override the defaults."""

    def _make(**overrides: Any) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": "py_001",
            "language": "python",
            "name": "Use of eval",
            "description": "",
            "severity": "medium",
            "tags": ["injection"],
            "pattern": "eval(user_input)",
            "remediation": "",
            "enabled": True,
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def write_record(rules_dir: Path) -> Callable[[str, Any], Path]:
    """Write a raw record straight to disk, bypassing the store."""

    def _write(filename: str, content: Any) -> Path:
        rules_dir.mkdir(parents=True, exist_ok=True)
        path = rules_dir / filename
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_text(json.dumps(content), encoding="utf-8")
        return path

    return _write
