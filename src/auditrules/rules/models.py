"""Rule data model — one stored audit rule, serialised as a flat record."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping

from auditrules.errors import InvalidIdentifier, MissingRequiredField, RuleValidationError

Severity = Literal["high", "medium", "low", "info"]

SEVERITIES: tuple[str, ...] = ("high", "medium", "low", "info")

REQUIRED_FIELDS: tuple[str, ...] = ("id", "name", "language", "pattern", "severity")

_OPTIONAL_TEXT_FIELDS = ("description", "remediation")

# On-disk key order.
FIELD_ORDER: tuple[str, ...] = (
    "id",
    "language",
    "name",
    "description",
    "severity",
    "tags",
    "pattern",
    "remediation",
    "enabled",
)

RULE_ID_RE = re.compile(r"^[a-zA-Z0-9_.-]+$")


def validate_rule_id(rule_id: object) -> str:
    """Return *rule_id* if it is a safe storage key, else raise InvalidIdentifier.

    ``.`` and ``..`` pass the character class but name directories, so they
    are rejected as well.
    """
    if (
        not isinstance(rule_id, str)
        or RULE_ID_RE.fullmatch(rule_id) is None
        or rule_id in (".", "..")
    ):
        raise InvalidIdentifier(rule_id)
    return rule_id


def is_known_severity(severity: object) -> bool:
    return severity in SEVERITIES


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def missing_required_fields(data: Mapping[str, Any]) -> List[str]:
    """Return the required field names that are absent or empty in *data*."""
    return [name for name in REQUIRED_FIELDS if _is_blank(data.get(name))]


@dataclass
class Rule:
    """A single audit rule definition.

    ``pattern`` is opaque: it is stored and returned verbatim, never compiled
    or evaluated here.
    """

    id: str
    language: str
    name: str
    severity: Severity
    pattern: str
    description: str = ""
    tags: List[str] = field(default_factory=list)
    remediation: str = ""
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Rule":
        """Build a Rule from a mapping, ignoring keys that are not rule fields."""
        if not isinstance(data, Mapping):
            raise RuleValidationError(f"Rule record must be an object, got {type(data).__name__}")
        missing = missing_required_fields(data)
        if missing:
            raise MissingRequiredField(missing)

        wrong = [name for name in REQUIRED_FIELDS if not isinstance(data[name], str)]
        wrong += [
            name for name in _OPTIONAL_TEXT_FIELDS
            if data.get(name) is not None and not isinstance(data[name], str)
        ]
        if wrong:
            raise RuleValidationError(f"Rule fields must be strings: {', '.join(wrong)}")

        tags = data.get("tags")
        if tags is None:
            tags = []
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise RuleValidationError("Rule tags must be a list of strings")

        enabled = data.get("enabled", True)
        if not isinstance(enabled, bool):
            raise RuleValidationError(f"Rule enabled flag must be true or false, got {enabled!r}")

        return cls(
            id=data["id"],
            language=data["language"],
            name=data["name"],
            severity=data["severity"],
            pattern=data["pattern"],
            description=data.get("description") or "",
            tags=list(tags),
            remediation=data.get("remediation") or "",
            enabled=enabled,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the record exactly as it is persisted."""
        return {name: _copy(getattr(self, name)) for name in FIELD_ORDER}


def _copy(value: Any) -> Any:
    return list(value) if isinstance(value, list) else value
