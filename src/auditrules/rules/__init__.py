"""Rule model, id validation, and the sample catalog."""

from auditrules.rules.models import (
    REQUIRED_FIELDS,
    SEVERITIES,
    Rule,
    Severity,
    missing_required_fields,
    validate_rule_id,
)

__all__ = [
    "REQUIRED_FIELDS",
    "SEVERITIES",
    "Rule",
    "Severity",
    "missing_required_fields",
    "validate_rule_id",
]
