"""auditrules — durable catalog of security-audit rule definitions."""

from auditrules.errors import (
    AlreadyExists,
    InvalidIdentifier,
    MissingRequiredField,
    RuleStoreError,
    RuleValidationError,
    StorageUnavailable,
)
from auditrules.rules.models import Rule
from auditrules.store.file_store import ImportResult, RuleStore

__version__ = "0.1.0"

__all__ = [
    "AlreadyExists",
    "ImportResult",
    "InvalidIdentifier",
    "MissingRequiredField",
    "Rule",
    "RuleStore",
    "RuleStoreError",
    "RuleValidationError",
    "StorageUnavailable",
    "__version__",
]
