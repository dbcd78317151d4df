"""Typed failures raised by the rule store.

Callers must be able to tell a caller bug (bad id, duplicate id, missing
fields) apart from missing data, so each condition has its own class.
Not-found is never an exception: reads return ``None`` and ``delete``
returns ``False``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable


class RuleStoreError(Exception):
    """Base class for every rule store failure."""


class InvalidIdentifier(RuleStoreError):
    """The rule id contains characters outside ``[a-zA-Z0-9_.-]``."""

    def __init__(self, rule_id: object) -> None:
        self.rule_id = rule_id
        super().__init__(f"Invalid rule id format: {rule_id!r}")


class AlreadyExists(RuleStoreError):
    """A create targeted an id that already has a record."""

    def __init__(self, rule_id: str) -> None:
        self.rule_id = rule_id
        super().__init__(f"Rule ID '{rule_id}' already exists.")


class StorageUnavailable(RuleStoreError):
    """The backing directory could not be created or accessed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Rules directory '{path}' is unavailable: {reason}")


class RuleValidationError(RuleStoreError):
    """A candidate rule is structurally invalid."""


class MissingRequiredField(RuleValidationError):
    """A candidate rule lacks one or more required fields."""

    def __init__(self, fields: Iterable[str]) -> None:
        self.fields = tuple(fields)
        super().__init__(f"Missing required rule fields: {', '.join(self.fields)}")
