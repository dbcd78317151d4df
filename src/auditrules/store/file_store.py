"""File-backed rule store — one JSON record per rule id in a flat directory.

Read-side policy is permissive: a record that cannot be parsed, or whose
declared ``id`` differs from its filename, is skipped (listings) or treated
as absent (lookups). Every skip is logged at WARNING and counted on
``RuleStore.stats`` so dropped records stay visible to operators.

Write-side policy is strict: bad ids, duplicate ids and missing fields raise
typed errors, and unexpected ``OSError``s propagate unchanged.

There is no cross-operation locking. Each single-record write is atomic:
creates use exclusive open, replacements go through a temp file and
``os.replace``.
"""

from __future__ import annotations

import contextlib
import dataclasses
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Union

from auditrules.errors import (
    AlreadyExists,
    InvalidIdentifier,
    MissingRequiredField,
    RuleValidationError,
    StorageUnavailable,
)
from auditrules.rules.models import (
    FIELD_ORDER,
    Rule,
    missing_required_fields,
    validate_rule_id,
)

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".json"
_TEMP_SUFFIX = ".tmp"


@dataclass
class StoreStats:
    """Counters for records the permissive read path had to drop."""

    unreadable: int = 0  # bad JSON, not an object, missing fields
    mismatched: int = 0  # declared id differs from the storage key

    @property
    def total_skipped(self) -> int:
        return self.unreadable + self.mismatched


@dataclass
class ImportResult:
    """Outcome of a bulk import: how many entries landed, and why others didn't."""

    imported_count: int = 0
    errors: List[str] = field(default_factory=list)


def _serialise(rule: Rule) -> str:
    return json.dumps(rule.to_dict(), indent=2, ensure_ascii=False) + "\n"


def _describe(entry: Mapping[str, Any]) -> str:
    return json.dumps(dict(entry), default=str, ensure_ascii=False)


class RuleStore:
    """Durable, id-addressed storage for Rule records."""

    def __init__(self, rules_dir: Union[str, Path], *, lock_language: bool = False) -> None:
        self._rules_dir = Path(rules_dir)
        self.lock_language = lock_language
        self.stats = StoreStats()
        self.ensure_storage()

    @property
    def rules_dir(self) -> Path:
        return self._rules_dir

    # ---- bootstrap / addressing ----

    def ensure_storage(self) -> None:
        """Create the backing directory (and parents) if it is missing."""
        try:
            self._rules_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable(self._rules_dir, exc.strerror or str(exc)) from exc

    def path_for(self, rule_id: str) -> Path:
        """Return the record path for *rule_id*. Raises InvalidIdentifier."""
        validate_rule_id(rule_id)
        return self._rules_dir / f"{rule_id}{RECORD_SUFFIX}"

    # ---- low-level record I/O ----

    def _read_record(self, path: Path) -> Rule:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return Rule.from_dict(data)

    def _write_new(self, path: Path, rule: Rule) -> None:
        """Create *path* only if it does not exist yet."""
        payload = _serialise(rule)
        try:
            handle = open(path, "x", encoding="utf-8")
        except FileExistsError as exc:
            raise AlreadyExists(rule.id) from exc
        try:
            with handle:
                handle.write(payload)
        except BaseException:
            with contextlib.suppress(OSError):
                path.unlink()
            raise

    def _write_replace(self, path: Path, rule: Rule) -> None:
        """Write *rule* to *path* atomically using tempfile + os.replace."""
        fd, tmp = tempfile.mkstemp(
            dir=self._rules_dir, prefix=f".{path.stem}.", suffix=_TEMP_SUFFIX
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(_serialise(rule))
            os.replace(tmp, path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp)
            raise

    def _skip_unreadable(self, path: Path, exc: BaseException) -> None:
        self.stats.unreadable += 1
        logger.warning("Skipping unreadable rule record %s: %s", path, exc)

    def _skip_mismatched(self, path: Path, declared_id: Any) -> None:
        self.stats.mismatched += 1
        logger.warning(
            "Skipping rule record %s: declared id %r does not match its filename",
            path,
            declared_id,
        )

    # ---- queries ----

    def list_rules(self) -> List[Rule]:
        """Return every valid record, sorted by id. Never fails on read errors."""
        self.ensure_storage()
        try:
            candidates = [
                p for p in self._rules_dir.iterdir()
                if p.suffix == RECORD_SUFFIX and p.is_file()
            ]
        except OSError as exc:
            logger.warning("Cannot enumerate rules directory %s: %s", self._rules_dir, exc)
            return []

        rules: List[Rule] = []
        for path in candidates:
            try:
                validate_rule_id(path.stem)
            except InvalidIdentifier as exc:
                self._skip_unreadable(path, exc)
                continue
            try:
                rule = self._read_record(path)
            except FileNotFoundError:
                continue  # removed between enumeration and read
            except (OSError, ValueError, RuleValidationError) as exc:
                self._skip_unreadable(path, exc)
                continue
            if rule.id != path.stem:
                self._skip_mismatched(path, rule.id)
                continue
            rules.append(rule)

        rules.sort(key=lambda r: r.id)
        return rules

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        """Return the rule stored under *rule_id*, or None.

        Only an invalid id raises; every read problem degrades to None.
        """
        path = self.path_for(rule_id)
        self.ensure_storage()
        try:
            rule = self._read_record(path)
        except FileNotFoundError:
            return None
        except (OSError, ValueError, RuleValidationError) as exc:
            self._skip_unreadable(path, exc)
            return None
        if rule.id != rule_id:
            self._skip_mismatched(path, rule.id)
            return None
        return rule

    # ---- mutations ----

    def create_rule(self, rule: Rule, *, rule_id: Optional[str] = None) -> Rule:
        """Persist a new rule and return it unchanged.

        *rule_id*, when given, is the id the caller addressed; it must equal
        the rule's own id.
        """
        if rule_id is not None:
            validate_rule_id(rule_id)
        path = self.path_for(rule.id)
        if rule_id is not None and rule_id != rule.id:
            raise RuleValidationError(
                f"Rule data ID '{rule.id}' must match the addressed ID '{rule_id}'."
            )
        missing = missing_required_fields(rule.to_dict())
        if missing:
            raise MissingRequiredField(missing)

        self.ensure_storage()
        self._write_new(path, rule)
        logger.info("Created rule %s", rule.id)
        return rule

    def update_rule(self, rule_id: str, changes: Mapping[str, Any]) -> Optional[Rule]:
        """Merge *changes* over the stored rule. Returns None if it does not exist.

        ``id`` is never changed. Keys that are not rule fields are dropped.
        """
        path = self.path_for(rule_id)
        existing = self.get_rule(rule_id)
        if existing is None:
            return None

        updates = dict(changes)
        requested_id = updates.pop("id", None)
        if requested_id is not None and requested_id != rule_id:
            logger.warning(
                "Ignoring attempt to change rule id from %r to %r; ids are immutable",
                rule_id,
                requested_id,
            )

        unknown = sorted(k for k in updates if k not in FIELD_ORDER)
        if unknown:
            logger.warning("Ignoring unknown rule fields for %s: %s", rule_id, ", ".join(unknown))
            for key in unknown:
                del updates[key]

        if (
            self.lock_language
            and "language" in updates
            and updates["language"] != existing.language
        ):
            logger.warning(
                "Ignoring language change for %s (%r -> %r); language is locked",
                rule_id,
                existing.language,
                updates["language"],
            )
            del updates["language"]

        merged = {**existing.to_dict(), **updates, "id": rule_id}
        updated = Rule.from_dict(merged)
        self._write_replace(path, updated)
        logger.info("Updated rule %s (%s)", rule_id, ", ".join(sorted(updates)) or "no changes")
        return updated

    def delete_rule(self, rule_id: str) -> bool:
        """Remove the record. False if there was nothing to remove."""
        path = self.path_for(rule_id)
        self.ensure_storage()
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.info("Deleted rule %s", rule_id)
        return True

    def toggle_rule(self, rule_id: str) -> Optional[Rule]:
        """Flip ``enabled`` and persist. Returns None if the rule does not exist."""
        path = self.path_for(rule_id)
        rule = self.get_rule(rule_id)
        if rule is None:
            return None
        toggled = dataclasses.replace(rule, enabled=not rule.enabled)
        # Always write under the requested id, never the record's own.
        self._write_replace(path, toggled)
        logger.info("Rule %s is now %s", rule_id, "enabled" if toggled.enabled else "disabled")
        return toggled

    def import_rules(
        self,
        candidates: Iterable[Union[Rule, Mapping[str, Any]]],
        *,
        overwrite_existing: bool = False,
    ) -> ImportResult:
        """Create (or overwrite) each candidate independently.

        A bad entry is reported in ``errors`` and skipped; the rest of the
        batch continues. Entries already written stay written if a later
        write raises.
        """
        self.ensure_storage()
        result = ImportResult()

        for candidate in candidates:
            data = candidate.to_dict() if isinstance(candidate, Rule) else candidate
            if not isinstance(data, Mapping):
                result.errors.append(f"Rule entry is not an object: {data!r}")
                continue
            if missing_required_fields(data):
                result.errors.append(
                    "Rule missing required fields (id, name, language, pattern, severity): "
                    f"{_describe(data)}"
                )
                continue
            try:
                path = self.path_for(data["id"])
            except InvalidIdentifier as exc:
                result.errors.append(f"Rule ID '{data['id']}' is invalid: {exc}")
                continue
            try:
                rule = Rule.from_dict(data)
            except RuleValidationError as exc:
                result.errors.append(f"Rule '{data['id']}' has invalid fields: {exc}")
                continue

            if path.exists():
                if not overwrite_existing:
                    result.errors.append(f"Rule ID '{rule.id}' already exists. Skipped.")
                    continue
                self._write_replace(path, rule)
            else:
                try:
                    self._write_new(path, rule)
                except AlreadyExists:
                    if not overwrite_existing:
                        result.errors.append(f"Rule ID '{rule.id}' already exists. Skipped.")
                        continue
                    self._write_replace(path, rule)
            result.imported_count += 1

        logger.info(
            "Imported %d rule(s), %d error(s)", result.imported_count, len(result.errors)
        )
        return result
