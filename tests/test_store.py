"""Tests for the file-backed rule store: CRUD, toggle, read-side policy."""

import json
import logging
from pathlib import Path

import pytest

from auditrules.errors import (
    AlreadyExists,
    InvalidIdentifier,
    MissingRequiredField,
    RuleValidationError,
    StorageUnavailable,
)
from auditrules.rules.models import Rule
from auditrules.store.file_store import RuleStore

INVALID_IDS = ["../etc", "a b", "id/with/slash", "..", ""]


def _files(directory: Path) -> list:
    return sorted(p.name for p in directory.iterdir())


class TestBootstrap:
    def test_constructor_creates_directory(self, tmp_path: Path):
        target = tmp_path / "deep" / "nested" / "rules"
        RuleStore(target)
        assert target.is_dir()

    def test_idempotent(self, store: RuleStore):
        store.ensure_storage()
        store.ensure_storage()
        assert store.rules_dir.is_dir()

    def test_file_in_the_way_is_unavailable(self, tmp_path: Path):
        blocker = tmp_path / "rules"
        blocker.write_text("not a directory")
        with pytest.raises(StorageUnavailable):
            RuleStore(blocker)

    def test_operation_recreates_deleted_directory(self, store: RuleStore, sql_injection_rule):
        store.rules_dir.rmdir()
        store.create_rule(sql_injection_rule)
        assert (store.rules_dir / "java_001.json").is_file()


class TestCreateAndGet:
    def test_round_trip(self, store: RuleStore, sql_injection_rule):
        created = store.create_rule(sql_injection_rule)
        assert created == sql_injection_rule
        assert store.get_rule("java_001") == sql_injection_rule

    def test_record_layout(self, store: RuleStore, sql_injection_rule):
        store.create_rule(sql_injection_rule)
        path = store.rules_dir / "java_001.json"
        text = path.read_text(encoding="utf-8")
        assert text.endswith("\n")
        assert json.loads(text) == sql_injection_rule.to_dict()
        assert _files(store.rules_dir) == ["java_001.json"]

    def test_duplicate_create_fails_and_keeps_original(self, store: RuleStore, sql_injection_rule):
        store.create_rule(sql_injection_rule)
        clone = Rule.from_dict({**sql_injection_rule.to_dict(), "name": "Impostor"})
        with pytest.raises(AlreadyExists):
            store.create_rule(clone)
        assert store.get_rule("java_001").name == "SQL Injection"

    def test_create_over_corrupt_record_still_conflicts(self, store: RuleStore, write_record, sql_injection_rule):
        write_record("java_001.json", "{broken")
        with pytest.raises(AlreadyExists):
            store.create_rule(sql_injection_rule)

    def test_addressed_id_must_match(self, store: RuleStore, sql_injection_rule):
        with pytest.raises(RuleValidationError):
            store.create_rule(sql_injection_rule, rule_id="java_002")
        assert _files(store.rules_dir) == []

    def test_missing_field_rejected(self, store: RuleStore, sql_injection_rule):
        sql_injection_rule.pattern = ""
        with pytest.raises(MissingRequiredField):
            store.create_rule(sql_injection_rule)
        assert _files(store.rules_dir) == []

    def test_get_missing_returns_none(self, store: RuleStore):
        assert store.get_rule("nope") is None


class TestInvalidIdentifiers:
    @pytest.mark.parametrize("rule_id", INVALID_IDS)
    def test_every_operation_rejects(self, store: RuleStore, rule_id):
        candidate = Rule(id=rule_id, language="java", name="x", severity="low", pattern="x")
        with pytest.raises(InvalidIdentifier):
            store.get_rule(rule_id)
        with pytest.raises(InvalidIdentifier):
            store.create_rule(candidate)
        with pytest.raises(InvalidIdentifier):
            store.update_rule(rule_id, {"name": "x"})
        with pytest.raises(InvalidIdentifier):
            store.delete_rule(rule_id)
        with pytest.raises(InvalidIdentifier):
            store.toggle_rule(rule_id)
        assert _files(store.rules_dir) == []
        assert not (store.rules_dir.parent / "etc.json").exists()

    def test_invalid_id_is_not_not_found(self, store: RuleStore):
        # A caller bug must be distinguishable from missing data.
        assert store.get_rule("missing") is None
        with pytest.raises(InvalidIdentifier):
            store.get_rule("missing/../x")


class TestUpdate:
    def test_missing_rule_returns_none(self, store: RuleStore):
        assert store.update_rule("ghost", {"name": "x"}) is None
        assert _files(store.rules_dir) == []

    def test_partial_update_preserves_other_fields(self, store: RuleStore, sql_injection_rule):
        store.create_rule(sql_injection_rule)
        updated = store.update_rule("java_001", {"severity": "medium", "tags": ["sqli", "db"]})
        expected = Rule.from_dict({
            **sql_injection_rule.to_dict(), "severity": "medium", "tags": ["sqli", "db"],
        })
        assert updated == expected
        assert store.get_rule("java_001") == expected

    def test_id_change_ignored_with_warning(self, store: RuleStore, sql_injection_rule, caplog):
        store.create_rule(sql_injection_rule)
        with caplog.at_level(logging.WARNING, logger="auditrules"):
            updated = store.update_rule("java_001", {"id": "java_999", "name": "Renamed"})
        assert updated.id == "java_001"
        assert updated.name == "Renamed"
        assert store.get_rule("java_999") is None
        assert _files(store.rules_dir) == ["java_001.json"]
        assert "immutable" in caplog.text

    def test_unknown_fields_dropped(self, store: RuleStore, sql_injection_rule):
        store.create_rule(sql_injection_rule)
        store.update_rule("java_001", {"owner": "me"})
        record = json.loads((store.rules_dir / "java_001.json").read_text())
        assert "owner" not in record

    def test_language_mutable_by_default(self, store: RuleStore, sql_injection_rule):
        store.create_rule(sql_injection_rule)
        assert store.update_rule("java_001", {"language": "kotlin"}).language == "kotlin"

    def test_language_lock(self, rules_dir: Path, sql_injection_rule, caplog):
        store = RuleStore(rules_dir, lock_language=True)
        store.create_rule(sql_injection_rule)
        with caplog.at_level(logging.WARNING, logger="auditrules"):
            updated = store.update_rule("java_001", {"language": "kotlin", "name": "Kept"})
        assert updated.language == "java"
        assert updated.name == "Kept"
        assert "language is locked" in caplog.text

    def test_blanking_required_field_rejected(self, store: RuleStore, sql_injection_rule):
        store.create_rule(sql_injection_rule)
        with pytest.raises(MissingRequiredField):
            store.update_rule("java_001", {"name": ""})
        assert store.get_rule("java_001") == sql_injection_rule

    def test_no_temp_files_left(self, store: RuleStore, sql_injection_rule):
        store.create_rule(sql_injection_rule)
        store.update_rule("java_001", {"name": "Again"})
        assert _files(store.rules_dir) == ["java_001.json"]


class TestDelete:
    def test_missing_returns_false(self, store: RuleStore):
        assert store.delete_rule("ghost") is False

    def test_existing_returns_true(self, store: RuleStore, sql_injection_rule):
        store.create_rule(sql_injection_rule)
        assert store.delete_rule("java_001") is True
        assert store.get_rule("java_001") is None
        assert store.delete_rule("java_001") is False


class TestToggle:
    def test_flips_enabled(self, store: RuleStore, sql_injection_rule):
        store.create_rule(sql_injection_rule)
        toggled = store.toggle_rule("java_001")
        assert toggled.enabled is False
        assert store.get_rule("java_001").enabled is False

    def test_involution(self, store: RuleStore, sql_injection_rule):
        store.create_rule(sql_injection_rule)
        store.toggle_rule("java_001")
        assert store.toggle_rule("java_001") == sql_injection_rule

    def test_only_enabled_changes(self, store: RuleStore, sql_injection_rule):
        store.create_rule(sql_injection_rule)
        toggled = store.toggle_rule("java_001")
        before = sql_injection_rule.to_dict()
        after = toggled.to_dict()
        before.pop("enabled")
        after.pop("enabled")
        assert before == after

    def test_missing_returns_none(self, store: RuleStore):
        assert store.toggle_rule("ghost") is None
        assert _files(store.rules_dir) == []


class TestListing:
    def test_empty_store(self, store: RuleStore):
        assert store.list_rules() == []

    def test_sorted_by_id(self, store: RuleStore, rule_data):
        for rule_id in ("b_rule", "a_rule", "c_rule"):
            store.create_rule(Rule.from_dict(rule_data(id=rule_id)))
        assert [r.id for r in store.list_rules()] == ["a_rule", "b_rule", "c_rule"]

    def test_skips_corrupt_and_counts(self, store: RuleStore, rule_data, write_record, caplog):
        store.create_rule(Rule.from_dict(rule_data(id="good")))
        write_record("broken.json", "{not json")
        write_record("array.json", [1, 2, 3])
        write_record("partial.json", {"id": "partial", "name": "No pattern"})
        with caplog.at_level(logging.WARNING, logger="auditrules"):
            rules = store.list_rules()
        assert [r.id for r in rules] == ["good"]
        assert store.stats.unreadable == 3
        assert store.stats.mismatched == 0
        assert caplog.text.count("Skipping unreadable") == 3

    def test_skips_mismatched_id(self, store: RuleStore, rule_data, write_record, caplog):
        write_record("alias.json", rule_data(id="real_id"))
        with caplog.at_level(logging.WARNING, logger="auditrules"):
            assert store.list_rules() == []
        assert store.stats.mismatched == 1
        assert store.stats.total_skipped == 1
        assert "does not match its filename" in caplog.text

    def test_skips_wrongly_typed_record(self, store: RuleStore, rule_data, write_record):
        write_record("typed.json", rule_data(id="typed", enabled="false"))
        assert store.list_rules() == []
        assert store.get_rule("typed") is None
        assert store.toggle_rule("typed") is None
        assert store.stats.unreadable == 3

    def test_unlistable_directory_returns_empty(self, store: RuleStore, monkeypatch, caplog):
        def _deny(self):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(Path, "iterdir", _deny)
        with caplog.at_level(logging.WARNING, logger="auditrules.store.file_store"):
            assert store.list_rules() == []
        records = [r for r in caplog.records if r.name == "auditrules.store.file_store"]
        assert [r.levelno for r in records] == [logging.WARNING]
        assert "Cannot enumerate rules directory" in records[0].getMessage()

    def test_ignores_non_record_files(self, store: RuleStore, rule_data, write_record):
        store.create_rule(Rule.from_dict(rule_data(id="good")))
        write_record("notes.txt", "hello")
        write_record(".good.abc123.tmp", "{")
        (store.rules_dir / "subdir.json").mkdir()
        assert [r.id for r in store.list_rules()] == ["good"]
        assert store.stats.total_skipped == 0


class TestPermissiveGet:
    def test_corrupt_record_is_absent(self, store: RuleStore, write_record):
        write_record("java_001.json", "{oops")
        assert store.get_rule("java_001") is None
        assert store.stats.unreadable == 1

    def test_mismatched_record_is_absent(self, store: RuleStore, rule_data, write_record):
        write_record("java_001.json", rule_data(id="java_002"))
        assert store.get_rule("java_001") is None
        assert store.stats.mismatched == 1

    def test_toggle_of_mismatched_record_does_not_write(self, store: RuleStore, rule_data, write_record):
        path = write_record("java_001.json", rule_data(id="java_002"))
        before = path.read_text()
        assert store.toggle_rule("java_001") is None
        assert path.read_text() == before


class TestConcreteScenario:
    def test_java_001_lifecycle(self, store: RuleStore):
        rule = Rule(
            id="java_001", language="java", name="SQL Injection", pattern="...",
            severity="high", tags=["sqli"], enabled=True,
        )
        store.create_rule(rule)
        assert store.get_rule("java_001") == rule
        assert store.toggle_rule("java_001").enabled is False
        assert store.delete_rule("java_001") is True
        assert store.get_rule("java_001") is None
