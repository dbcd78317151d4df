"""Rule persistence — file store and rule file import/export."""

from auditrules.store.file_store import ImportResult, RuleStore, StoreStats
from auditrules.store.importer import RuleFileError, dump_rules, load_rule_file

__all__ = [
    "ImportResult",
    "RuleFileError",
    "RuleStore",
    "StoreStats",
    "dump_rules",
    "load_rule_file",
]
