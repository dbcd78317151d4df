"""Starter .auditrules.toml template."""

DEFAULT_TOML = """\
# auditrules configuration
version = "1.0"

[store]
rules_dir = "rules"       # one <id>.json record per rule; relative to the project root
lock_language = false     # true = `update` never changes a rule's language

[output]
format = "terminal"       # terminal | json | yaml
show_disabled = true

[logging]
level = "WARNING"         # DEBUG | INFO | WARNING | ERROR
"""
