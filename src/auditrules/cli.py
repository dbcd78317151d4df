"""auditrules CLI — Typer application over the rule store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler

from auditrules import __version__

app = typer.Typer(
    name="auditrules",
    help="Manage a catalog of security-audit rule definitions.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)

_BOOL_VALUES = {
    "true": True, "1": True, "yes": True, "on": True,
    "false": False, "0": False, "no": False, "off": False,
}


@dataclass
class _Options:
    config: Optional[str] = None
    rules_dir: Optional[str] = None
    verbose: bool = False
    debug: bool = False


def _fail(message: str, code: int) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {message}", highlight=False)
    raise typer.Exit(code=code)


def _configure_logging(level: str) -> None:
    """Route the package logger through Rich on stderr."""
    logger = logging.getLogger("auditrules")
    logger.handlers[:] = [
        RichHandler(console=console, show_path=False, show_time=False, markup=False)
    ]
    logger.setLevel(level)


def _open_store(ctx: typer.Context):
    """Load config, set up logging, and return (config, store). Exits 2 on failure."""
    from auditrules.config.loader import ConfigError, load_config, resolve_rules_dir
    from auditrules.errors import StorageUnavailable
    from auditrules.store.file_store import RuleStore

    opts: _Options = ctx.obj or _Options()
    project_root = Path.cwd()

    try:
        cfg = load_config(project_root, opts.config)
    except ConfigError as exc:
        _fail(f"Config error: {exc}", 2)

    if opts.rules_dir:
        cfg.store.rules_dir = opts.rules_dir
    level = "DEBUG" if opts.debug else "INFO" if opts.verbose else cfg.logging.level
    _configure_logging(level)

    rules_dir = resolve_rules_dir(cfg, project_root)
    try:
        store = RuleStore(rules_dir, lock_language=cfg.store.lock_language)
    except StorageUnavailable as exc:
        _fail(str(exc), 2)
    return cfg, store


def _output_format(cfg, override: Optional[str]) -> str:
    fmt = override or cfg.output.format
    if fmt not in ("terminal", "json", "yaml"):
        _fail(f"Invalid format: {fmt}", 2)
    return fmt


def _emit_rules(rules, fmt: str) -> None:
    from auditrules.output import json_report, terminal
    from auditrules.store.importer import dump_rules

    if fmt == "json":
        print(json_report.render_rules(rules))
    elif fmt == "yaml":
        print(dump_rules(rules, "yaml"), end="")
    else:
        terminal.render_rules(rules)


def _emit_rule(rule, fmt: str) -> None:
    from auditrules.output import json_report, terminal

    if fmt == "json":
        print(json_report.render_rule(rule))
    elif fmt == "yaml":
        print(yaml.safe_dump(rule.to_dict(), sort_keys=False, allow_unicode=True), end="")
    else:
        terminal.render_rule(rule)


def _emit_import(result, fmt: str) -> None:
    from auditrules.output import json_report, terminal

    if fmt == "json":
        print(json_report.render_import(result))
    elif fmt == "yaml":
        print(yaml.safe_dump(json_report.import_to_dict(result), sort_keys=False), end="")
    else:
        terminal.render_import(result, console=console)


def _load_entries(path: str) -> List[Any]:
    from auditrules.store.importer import RuleFileError, load_rule_file

    try:
        return load_rule_file(Path(path))
    except RuleFileError as exc:
        _fail(str(exc), 2)


def _parse_assignment(raw: str) -> tuple[str, Any]:
    """Parse one ``--set FIELD=VALUE`` into a typed (field, value) pair."""
    from auditrules.rules.models import FIELD_ORDER

    if "=" not in raw:
        _fail(f"Expected FIELD=VALUE, got '{raw}'", 2)
    key, value = raw.split("=", 1)
    key = key.strip()
    if key not in FIELD_ORDER:
        _fail(f"Unknown rule field '{key}'", 2)
    if key == "enabled":
        if value.strip().lower() not in _BOOL_VALUES:
            _fail(f"Invalid boolean for enabled: '{value}'", 2)
        return key, _BOOL_VALUES[value.strip().lower()]
    if key == "tags":
        return key, [t.strip() for t in value.split(",") if t.strip()]
    return key, value


# ── list / show ───────────────────────────────────────────────────────────────


@app.command("list")
def list_rules(
    ctx: typer.Context,
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Only rules for this language"),
    enabled: Optional[bool] = typer.Option(None, "--enabled/--disabled", help="Filter by status"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json | yaml"),
) -> None:
    """List every stored rule."""
    cfg, store = _open_store(ctx)
    fmt = _output_format(cfg, format)

    rules = store.list_rules()
    if language:
        rules = [r for r in rules if r.language == language]
    if enabled is not None:
        rules = [r for r in rules if r.enabled is enabled]
    elif not cfg.output.show_disabled:
        rules = [r for r in rules if r.enabled]

    _emit_rules(rules, fmt)
    if store.stats.total_skipped:
        console.print(
            f"[yellow]⚠[/yellow]  {store.stats.total_skipped} unreadable rule record(s) skipped"
        )


@app.command()
def show(
    ctx: typer.Context,
    rule_id: str = typer.Argument(..., metavar="ID", help="Rule id"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json | yaml"),
) -> None:
    """Show one rule."""
    from auditrules.errors import InvalidIdentifier

    cfg, store = _open_store(ctx)
    fmt = _output_format(cfg, format)
    try:
        rule = store.get_rule(rule_id)
    except InvalidIdentifier as exc:
        _fail(str(exc), 2)
    if rule is None:
        _fail(f"Rule with ID '{rule_id}' not found.", 1)
    _emit_rule(rule, fmt)


# ── create / update ───────────────────────────────────────────────────────────


@app.command()
def create(
    ctx: typer.Context,
    file: str = typer.Argument(..., help="JSON or YAML file holding one rule"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json | yaml"),
) -> None:
    """Create a rule from a file."""
    from auditrules.errors import AlreadyExists, RuleStoreError
    from auditrules.rules.models import Rule

    cfg, store = _open_store(ctx)
    fmt = _output_format(cfg, format)

    entries = _load_entries(file)
    if len(entries) != 1:
        _fail(f"{file} must contain exactly one rule (found {len(entries)})", 2)

    try:
        rule = store.create_rule(Rule.from_dict(entries[0]))
    except AlreadyExists as exc:
        _fail(str(exc), 1)
    except RuleStoreError as exc:
        _fail(str(exc), 2)

    if fmt == "terminal":
        console.print(f"[green]✓[/green] Created rule {rule.id}")
    else:
        _emit_rule(rule, fmt)


@app.command()
def update(
    ctx: typer.Context,
    rule_id: str = typer.Argument(..., metavar="ID", help="Rule id"),
    assignments: Optional[List[str]] = typer.Option(None, "--set", "-s", help="FIELD=VALUE (repeatable)"),
    file: Optional[str] = typer.Option(None, "--file", help="JSON or YAML file with the fields to change"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json | yaml"),
) -> None:
    """Change some fields of a rule; the rest are kept."""
    from auditrules.errors import RuleStoreError

    cfg, store = _open_store(ctx)
    fmt = _output_format(cfg, format)

    changes: Dict[str, Any] = {}
    if file:
        entries = _load_entries(file)
        if len(entries) != 1 or not isinstance(entries[0], dict):
            _fail(f"{file} must contain exactly one object of field changes", 2)
        changes.update(entries[0])
    for raw in assignments or []:
        key, value = _parse_assignment(raw)
        changes[key] = value

    if not changes:
        _fail("Nothing to update: pass --set FIELD=VALUE or --file", 2)
    body_id = changes.pop("id", None)
    if body_id is not None and body_id != rule_id:
        _fail(f"Rule ID in changes ('{body_id}') cannot differ from '{rule_id}'.", 2)

    try:
        rule = store.update_rule(rule_id, changes)
    except RuleStoreError as exc:
        _fail(str(exc), 2)
    if rule is None:
        _fail(f"Rule with ID '{rule_id}' not found for update.", 1)

    if fmt == "terminal":
        console.print(f"[green]✓[/green] Updated rule {rule.id}")
    else:
        _emit_rule(rule, fmt)


# ── delete / toggle ───────────────────────────────────────────────────────────


@app.command()
def delete(
    ctx: typer.Context,
    rule_id: str = typer.Argument(..., metavar="ID", help="Rule id"),
) -> None:
    """Delete a rule permanently."""
    from auditrules.errors import InvalidIdentifier

    _cfg, store = _open_store(ctx)
    try:
        removed = store.delete_rule(rule_id)
    except InvalidIdentifier as exc:
        _fail(str(exc), 2)
    if not removed:
        _fail(f"Rule with ID '{rule_id}' not found for deletion.", 1)
    console.print(f"[green]✓[/green] Deleted rule {rule_id}")


@app.command()
def toggle(
    ctx: typer.Context,
    rule_id: str = typer.Argument(..., metavar="ID", help="Rule id"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json | yaml"),
) -> None:
    """Enable a disabled rule, or disable an enabled one."""
    from auditrules.errors import InvalidIdentifier

    cfg, store = _open_store(ctx)
    fmt = _output_format(cfg, format)
    try:
        rule = store.toggle_rule(rule_id)
    except InvalidIdentifier as exc:
        _fail(str(exc), 2)
    if rule is None:
        _fail(f"Rule with ID '{rule_id}' not found for status toggle.", 1)

    if fmt == "terminal":
        state = "[green]enabled[/green]" if rule.enabled else "[dim]disabled[/dim]"
        console.print(f"[green]✓[/green] Rule {rule.id} is now {state}")
    else:
        _emit_rule(rule, fmt)


# ── import / export / seed ────────────────────────────────────────────────────


@app.command("import")
def import_(
    ctx: typer.Context,
    file: str = typer.Argument(..., help="JSON or YAML file holding a list of rules"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace rules that already exist"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json | yaml"),
) -> None:
    """Bulk-import rules. Bad entries are reported and skipped."""
    cfg, store = _open_store(ctx)
    fmt = _output_format(cfg, format)

    entries = _load_entries(file)
    result = store.import_rules(entries, overwrite_existing=overwrite)
    _emit_import(result, fmt)
    if result.errors:
        raise typer.Exit(code=1)


@app.command()
def export(
    ctx: typer.Context,
    format: str = typer.Option("json", "--format", "-f", help="Export format: json | yaml"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
) -> None:
    """Export every rule in a format `import` accepts."""
    from auditrules.store.importer import EXPORT_FORMATS, dump_rules

    if format not in EXPORT_FORMATS:
        _fail(f"Invalid export format: {format}", 2)
    _cfg, store = _open_store(ctx)

    rules = store.list_rules()
    text = dump_rules(rules, format)
    if output:
        Path(output).write_text(text, encoding="utf-8")
        console.print(f"[green]✓[/green] Exported {len(rules)} rule(s) to {output}")
    else:
        print(text, end="")


@app.command()
def seed(
    ctx: typer.Context,
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace sample rules that already exist"),
) -> None:
    """Add the sample rule catalog to the store."""
    from auditrules.output import terminal
    from auditrules.rules.samples import SAMPLE_RULES

    _cfg, store = _open_store(ctx)
    result = store.import_rules(SAMPLE_RULES, overwrite_existing=overwrite)
    terminal.render_import(result, console=console)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .auditrules.toml in the current directory."""
    from auditrules.config.defaults import DEFAULT_TOML
    from auditrules.config.loader import CONFIG_FILENAME

    config_path = Path.cwd() / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version / global options ──────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"auditrules {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .auditrules.toml"),
    rules_dir: Optional[str] = typer.Option(None, "--rules-dir", "-d", help="Rules directory (overrides config)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug logging"),
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """auditrules — manage security-audit rule definitions."""
    ctx.obj = _Options(config=config, rules_dir=rules_dir, verbose=verbose, debug=debug)
