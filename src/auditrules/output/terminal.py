"""Rich terminal reporter — rule tables, detail panels, severity pills."""

from __future__ import annotations

from typing import Iterable, Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from auditrules.rules.models import Rule, is_known_severity
from auditrules.store.file_store import ImportResult

_SEVERITY_STYLE = {
    "high": "bold white on red",
    "medium": "bold black on yellow",
    "low": "bold black on bright_cyan",
    "info": "bold white on blue",
}

_SEVERITY_ICON = {
    "high": "🔴",
    "medium": "🟡",
    "low": "🔵",
    "info": "⚪",
}


def _severity_pill(severity: str) -> Text:
    if not is_known_severity(severity):
        return Text(f" ? {str(severity).upper()} ", style="bold magenta")
    style = _SEVERITY_STYLE[severity]
    icon = _SEVERITY_ICON[severity]
    return Text(f" {icon} {severity.upper()} ", style=style)


def _status(enabled: bool) -> Text:
    if enabled:
        return Text("enabled", style="green")
    return Text("disabled", style="dim")


def render_rules(
    rules: Iterable[Rule],
    *,
    show_disabled: bool = True,
    console: Optional[Console] = None,
) -> None:
    """Print a table of rules."""
    console = console or Console()
    shown = [r for r in rules if show_disabled or r.enabled]

    if not shown:
        console.print("[dim]No rules found.[/dim]")
        return

    table = Table(title="Audit Rules", title_style="bold", border_style="dim")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Language", style="magenta")
    table.add_column("Name", min_width=20)
    table.add_column("Severity", justify="center", width=12)
    table.add_column("Tags", style="dim")
    table.add_column("Status", justify="center")

    for rule in shown:
        table.add_row(
            rule.id,
            rule.language,
            rule.name,
            _severity_pill(rule.severity),
            ", ".join(rule.tags),
            _status(rule.enabled),
        )

    console.print(table)
    console.print(f"[dim]{len(shown)} rule(s)[/dim]")


def render_rule(rule: Rule, *, console: Optional[Console] = None) -> None:
    """Print one rule with its pattern and remediation."""
    console = console or Console()

    header = Text.assemble(
        (rule.name, "bold"), "  ", _severity_pill(rule.severity), "  ", _status(rule.enabled)
    )
    meta = Text.assemble(
        ("language: ", "dim"), rule.language,
        ("   tags: ", "dim"), ", ".join(rule.tags) or "-",
    )
    parts = [header, meta]
    if rule.description:
        parts.extend([Text(), Text(rule.description)])
    parts.extend([Text(), Text("Pattern", style="bold")])
    parts.append(Syntax(rule.pattern, rule.language or "text", word_wrap=True))
    if rule.remediation:
        parts.extend([Text(), Text("Remediation", style="bold"), Text(rule.remediation)])

    console.print(Panel(Group(*parts), title=f"[cyan]{rule.id}[/cyan]", border_style="dim"))


def render_import(result: ImportResult, *, console: Optional[Console] = None) -> None:
    """Print the outcome of a bulk import."""
    console = console or Console()
    console.print(f"[green]✓[/green] Imported {result.imported_count} rule(s)")
    if result.errors:
        console.print(f"[yellow]⚠[/yellow]  {len(result.errors)} entries not imported:")
        for error in result.errors:
            console.print(f"  - {error}", markup=False, highlight=False)
