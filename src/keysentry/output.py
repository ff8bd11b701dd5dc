"""Rich terminal rendering and JSON serialization of reports.

Human-readable output goes to stderr so stdout stays clean for --json.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from keysentry.core.sanitize import sanitize_for_terminal
from keysentry.risk import RiskLevel

if TYPE_CHECKING:
    from keysentry.checks.breach import BreachChecker
    from keysentry.checks.registry import CheckRegistry
    from keysentry.engine import BatchReport, CheckReport

console = Console(stderr=True)

LEVEL_STYLES: dict[RiskLevel, str] = {
    RiskLevel.CRITICAL: "bold white on red",
    RiskLevel.HIGH: "bold red",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.LOW: "green",
    RiskLevel.INFO: "dim",
}


def _safe(text: str) -> str:
    """Untrusted text: strip control sequences and escape Rich markup."""
    return escape(sanitize_for_terminal(text))


def print_error(message: str) -> None:
    console.print(f"[red]Error:[/red] {_safe(message)}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]Warning:[/yellow] {_safe(message)}")


def level_text(level: RiskLevel) -> str:
    return f"[{LEVEL_STYLES[level]}]{level.value.upper()}[/]"


def render_report(report: CheckReport, verbose: bool = False) -> None:
    """Print a single report panel."""
    local = report.local
    ident = local.identification
    lines = [
        f"Risk: {level_text(report.level)}",
        f"Summary: {_safe(report.verdict.summary)}",
        f"Provider: {ident.provider.value} ({ident.confidence.value}) - {ident.description}",
        f"Entropy: {local.entropy.shannon_entropy} bits/char ({local.entropy.encoding.value})",
        f"Fingerprint: {report.verdict.fingerprint}",
    ]
    for warning in local.warnings:
        lines.append(f"[yellow]![/yellow] {warning}")

    if verbose or any(s.found or s.errored for s in report.signals):
        for signal in report.signals:
            status = "[red]found[/red]" if signal.found else "clean"
            if signal.errored:
                status = "[yellow]errored[/yellow]"
            lines.append(f"  {signal.name}: {status} - {_safe(signal.details)}")

    if report.errored_checks:
        lines.append(f"[yellow]Checks that errored: {', '.join(report.errored_checks)}[/yellow]")

    title = "keysentry check"
    if report.name:
        title = f"keysentry check: {_safe(report.name)}"
    console.print(Panel("\n".join(lines), title=title))


def render_batch(batch: BatchReport) -> None:
    """Print a summary table for a batch run."""
    table = Table(title="keysentry batch")
    table.add_column("Name")
    table.add_column("Risk")
    table.add_column("Provider")
    table.add_column("Summary")
    for report in batch.reports:
        table.add_row(
            _safe(report.name or "-"),
            level_text(report.level),
            report.local.identification.provider.value,
            _safe(report.verdict.summary),
        )
    console.print(table)

    for skipped in batch.skipped:
        where = f"line {skipped.line_number}" if skipped.line_number else (skipped.name or "?")
        print_warning(f"Skipped entry ({where}): {skipped}")

    console.print(
        f"Batch complete: {len(batch.reports)} checked, "
        f"{batch.count(RiskLevel.CRITICAL)} critical, {batch.count(RiskLevel.HIGH)} high"
    )


def render_privacy(registry: CheckRegistry, breach_checker: BreachChecker) -> None:
    """Show what each check sends and where."""
    table = Table(title="Data sent by each check")
    table.add_column("Check")
    table.add_column("Network")
    table.add_column("Credentials")
    table.add_column("Data sent")
    table.add_row(breach_checker.id, "yes", "-", breach_checker.privacy_summary)
    for plugin in registry.all():
        table.add_row(
            plugin.id,
            "yes" if plugin.requires_network else "no",
            ", ".join(plugin.required_credential_keys) or "-",
            plugin.privacy_summary,
        )
    console.print(table)


def format_json(report: CheckReport | BatchReport) -> str:
    """Serialize a report (or every report of a batch) as JSON."""
    if hasattr(report, "reports"):
        payload = {
            "results": [r.to_dict() for r in report.reports],
            "skipped": [
                {"line": s.line_number, "name": s.name, "error": str(s)} for s in report.skipped
            ],
        }
    else:
        payload = report.to_dict()
    return json.dumps(payload, indent=2)
