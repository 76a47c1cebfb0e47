"""Human-readable migration summaries (plain text or rich tables)."""

import sys

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from nginx2traefik.core.report import (
    LABEL_CLEAN, LABEL_REVIEW, summarize_global, summarize_ingress,
)
from nginx2traefik.pacts.types import AnnotationStatus, GlobalReport, IngressReport

_STATUS_STYLE = {
    AnnotationStatus.CONVERTED: "green",
    AnnotationStatus.WARNED: "yellow",
    AnnotationStatus.SKIPPED: "red",
    AnnotationStatus.IGNORED: "dim",
}


def _label_style(label: str) -> str:
    if label == LABEL_CLEAN:
        return "green"
    if label == LABEL_REVIEW:
        return "yellow"
    return "red"


def _ingress_title(report: IngressReport) -> str:
    return f"{report.namespace}/{report.name}" if report.namespace else report.name


def render_text(report: GlobalReport) -> str:
    """Plain-text summary, one block per Ingress plus a total."""
    lines = []
    for ing in report.ingresses:
        counts = summarize_ingress(ing)
        lines.append(f"Ingress {_ingress_title(ing)}: {counts.label}")
        for entry in ing.entries:
            suffix = f" ({entry.message})" if entry.message else ""
            lines.append(f"  [{entry.status.value}] {entry.name}{suffix}")
        lines.append(f"  converted={counts.converted} warnings={counts.warnings} "
                     f"skipped={counts.skipped} ignored={counts.ignored}")
    total = summarize_global(report)
    lines.append(f"Total: {len(report.ingresses)} ingress(es), converted={total.converted} "
                 f"warnings={total.warnings} skipped={total.skipped} ignored={total.ignored}")
    lines.append(f"Result: {total.label}")
    return "\n".join(lines)


def render_tables(report: GlobalReport, console: Console | None = None) -> None:
    """Print one rich table per Ingress and a summary table."""
    console = console or Console(file=sys.stderr)
    for ing in report.ingresses:
        counts = summarize_ingress(ing)
        table = Table(title=escape(f"Ingress {_ingress_title(ing)}"))
        table.add_column("Annotation", style="cyan")
        table.add_column("Status")
        table.add_column("Message", style="dim")
        for entry in ing.entries:
            style = _STATUS_STYLE[entry.status]
            # messages quote NGINX config such as "entryPoints=[websecure]"
            table.add_row(escape(entry.name), f"[{style}]{entry.status.value}[/{style}]",
                          escape(entry.message))
        console.print(table)
        console.print(f"[bold]Result:[/bold] [{_label_style(counts.label)}]{counts.label}"
                      f"[/{_label_style(counts.label)}]")

    total = summarize_global(report)
    summary = Table(title="Migration summary")
    summary.add_column("Ingresses", justify="right")
    summary.add_column("Converted", justify="right")
    summary.add_column("Warnings", justify="right")
    summary.add_column("Skipped", justify="right")
    summary.add_column("Ignored", justify="right")
    summary.add_column("Result")
    style = _label_style(total.label)
    summary.add_row(
        str(len(report.ingresses)), str(total.converted), str(total.warnings),
        str(total.skipped), str(total.ignored), f"[{style}]{total.label}[/{style}]",
    )
    console.print(summary)
