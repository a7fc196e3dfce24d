"""Output generation: clause statistics and rich terminal summary."""

from .models import Finding

_RISK_ORDER = {"high": 0, "medium": 1, "low": 2}
_SEVERITY_ORDER = {"critical": 0, "warning": 1, "info": 2}


def rank_findings(findings: list[Finding]) -> list[Finding]:
    """Highest risk first, then most severe violation, then document order."""
    def key(f: Finding):
        worst = min((_SEVERITY_ORDER.get(v.severity, 9) for v in f.playbook_violations), default=9)
        return _RISK_ORDER.get(f.risk_level, 9), worst, f.clause_number
    return sorted(findings, key=key)


def summarize_findings(findings: list[Finding]) -> dict:
    by_risk = {}
    by_type = {}
    by_severity = {}
    for f in findings:
        by_risk[f.risk_level] = by_risk.get(f.risk_level, 0) + 1
        by_type[f.clause_type] = by_type.get(f.clause_type, 0) + 1
        for v in f.playbook_violations:
            by_severity[v.severity] = by_severity.get(v.severity, 0) + 1

    return {
        "total_clauses": len(findings),
        "risk_breakdown": by_risk,
        "clause_types": by_type,
        "violation_breakdown": by_severity,
        "high_risk_count": by_risk.get("high", 0),
        "redlines_suggested": sum(1 for f in findings if f.redline_suggestion),
        "top_risks": [
            {"clause_number": f.clause_number, "clause_type": f.clause_type,
             "risk": f.risk_level, "summary": f.explanation[:200]}
            for f in rank_findings(findings)[:10]
        ],
    }


def print_rich_summary(summary: dict, findings: list[Finding], metadata: dict) -> None:
    from rich import box
    from rich.console import Console
    from rich.panel import Panel
    from rich.table import Table

    console = Console()
    console.print()
    risk_bd = summary.get("risk_breakdown", {})
    sev_bd = summary.get("violation_breakdown", {})
    summary_text = (
        f"[bold]Clauses Analyzed:[/bold] {summary['total_clauses']}\n"
        f"[bold red]High Risk:[/bold red] {risk_bd.get('high', 0)}  "
        f"[bold yellow]Medium:[/bold yellow] {risk_bd.get('medium', 0)}  "
        f"[bold green]Low:[/bold green] {risk_bd.get('low', 0)}\n"
        f"[bold]Violations:[/bold] "
        f"[bold red]{sev_bd.get('critical', 0)} critical[/bold red]  "
        f"[bold yellow]{sev_bd.get('warning', 0)} warning[/bold yellow]  "
        f"{sev_bd.get('info', 0)} info\n"
        f"[bold]Chunks:[/bold] {metadata.get('chunks', 'N/A')}  "
        f"[bold]Model:[/bold] {metadata.get('llm_model', 'N/A')}  "
        f"[bold]Time:[/bold] {metadata.get('elapsed_seconds', 'N/A')}s"
    )
    console.print(Panel(summary_text, title="Contract Review Summary", border_style="blue", expand=False))

    table = Table(title="Top Risk Clauses", box=box.ROUNDED, show_lines=True)
    table.add_column("#", style="bold", width=4)
    table.add_column("Type", width=24)
    table.add_column("Risk", width=8)
    table.add_column("Violations", width=10)
    table.add_column("Explanation", width=60)
    risk_style = {"high": "bold red", "medium": "bold yellow", "low": "bold green"}
    for f in rank_findings(findings)[:10]:
        if f.risk_level == "low" and not f.playbook_violations:
            continue
        table.add_row(
            str(f.clause_number),
            f.clause_type,
            f"[{risk_style.get(f.risk_level, '')}]{f.risk_level.title()}[/]",
            str(len(f.playbook_violations)),
            f.explanation[:80] + "..." if len(f.explanation) > 80 else f.explanation,
        )
    console.print(table)
    console.print()
