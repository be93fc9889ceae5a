"""Terminal report of one estimate using rich."""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from wifiverify.calculator import Estimate
from wifiverify.trust import Branch

_BRANCH_STYLE = {
    Branch.VERIFIED_SINGLETON: "green",
    Branch.UNVERIFIED_SINGLETON: "red",
    Branch.DUAL_VERIFIED: "green",
    Branch.DUAL_UNVERIFIED: "red",
    Branch.MULTI: "bold green",
}


def _classes_table(estimate: Estimate) -> Table:
    table = Table(title="classes", title_style="bold", expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("size", justify="right")
    table.add_column("sources", style="cyan")
    for idx, cls in enumerate(estimate.classes):
        sources = ", ".join(fix.source_id or "?" for fix in cls[:4])
        if len(cls) > 4:
            sources += f", +{len(cls) - 4}"
        style = "bold" if cls is estimate.chosen else ""
        table.add_row(str(idx), str(len(cls)), sources, style=style)
    return table


def _weights_table(estimate: Estimate) -> Table:
    table = Table(title="weights", title_style="bold", expand=False)
    table.add_column("source", style="cyan")
    table.add_column("signal", justify="right")
    table.add_column("accuracy", justify="right")
    table.add_column("weight", justify="right")
    for item in estimate.weights:
        table.add_row(
            item.fix.source_id or "?",
            str(item.fix.signal_level),
            f"{item.fix.accuracy:.1f}",
            f"{item.weight:.3f}",
        )
    return table


def _result_text(estimate: Estimate) -> Text:
    text = Text()
    if estimate.branch is not None:
        text.append(estimate.branch.value, _BRANCH_STYLE[estimate.branch])
        text.append("  ")
    fix = estimate.fix
    if fix is None:
        text.append("no result", "dim")
    else:
        text.append(f"{fix.latitude:.6f}, {fix.longitude:.6f}", "bold white")
        text.append(f"  ±{fix.accuracy:.1f} m", "dim")
        if fix.altitude is not None:
            text.append(f"  alt {fix.altitude:.1f} m", "dim")
    if estimate.verified:
        text.append(f"\nverified {len(estimate.verified)} fixes", "green")
    if estimate.verify_error is not None:
        text.append(f"\nverification not stored: {estimate.verify_error}", "yellow")
    return text


def render(estimate: Estimate) -> Panel:
    parts = [_result_text(estimate)]
    if estimate.classes:
        parts.append(_classes_table(estimate))
    if estimate.weights:
        parts.append(_weights_table(estimate))
    return Panel(Group(*parts), title="wifiverify", border_style="bold")


def print_report(estimate: Estimate, console: Console | None = None) -> None:
    (console or Console()).print(render(estimate))
