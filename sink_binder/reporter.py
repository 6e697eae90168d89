"""
Rich rendering of bind plans produced by `sink-binder explain`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from sink_binder.encoders import BoundParameter


@dataclass
class BindPlan:
    """What one record contributed to its statement."""

    position: str
    kind: str
    columns: Sequence[str]
    parameters: Sequence[BoundParameter]


def _schema_label(parameter: BoundParameter) -> str:
    schema = parameter.schema
    label = schema.type.value
    if schema.name:
        label = f"{label} ({schema.name.rsplit('.', 1)[-1]})"
    if schema.optional:
        label = f"{label}?"
    return label


def _value_label(value: object, width: int = 40) -> str:
    text = "NULL" if value is None else repr(value)
    return text if len(text) <= width else text[: width - 1] + "…"


def print_plans(plans: List[BindPlan], title: str, console: Optional[Console] = None) -> None:
    """
    Render bind plans as a rich table, one row per placeholder.
    """
    console = console or Console()

    if not plans:
        console.print("[yellow]No records to explain.[/yellow]")
        return

    table = Table(title=title, box=box.ROUNDED, caption=f"{len(plans)} record(s)")
    table.add_column("Record", style="cyan", no_wrap=True)
    table.add_column("Kind", style="magenta")
    table.add_column("#", justify="right", style="blue")
    table.add_column("Column", style="bold green")
    table.add_column("Schema", style="yellow")
    table.add_column("Value", style="white")

    for plan in plans:
        if not plan.parameters:
            table.add_row(plan.position, plan.kind, "-", "[dim]no placeholders[/dim]", "", "")
            continue
        for offset, parameter in enumerate(plan.parameters):
            column = plan.columns[offset] if offset < len(plan.columns) else "?"
            table.add_row(
                plan.position if offset == 0 else "",
                plan.kind if offset == 0 else "",
                str(parameter.index),
                column,
                _schema_label(parameter),
                _value_label(parameter.value),
            )
        table.add_section()

    console.print(table)


__all__ = ["BindPlan", "print_plans"]
