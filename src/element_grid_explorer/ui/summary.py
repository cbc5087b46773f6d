from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..model.columns import ColumnRegistry
from ..model.records import Record


def rows_as_text(rows: Sequence[Record], registry: ColumnRegistry) -> list[str]:
    """Tab-separated lines, header first, for scripting."""

    labels = registry.displayed_columns()
    lines = ["\t".join(labels)]
    for record in rows:
        lines.append(
            "\t".join(
                registry.cell_text(record, registry.field_of(label)) for label in labels
            )
        )
    return lines


def render_table(
    console: Console,
    rows: Sequence[Record],
    registry: ColumnRegistry,
    *,
    query: str = "",
    total: int | None = None,
) -> None:
    title = Text("Elements", style="bold")
    console.print(title)

    header = f"rows={len(rows)}"
    if total is not None:
        header += f"/{total}"
    if query:
        header += f" query={query!r}"
    header += f" column_width={registry.column_width()}"
    console.print(header, style="dim")

    table = Table(show_header=True, header_style="bold", box=None)
    for label in registry.displayed_columns():
        numeric = registry.spec_for_label(label).numeric
        table.add_column(
            label,
            style="cyan" if registry.field_of(label) == "position" else "white",
            justify="right" if numeric else "left",
            no_wrap=True,
        )
    for record in rows:
        table.add_row(
            *(
                registry.cell_text(record, registry.field_of(label))
                for label in registry.displayed_columns()
            )
        )
    console.print(table)
