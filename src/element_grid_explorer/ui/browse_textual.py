from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from ..config import ExplorerConfig
from ..engine.edit import EditorCollaborator, EditorResult, EditPrompt
from ..engine.errors import ErrorLevel, InputStreamError
from ..model.records import Record, format_number


def editor_initial_text(prompt: EditPrompt) -> str:
    value = prompt.current_value
    if isinstance(value, str):
        return value
    return format_number(value)


def editor_title(prompt: EditPrompt) -> str:
    return f"Edit {prompt.column} of #{prompt.record.position} ({prompt.kind})"


def run_browse(records: Sequence[Record], *, config: ExplorerConfig) -> None:
    """Open the fullscreen browse UI. Textual is imported lazily."""

    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.containers import Vertical
    from textual.screen import ModalScreen
    from textual.widgets import DataTable, Footer, Header, Input, Label, Static

    from ..engine.pipeline import FilteredView
    from ..engine.scheduler import AsyncioScheduler
    from ..engine.session import ExplorerSession
    from .reporting import StatusReporter

    class _InputDialog(ModalScreen[str | None]):
        BINDINGS = [
            Binding("escape", "cancel", "Cancel"),
            Binding("ctrl+j", "submit", show=False),
            Binding("ctrl+m", "submit", show=False),
        ]
        CSS = """
        _InputDialog {
            align: center middle;
        }
        _InputDialog > Vertical {
            width: 70;
            padding: 1 2;
            border: heavy $accent;
            background: $surface;
        }
        """

        def __init__(self, *, title: str, value: str, hint: str | None = None) -> None:
            super().__init__()
            self._title = title
            self._value = value
            self._hint = hint

        def compose(self) -> ComposeResult:
            children: list[Any] = [Label(self._title), Input(value=self._value, id="value")]
            if self._hint:
                children.append(Static(self._hint, classes="dim"))
            yield Vertical(*children)

        def on_mount(self) -> None:
            field = self.query_one(Input)
            field.focus()
            # Make edits overwrite the default value without requiring manual delete.
            field.select_all()

        def action_cancel(self) -> None:
            self.dismiss(None)

        def action_submit(self) -> None:
            self.dismiss(self.query_one(Input).value)

        def on_input_submitted(self, event: Input.Submitted) -> None:
            # Empty text is a value, not a cancel; only Escape means "no change".
            event.stop()
            self.dismiss(event.value)

    class _DialogEditor(EditorCollaborator):
        def __init__(self, app: App[None]) -> None:
            self._app = app

        def present(self, prompt: EditPrompt, resolve: Callable[[EditorResult], None]) -> None:
            self._app.push_screen(
                _InputDialog(
                    title=editor_title(prompt),
                    value=editor_initial_text(prompt),
                    hint="Enter=save  Esc=cancel",
                ),
                resolve,
            )

    class _BrowseApp(App[None]):
        BINDINGS = [
            Binding("e", "edit_cell", "Edit"),
            Binding("slash", "focus_filter", "Filter"),
            Binding("ctrl+t", "focus_table", "Table", show=False),
            Binding("ctrl+q", "quit", "Quit"),
        ]

        CSS = """
        Screen {
            background: #2e3436;
            color: #eeeeec;
        }
        #filter {
            border: round #729fcf;
        }
        #table {
            height: 1fr;
            border: round #729fcf;
        }
        #status {
            height: 1;
            padding: 0 1;
            color: #fce94f;
            background: #555753;
        }
        """

        def __init__(self) -> None:
            super().__init__()
            self._session: ExplorerSession | None = None
            self._rows: tuple[Record, ...] = ()
            self._columns: tuple[str, ...] = ()

        def compose(self) -> ComposeResult:
            yield Header(show_clock=False)
            yield Input(
                value=config.initial_query,
                placeholder="Filter (settles after a pause)",
                id="filter",
            )
            yield DataTable(id="table")
            yield Static("", id="status")
            yield Footer()

        def on_mount(self) -> None:
            session = ExplorerSession(
                scheduler=AsyncioScheduler(),
                editor=_DialogEditor(self),
                records=records,
                reporter=StatusReporter(self._on_reported),
                config=config,
            )
            self._session = session
            self._columns = session.displayed_columns()
            table = self.query_one("#table", DataTable)
            table.cursor_type = "cell"
            table.add_columns(*self._columns)
            session.subscribe_view(self._on_view)
            self._on_view(session.view)
            table.focus()

        def on_unmount(self) -> None:
            if self._session is not None:
                self._session.teardown()

        def _set_status(self, text: str) -> None:
            self.query_one("#status", Static).update(text)

        def _on_reported(self, message: str, level: ErrorLevel) -> None:
            self._set_status(message)
            self.notify(message, severity="warning" if level == "warn" else "error")
            if level == "fatal":
                self.query_one("#filter", Input).disabled = True

        def _on_view(self, view: FilteredView) -> None:
            table = self.query_one("#table", DataTable)
            session = self._session
            assert session is not None
            cursor = table.cursor_coordinate
            self._rows = view.rows
            table.clear(columns=False)
            for record in view.rows:
                table.add_row(
                    *(
                        session.registry.cell_text(record, session.registry.field_of(label))
                        for label in self._columns
                    ),
                    key=str(record.position),
                )
            if self._rows:
                table.move_cursor(
                    row=min(cursor.row, len(self._rows) - 1),
                    column=cursor.column,
                )
            self._set_status(
                f"Rows: {len(view.rows)}/{len(view.dataset)} | Query: {view.query!r} | "
                f"Column width: {session.column_width()}"
            )

        def on_input_changed(self, event: Input.Changed) -> None:
            if event.input.id != "filter" or self._session is None:
                return
            try:
                self._session.on_input(event.value)
            except InputStreamError:
                event.input.disabled = True

        def on_data_table_cell_selected(self, event: DataTable.CellSelected) -> None:
            event.stop()
            self.action_edit_cell()

        def action_focus_filter(self) -> None:
            self.query_one("#filter", Input).focus()

        def action_focus_table(self) -> None:
            self.query_one("#table", DataTable).focus()

        def action_edit_cell(self) -> None:
            session = self._session
            if session is None:
                return
            table = self.query_one("#table", DataTable)
            coordinate = table.cursor_coordinate
            if not (0 <= coordinate.row < len(self._rows)):
                self._set_status("Select a cell to edit.")
                return
            record = self._rows[coordinate.row]
            column = self._columns[coordinate.column]
            if not session.request_edit(record, column) and session.editor.busy:
                self._set_status("An edit is already open.")

        async def action_quit(self) -> None:
            if self._session is not None:
                self._session.teardown()
            self.exit()

    _BrowseApp().run()
