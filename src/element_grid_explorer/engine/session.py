from __future__ import annotations

import logging
from collections.abc import Iterable

from ..config import ExplorerConfig
from ..model.columns import ColumnRegistry
from ..model.records import SEED_RECORDS, Record
from .debounce import QueryDebouncer, SettledQueries
from .edit import EditCoordinator, EditorCollaborator, EditState
from .errors import InputStreamError
from .events import Listener, Subscription
from .pipeline import FilteredView, FilterPipeline
from .reporter import ErrorReporter, LoggingReporter
from .scheduler import Scheduler
from .store import DatasetStore, Snapshot

logger = logging.getLogger(__name__)


class ExplorerSession:
    """The running engine: dataset store, debounced filter pipeline and edit path.

    Inbound: `on_input()`, `request_edit()`. Outbound: filtered views through
    `subscribe_view()`, errors through the injected reporter. `teardown()` cancels any
    pending quiet-period timer and abandons an in-flight edit.
    """

    def __init__(
        self,
        *,
        scheduler: Scheduler,
        editor: EditorCollaborator,
        records: Iterable[Record] = SEED_RECORDS,
        registry: ColumnRegistry | None = None,
        reporter: ErrorReporter | None = None,
        config: ExplorerConfig | None = None,
    ) -> None:
        self.config = config if config is not None else ExplorerConfig()
        self.registry = registry if registry is not None else ColumnRegistry.default()
        self.reporter: ErrorReporter = reporter if reporter is not None else LoggingReporter()
        self.store = DatasetStore(records)
        self.debouncer = QueryDebouncer(
            scheduler,
            quiet_s=self.config.debounce_s,
            initial=self.config.initial_query,
        )
        self.pipeline = FilterPipeline(self.store, self.debouncer, self.reporter)
        self.editor = EditCoordinator(self.store, self.registry, editor, self.reporter)
        self._torn_down = False

    @property
    def query(self) -> str:
        return self.pipeline.query

    @property
    def view(self) -> FilteredView:
        return self.pipeline.view

    @property
    def rows(self) -> tuple[Record, ...]:
        return self.pipeline.rows

    @property
    def edit_state(self) -> EditState:
        return self.editor.state

    @property
    def failed(self) -> bool:
        return self.pipeline.error is not None

    def snapshot(self) -> Snapshot:
        return self.store.snapshot()

    def displayed_columns(self) -> tuple[str, ...]:
        return self.registry.displayed_columns()

    def column_width(self) -> str:
        return self.registry.column_width()

    def subscribe_view(self, listener: Listener[FilteredView]) -> Subscription:
        return self.pipeline.subscribe(listener)

    def settled(self) -> SettledQueries:
        return self.debouncer.settled()

    def on_input(self, text: str) -> None:
        self.debouncer.on_input(text)

    def fail_input(self, exc: BaseException) -> InputStreamError:
        """Signal that the input event source itself failed. Terminal for this session."""

        return self.pipeline.fail(exc)

    def request_edit(self, record: Record, column: str) -> bool:
        if self._torn_down:
            logger.debug("Edit request after teardown ignored")
            return False
        return self.editor.request_edit(record, column)

    def teardown(self) -> None:
        if self._torn_down:
            return
        self._torn_down = True
        self.editor.abandon()
        self.pipeline.teardown()
        logger.info("Session torn down")
