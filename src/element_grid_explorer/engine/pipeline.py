from __future__ import annotations

import logging
from dataclasses import dataclass

from ..model.records import Record
from . import filtering
from .debounce import QueryDebouncer
from .errors import InputStreamError
from .events import Emitter, Listener, Subscription
from .reporter import ErrorReporter
from .store import DatasetStore, Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FilteredView:
    """One derivation of the filtered view and the exact inputs it was computed from."""

    query: str
    dataset: Snapshot
    rows: tuple[Record, ...]


class FilterPipeline:
    """Joins the dataset store and the settled query stream into a derived view.

    The view is recomputed from scratch whenever either input changes; both inputs are
    read in the same synchronous step, so a view never mixes an old dataset with a new
    query or the other way round.
    """

    def __init__(
        self,
        store: DatasetStore,
        debouncer: QueryDebouncer,
        reporter: ErrorReporter,
    ) -> None:
        self._store = store
        self._debouncer = debouncer
        self._reporter = reporter
        self._query = debouncer.last_emitted
        self._views: Emitter[FilteredView] = Emitter()
        self._error: InputStreamError | None = None
        self._recomputes = 0
        self._subs: list[Subscription] = [
            store.subscribe(self._on_dataset_changed),
            debouncer.subscribe(self._on_query_settled),
            debouncer.subscribe_closed(self._on_input_closed),
        ]
        self._view = FilteredView(query=self._query, dataset=(), rows=())
        self._recompute()

    @property
    def query(self) -> str:
        return self._query

    @property
    def view(self) -> FilteredView:
        return self._view

    @property
    def rows(self) -> tuple[Record, ...]:
        return self._view.rows

    @property
    def recompute_count(self) -> int:
        return self._recomputes

    @property
    def error(self) -> InputStreamError | None:
        return self._error

    def subscribe(self, listener: Listener[FilteredView]) -> Subscription:
        return self._views.subscribe(listener)

    def _on_dataset_changed(self, _snapshot: Snapshot) -> None:
        self._recompute()

    def _on_query_settled(self, query: str) -> None:
        self._query = query
        self._recompute()

    def _on_input_closed(self, error: InputStreamError | None) -> None:
        if error is None:
            self._detach()
        else:
            self.fail(error)

    def _recompute(self) -> None:
        if self._error is not None:
            return
        dataset = self._store.snapshot()
        query = self._query
        try:
            rows = filtering.compute(dataset, query)
        except Exception as exc:
            logger.exception("Filter recomputation failed for query %r", query)
            self.fail(exc)
            return
        self._recomputes += 1
        self._view = FilteredView(query=query, dataset=dataset, rows=rows)
        logger.debug("View recomputed: query=%r rows=%d", query, len(rows))
        self._views.emit(self._view)

    def fail(self, exc: BaseException) -> InputStreamError:
        """Put the pipeline in its terminal state and report the failure once."""

        if self._error is not None:
            return self._error
        error = self._debouncer.fail(exc)
        if self._error is not None:
            # Re-entered through the closed notification.
            return self._error
        self._error = error
        self._detach()
        self._views.clear()
        logger.error("Input stream failed, filtering stopped: %s", error)
        self._reporter.report(error)
        return error

    def _detach(self) -> None:
        for sub in self._subs:
            sub.cancel()
        self._subs = []

    def teardown(self) -> None:
        self._detach()
        self._debouncer.teardown()
        self._views.clear()
