from __future__ import annotations

from collections.abc import Callable

import pytest

from element_grid_explorer.engine.edit import EditorResult, EditPrompt
from element_grid_explorer.engine.errors import ExplorerError
from element_grid_explorer.engine.scheduler import ManualScheduler
from element_grid_explorer.engine.store import DatasetStore
from element_grid_explorer.model.columns import ColumnRegistry
from element_grid_explorer.model.records import SEED_RECORDS


class CollectingReporter:
    def __init__(self) -> None:
        self.errors: list[ExplorerError] = []

    def report(self, error: ExplorerError) -> None:
        self.errors.append(error)


class PendingEditor:
    """Editor whose answers are given later by the test, like an open dialog."""

    def __init__(self) -> None:
        self.prompts: list[EditPrompt] = []
        self._resolvers: list[Callable[[EditorResult], None]] = []

    def present(self, prompt: EditPrompt, resolve: Callable[[EditorResult], None]) -> None:
        self.prompts.append(prompt)
        self._resolvers.append(resolve)

    def answer(self, value: EditorResult, *, index: int = -1) -> None:
        self._resolvers[index](value)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def reporter() -> CollectingReporter:
    return CollectingReporter()


@pytest.fixture
def editor() -> PendingEditor:
    return PendingEditor()


@pytest.fixture
def registry() -> ColumnRegistry:
    return ColumnRegistry.default()


@pytest.fixture
def store() -> DatasetStore:
    return DatasetStore(SEED_RECORDS)
