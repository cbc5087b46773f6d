from __future__ import annotations

import logging
from collections.abc import Callable

import pytest

from element_grid_explorer.engine.edit import (
    EditCoordinator,
    EditorResult,
    EditPrompt,
    coerce_value,
)
from element_grid_explorer.engine.errors import (
    ColumnNotFoundError,
    KeyCollisionError,
    NotAnIntegerError,
    NotANumberError,
    TypeContractError,
)
from element_grid_explorer.engine.store import DatasetStore
from element_grid_explorer.model.columns import ColumnRegistry
from element_grid_explorer.model.records import SEED_RECORDS


def _coordinator(store, registry, editor, reporter) -> EditCoordinator:
    return EditCoordinator(store, registry, editor, reporter)


def test_weight_edit_parses_number(store, registry, editor, reporter) -> None:
    coordinator = _coordinator(store, registry, editor, reporter)
    lithium = store.get(3)
    assert coordinator.request_edit(lithium, "weight") is True
    assert coordinator.state == "awaiting_input"
    assert editor.prompts[0].current_value == 6.941
    assert editor.prompts[0].kind == "number"

    editor.answer("3.14")

    assert coordinator.state == "idle"
    updated = store.get(3)
    assert updated.weight == 3.14
    assert (updated.name, updated.symbol, updated.position) == ("Lithium", "Li", 3)
    assert reporter.errors == []


def test_non_numeric_weight_is_rejected(store, registry, editor, reporter) -> None:
    coordinator = _coordinator(store, registry, editor, reporter)
    before = store.snapshot()
    coordinator.request_edit(store.get(3), "weight")
    editor.answer("abc")

    assert coordinator.state == "idle"
    assert store.snapshot() is before
    assert len(reporter.errors) == 1
    assert isinstance(reporter.errors[0], NotANumberError)


def test_second_request_while_awaiting_is_ignored(store, registry, editor, reporter) -> None:
    coordinator = _coordinator(store, registry, editor, reporter)
    before = store.snapshot()
    assert coordinator.request_edit(store.get(1), "name") is True
    assert coordinator.request_edit(store.get(2), "symbol") is False

    assert len(editor.prompts) == 1
    assert store.snapshot() is before
    assert reporter.errors == []

    editor.answer("Protium")
    assert store.get(1).name == "Protium"
    assert store.get(2).symbol == "He"
    assert coordinator.request_edit(store.get(2), "symbol") is True


def test_unknown_column_is_reported_without_opening_editor(
    store, registry, editor, reporter
) -> None:
    coordinator = _coordinator(store, registry, editor, reporter)
    assert coordinator.request_edit(store.get(1), "mass") is False

    assert editor.prompts == []
    assert coordinator.state == "idle"
    assert len(reporter.errors) == 1
    assert isinstance(reporter.errors[0], ColumnNotFoundError)
    # The failed attempt leaves the coordinator free for the next request.
    assert coordinator.request_edit(store.get(1), "name") is True


def test_no_change_cancels_without_mutation(store, registry, editor, reporter, caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="element_grid_explorer.engine.edit")
    coordinator = _coordinator(store, registry, editor, reporter)
    notified: list[object] = []
    store.subscribe(notified.append)

    coordinator.request_edit(store.get(4), "name")
    editor.answer(None)

    assert coordinator.state == "idle"
    assert notified == []
    assert "awaiting_input -> cancelled" in caplog.text
    assert "cancelled -> idle" in caplog.text


def test_empty_text_is_a_value_for_text_fields(store, registry, editor, reporter) -> None:
    coordinator = _coordinator(store, registry, editor, reporter)
    coordinator.request_edit(store.get(4), "symbol")
    editor.answer("")
    assert store.get(4).symbol == ""
    assert reporter.errors == []


def test_key_field_edit_moves_the_record(store, registry, editor, reporter) -> None:
    coordinator = _coordinator(store, registry, editor, reporter)
    coordinator.request_edit(store.get(2), "position")
    assert editor.prompts[0].current_value == 2
    editor.answer("99")

    assert store.get(2) is None
    moved = store.get(99)
    assert moved is not None
    assert (moved.name, moved.weight, moved.symbol) == ("Helium", 4.0026, "He")
    assert isinstance(moved.position, int)
    assert store.snapshot()[1] is moved
    assert store.replace(2, lambda r: r) is False

    coordinator.request_edit(moved, "name")
    editor.answer("Helium-99")
    assert store.get(99).name == "Helium-99"


def test_large_key_is_stored_exactly(store, registry, editor, reporter) -> None:
    coordinator = _coordinator(store, registry, editor, reporter)
    coordinator.request_edit(store.get(2), "position")
    editor.answer("9007199254740993")

    assert reporter.errors == []
    moved = store.get(9007199254740993)
    assert moved is not None
    assert moved.name == "Helium"
    assert store.get(9007199254740992) is None


def test_key_collision_is_rejected(store, registry, editor, reporter) -> None:
    coordinator = _coordinator(store, registry, editor, reporter)
    before = store.snapshot()
    coordinator.request_edit(store.get(2), "position")
    editor.answer("5")

    assert store.snapshot() is before
    assert len(reporter.errors) == 1
    assert isinstance(reporter.errors[0], KeyCollisionError)
    assert coordinator.state == "idle"


def test_key_edit_to_same_value_is_allowed(store, registry, editor, reporter) -> None:
    coordinator = _coordinator(store, registry, editor, reporter)
    coordinator.request_edit(store.get(2), "position")
    editor.answer("2.0")
    assert store.get(2) is not None
    assert reporter.errors == []


def test_fractional_position_is_rejected(store, registry, editor, reporter) -> None:
    coordinator = _coordinator(store, registry, editor, reporter)
    coordinator.request_edit(store.get(2), "position")
    editor.answer("2.5")
    assert isinstance(reporter.errors[0], NotAnIntegerError)
    assert store.get(2).position == 2


def test_type_contract_violation_is_logged_and_reported(
    store, registry, editor, reporter, caplog
) -> None:
    caplog.set_level(logging.ERROR, logger="element_grid_explorer.engine.edit")
    coordinator = _coordinator(store, registry, editor, reporter)
    before = store.snapshot()
    coordinator.request_edit(store.get(1), "name")
    editor.answer(42)

    assert store.snapshot() is before
    assert isinstance(reporter.errors[0], TypeContractError)
    assert "Type contract violated" in caplog.text
    assert coordinator.state == "idle"


def test_abandon_drops_late_editor_result(store, registry, editor, reporter) -> None:
    coordinator = _coordinator(store, registry, editor, reporter)
    before = store.snapshot()
    coordinator.request_edit(store.get(1), "name")
    coordinator.abandon()
    assert coordinator.state == "idle"

    editor.answer("Late")
    assert store.snapshot() is before

    coordinator.request_edit(store.get(1), "name")
    editor.answer(None, index=0)
    assert coordinator.state == "awaiting_input"
    editor.answer("Protium", index=1)
    assert store.get(1).name == "Protium"


def test_editor_may_resolve_synchronously(store, registry, reporter) -> None:
    class _Immediate:
        def present(self, prompt: EditPrompt, resolve: Callable[[EditorResult], None]) -> None:
            resolve(prompt.current_value * 2)

    coordinator = EditCoordinator(store, registry, _Immediate(), reporter)
    assert coordinator.request_edit(store.get(5), "weight") is True
    assert coordinator.state == "idle"
    assert store.get(5).weight == 21.622


def test_editor_failure_resets_state(store, registry, reporter) -> None:
    class _Broken:
        def present(self, prompt: EditPrompt, resolve: Callable[[EditorResult], None]) -> None:
            raise RuntimeError("no screen")

    coordinator = EditCoordinator(store, registry, _Broken(), reporter)
    with pytest.raises(RuntimeError):
        coordinator.request_edit(store.get(1), "name")
    assert coordinator.state == "idle"


def test_edit_on_record_removed_meanwhile_is_noop(registry, editor, reporter) -> None:
    store = DatasetStore([])
    coordinator = EditCoordinator(store, registry, editor, reporter)
    coordinator.request_edit(SEED_RECORDS[0], "name")
    editor.answer("Ghost")
    assert store.snapshot() == ()
    assert coordinator.state == "idle"
    assert reporter.errors == []


@pytest.mark.parametrize(
    ("field", "value", "expected"),
    [
        ("weight", " 3.14 ", 3.14),
        ("weight", 7, 7.0),
        ("weight", "1e2", 100.0),
        ("position", "99", 99),
        ("position", "99.0", 99),
        ("position", 12, 12),
        ("position", "9007199254740993", 9007199254740993),
        ("position", " -7 ", -7),
        ("weight", ".5", 0.5),
        ("weight", "2.", 2.0),
        ("name", "  spaced  ", "  spaced  "),
    ],
)
def test_coerce_value_accepts(
    registry: ColumnRegistry, field: str, value: object, expected: object
) -> None:
    result = coerce_value(registry.spec_for(field), value)
    assert result == expected
    assert type(result) is type(expected)


@pytest.mark.parametrize(
    ("field", "value", "error"),
    [
        ("weight", "", NotANumberError),
        ("weight", "nan", NotANumberError),
        ("weight", "inf", NotANumberError),
        ("weight", "12kg", NotANumberError),
        ("weight", "1_000", NotANumberError),
        ("weight", "\u0661\u0662", NotANumberError),
        ("weight", "1e400", NotANumberError),
        ("position", "1_000", NotANumberError),
        ("position", "3.5", NotAnIntegerError),
        ("weight", True, TypeContractError),
        ("weight", [1], TypeContractError),
        ("symbol", 3.0, TypeContractError),
    ],
)
def test_coerce_value_rejects(
    registry: ColumnRegistry, field: str, value: object, error: type[Exception]
) -> None:
    with pytest.raises(error):
        coerce_value(registry.spec_for(field), value)
