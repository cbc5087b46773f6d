from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal, Protocol

from ..model.columns import ColumnRegistry, FieldName, FieldSpec, FieldValue
from ..model.records import Record
from .errors import (
    ColumnNotFoundError,
    ExplorerError,
    KeyCollisionError,
    NotAnIntegerError,
    NotANumberError,
    TypeContractError,
)
from .reporter import ErrorReporter
from .store import DatasetStore

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"^[+-]?[0-9]+$")
_NUMBER_RE = re.compile(r"^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$")

EditState = Literal["idle", "awaiting_input", "applying", "cancelled"]

# None means "no change"; an empty string is a real value.
EditorResult = FieldValue | None


@dataclass(frozen=True, slots=True)
class EditPrompt:
    """What the editor collaborator gets to see for one edit."""

    column: str
    field: FieldName
    kind: str
    current_value: FieldValue
    record: Record


class EditorCollaborator(Protocol):
    """Surface that asks for a replacement value (a modal dialog in the UI).

    `present()` must eventually call `resolve` exactly once, with the new value or
    None for "no change". It may do so before returning.
    """

    def present(self, prompt: EditPrompt, resolve: Callable[[EditorResult], None]) -> None:
        ...


@dataclass(slots=True)
class _EditTicket:
    key: int
    spec: FieldSpec
    live: bool = True


def coerce_value(spec: FieldSpec, value: object) -> FieldValue:
    """Validate `value` against the field's declared kind and return the stored form.

    Raises `NotANumberError`/`NotAnIntegerError` for bad user text and
    `TypeContractError` for values of the wrong Python type.
    """

    if isinstance(value, bool):
        raise TypeContractError(f"Column {spec.label!r}: unexpected boolean value {value!r}")

    if spec.kind == "text":
        if isinstance(value, str):
            return value
        raise TypeContractError(
            f"Column {spec.label!r} holds text, got {type(value).__name__} {value!r}"
        )

    if isinstance(value, str):
        text = value.strip()
        # Exact for keys beyond float precision.
        if spec.kind == "integer" and _INTEGER_RE.fullmatch(text):
            return int(text)
        # ASCII decimal or exponent notation only.
        if not _NUMBER_RE.fullmatch(text):
            raise NotANumberError(spec.label, value)
        number = float(text)
    elif isinstance(value, int) and spec.kind == "integer":
        return value
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        raise TypeContractError(
            f"Column {spec.label!r} holds numbers, got {type(value).__name__} {value!r}"
        )
    if not math.isfinite(number):
        raise NotANumberError(spec.label, value)

    if spec.kind == "integer":
        if not number.is_integer():
            raise NotAnIntegerError(spec.label, value)
        return int(number)
    return number


class EditCoordinator:
    """Single-writer edit path: idle -> awaiting_input -> applying | cancelled -> idle.

    Only one edit can await input at a time. Resolution and validation failures are
    reported, never raised; every attempt ends back in ``idle``.
    """

    def __init__(
        self,
        store: DatasetStore,
        registry: ColumnRegistry,
        editor: EditorCollaborator,
        reporter: ErrorReporter,
    ) -> None:
        self._store = store
        self._registry = registry
        self._editor = editor
        self._reporter = reporter
        self._state: EditState = "idle"
        self._ticket: _EditTicket | None = None

    @property
    def state(self) -> EditState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state != "idle"

    def _set_state(self, state: EditState) -> None:
        logger.debug("Edit state %s -> %s", self._state, state)
        self._state = state

    def _report(self, error: ExplorerError) -> None:
        logger.warning("Edit rejected: %s", error)
        self._reporter.report(error)

    def request_edit(self, record: Record, column: str) -> bool:
        """Start editing `column` of `record`. Returns False if the request was dropped."""

        if self._state != "idle":
            logger.debug("Edit request for %r ignored: state is %s", column, self._state)
            return False
        try:
            spec = self._registry.spec_for_label(column)
        except ColumnNotFoundError as exc:
            self._report(exc)
            return False

        ticket = _EditTicket(key=record.position, spec=spec)
        self._ticket = ticket
        self._set_state("awaiting_input")
        prompt = EditPrompt(
            column=spec.label,
            field=spec.field,
            kind=spec.kind,
            current_value=spec.get(record),
            record=record,
        )
        try:
            self._editor.present(prompt, lambda result: self._on_result(ticket, result))
        except Exception:
            logger.exception("Editor failed to open for column %r", column)
            self._ticket = None
            self._set_state("idle")
            raise
        return True

    def abandon(self) -> None:
        """Drop a pending edit without side effects; its late result is ignored."""

        if self._ticket is not None:
            self._ticket.live = False
            self._ticket = None
        if self._state != "idle":
            logger.debug("Pending edit abandoned")
            self._set_state("idle")

    def _on_result(self, ticket: _EditTicket, result: EditorResult) -> None:
        if not ticket.live or ticket is not self._ticket:
            logger.debug("Stale editor result dropped for %r", ticket.spec.label)
            return
        ticket.live = False
        self._ticket = None
        try:
            if result is None:
                self._set_state("cancelled")
                return
            self._set_state("applying")
            self._apply(ticket, result)
        finally:
            self._set_state("idle")

    def _apply(self, ticket: _EditTicket, result: FieldValue) -> None:
        spec = ticket.spec
        try:
            value = coerce_value(spec, result)
        except TypeContractError as exc:
            logger.error("Type contract violated while editing %r: %s", spec.label, exc)
            self._reporter.report(exc)
            return
        except ExplorerError as exc:
            self._report(exc)
            return

        if spec.field == "position" and value != ticket.key and value in self._store:
            self._report(KeyCollisionError(int(value)))
            return

        def _updater(current: Record) -> Record:
            return spec.set(current, value)

        if self._store.replace(ticket.key, _updater):
            logger.info("Updated %s of record %s to %r", spec.label, ticket.key, value)
        else:
            logger.info("Record %s vanished before the edit was applied", ticket.key)
