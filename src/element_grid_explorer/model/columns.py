from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import Literal, get_args

from ..engine.errors import ColumnNotFoundError, RegistryError
from .records import Record, format_number

FieldName = Literal["position", "name", "weight", "symbol"]
FieldKind = Literal["integer", "number", "text"]
FieldValue = int | float | str

ALL_FIELDS: tuple[FieldName, ...] = get_args(FieldName)


@dataclass(frozen=True, slots=True)
class FieldSpec:
    field: FieldName
    label: str
    kind: FieldKind
    get: Callable[[Record], FieldValue]
    set: Callable[[Record, FieldValue], Record]

    @property
    def numeric(self) -> bool:
        return self.kind != "text"


def _default_specs(labels: dict[FieldName, str]) -> list[FieldSpec]:
    return [
        FieldSpec(
            field="position",
            label=labels["position"],
            kind="integer",
            get=lambda r: r.position,
            set=lambda r, v: replace(r, position=v),
        ),
        FieldSpec(
            field="name",
            label=labels["name"],
            kind="text",
            get=lambda r: r.name,
            set=lambda r, v: replace(r, name=v),
        ),
        FieldSpec(
            field="weight",
            label=labels["weight"],
            kind="number",
            get=lambda r: r.weight,
            set=lambda r, v: replace(r, weight=v),
        ),
        FieldSpec(
            field="symbol",
            label=labels["symbol"],
            kind="text",
            get=lambda r: r.symbol,
            set=lambda r, v: replace(r, symbol=v),
        ),
    ]


class ColumnRegistry:
    """Fixed two-way mapping between record fields and column labels.

    Column order follows the order of the specs passed in and is the display order.
    """

    def __init__(self, specs: Iterable[FieldSpec]) -> None:
        ordered = list(specs)
        by_field: dict[FieldName, FieldSpec] = {}
        by_label: dict[str, FieldSpec] = {}
        for spec in ordered:
            if spec.field in by_field:
                raise RegistryError(f"Field {spec.field!r} mapped twice")
            if spec.label in by_label:
                raise RegistryError(f"Duplicate column label {spec.label!r}")
            by_field[spec.field] = spec
            by_label[spec.label] = spec
        missing = [name for name in ALL_FIELDS if name not in by_field]
        if missing:
            raise RegistryError(f"Column mapping is missing fields: {', '.join(missing)}")
        self._specs = tuple(ordered)
        self._by_field = by_field
        self._by_label = by_label

    @classmethod
    def default(cls, labels: dict[FieldName, str] | None = None) -> ColumnRegistry:
        mapping: dict[FieldName, str] = {name: name for name in ALL_FIELDS}
        if labels:
            mapping.update(labels)
        return cls(_default_specs(mapping))

    def label_of(self, field: FieldName) -> str:
        return self._by_field[field].label

    def field_of(self, label: str) -> FieldName:
        return self.spec_for_label(label).field

    def spec_for_label(self, label: str) -> FieldSpec:
        spec = self._by_label.get(label)
        if spec is None:
            raise ColumnNotFoundError(label)
        return spec

    def spec_for(self, field: FieldName) -> FieldSpec:
        return self._by_field[field]

    def value_of(self, record: Record, field: FieldName) -> FieldValue:
        return self._by_field[field].get(record)

    def with_value(self, record: Record, field: FieldName, value: FieldValue) -> Record:
        return self._by_field[field].set(record, value)

    def displayed_columns(self) -> tuple[str, ...]:
        return tuple(spec.label for spec in self._specs)

    def column_width(self) -> str:
        return f"{format_number(100 / len(self._specs))}%"

    def cell_text(self, record: Record, field: FieldName) -> str:
        value = self.value_of(record, field)
        if isinstance(value, str):
            return value
        return format_number(value)
