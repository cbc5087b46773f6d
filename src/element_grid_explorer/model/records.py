from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any


class DatasetLoadError(ValueError):
    """Raised when a dataset file cannot be turned into records."""


@dataclass(frozen=True, slots=True)
class Record:
    position: int
    name: str
    weight: float
    symbol: str


SEED_RECORDS: tuple[Record, ...] = (
    Record(position=1, name="Hydrogen", weight=1.0079, symbol="H"),
    Record(position=2, name="Helium", weight=4.0026, symbol="He"),
    Record(position=3, name="Lithium", weight=6.941, symbol="Li"),
    Record(position=4, name="Beryllium", weight=9.0122, symbol="Be"),
    Record(position=5, name="Boron", weight=10.811, symbol="B"),
    Record(position=6, name="Carbon", weight=12.0107, symbol="C"),
    Record(position=7, name="Nitrogen", weight=14.0067, symbol="N"),
    Record(position=8, name="Oxygen", weight=15.9994, symbol="O"),
    Record(position=9, name="Fluorine", weight=18.9984, symbol="F"),
    Record(position=10, name="Neon", weight=20.1797, symbol="Ne"),
)


def format_number(value: int | float) -> str:
    """Shortest round-trip text of a number, laid out the way browsers print numbers.

    Integral values drop the trailing ``.0``. Magnitudes in ``[1e-6, 1e21)`` use plain
    decimal notation (``1e-05`` -> ``"0.00001"``); others use an unpadded exponent
    (``1e-07`` -> ``"1e-7"``, ``1e+21`` -> ``"1e+21"``).
    """

    if isinstance(value, bool):
        raise TypeError("bool is not a number here")
    if isinstance(value, int):
        return str(value)
    if not math.isfinite(value):
        return repr(value)
    magnitude = abs(value)
    if value.is_integer() and magnitude < 1e21:
        return str(int(value))
    exact = Decimal(repr(value))
    if 1e-6 <= magnitude < 1e21:
        return format(exact, "f")
    return format(exact, "e")


def _require(entry: dict[str, Any], key: str, index: int) -> Any:
    if key not in entry:
        raise DatasetLoadError(f"Record #{index} is missing field {key!r}")
    return entry[key]


def _record_from_entry(entry: object, index: int) -> Record:
    if not isinstance(entry, dict):
        raise DatasetLoadError(f"Record #{index} is not an object")

    position = _require(entry, "position", index)
    if isinstance(position, bool) or not isinstance(position, int):
        raise DatasetLoadError(f"Record #{index}: position must be an integer")
    weight = _require(entry, "weight", index)
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        raise DatasetLoadError(f"Record #{index}: weight must be a number")
    name = _require(entry, "name", index)
    symbol = _require(entry, "symbol", index)
    if not isinstance(name, str) or not isinstance(symbol, str):
        raise DatasetLoadError(f"Record #{index}: name and symbol must be strings")
    return Record(position=position, name=name, weight=float(weight), symbol=symbol)


def records_from_json(text: str) -> list[Record]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DatasetLoadError(f"Invalid JSON: {exc}") from exc
    if isinstance(data, dict):
        # Also accept {"records": [...]} wrappers.
        data = data.get("records")
    if not isinstance(data, list):
        raise DatasetLoadError("Dataset root must be a list of records")
    return [_record_from_entry(entry, idx) for idx, entry in enumerate(data)]


def load_records(path: Path) -> list[Record]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DatasetLoadError(f"Cannot read dataset {path}: {exc}") from exc
    return records_from_json(text)


def records_to_json(records: list[Record] | tuple[Record, ...]) -> str:
    return json.dumps([asdict(record) for record in records], indent=2) + "\n"
