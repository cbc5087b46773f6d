from __future__ import annotations

from collections.abc import Iterable

from ..model.records import Record, format_number


def search_texts(record: Record) -> tuple[str, str, str, str]:
    return (
        record.name.lower(),
        format_number(record.position),
        record.symbol.lower(),
        format_number(record.weight).lower(),
    )


def matches(record: Record, query: str) -> bool:
    """Case-insensitive substring match on any field. The empty query matches everything."""

    needle = query.lower()
    return any(needle in text for text in search_texts(record))


def compute(dataset: Iterable[Record], query: str) -> tuple[Record, ...]:
    return tuple(record for record in dataset if matches(record, query))
