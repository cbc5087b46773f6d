from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from ..model.records import Record
from .errors import DuplicateKeyError, KeyCollisionError
from .events import Emitter, Listener, Subscription

logger = logging.getLogger(__name__)

Snapshot = tuple[Record, ...]


class DatasetStore:
    """Owner of the canonical, ordered record sequence.

    The sequence is an immutable tuple swapped as a whole on every mutation, so a
    snapshot handed out earlier never changes under its reader. Observers are notified
    synchronously, before `replace()` returns.
    """

    def __init__(self, records: Iterable[Record]) -> None:
        rows = tuple(records)
        seen: set[int] = set()
        for record in rows:
            if record.position in seen:
                raise DuplicateKeyError(f"Duplicate position {record.position} in dataset")
            seen.add(record.position)
        self._rows: Snapshot = rows
        self._changed: Emitter[Snapshot] = Emitter()

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, key: object) -> bool:
        return any(record.position == key for record in self._rows)

    def snapshot(self) -> Snapshot:
        return self._rows

    def get(self, key: int) -> Record | None:
        for record in self._rows:
            if record.position == key:
                return record
        return None

    def subscribe(self, listener: Listener[Snapshot]) -> Subscription:
        return self._changed.subscribe(listener)

    def replace(self, key: int, updater: Callable[[Record], Record]) -> bool:
        """Swap the record keyed `key` for `updater(old)` at the same index.

        A missing key is a no-op and returns False.
        """

        for idx, current in enumerate(self._rows):
            if current.position == key:
                break
        else:
            logger.debug("replace(%s): key not present, ignoring", key)
            return False

        updated = updater(current)
        if updated.position != key and updated.position in self:
            raise KeyCollisionError(updated.position)

        self._rows = (*self._rows[:idx], updated, *self._rows[idx + 1 :])
        logger.debug("replace(%s): index %d -> %r", key, idx, updated)
        self._changed.emit(self._rows)
        return True
