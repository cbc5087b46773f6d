from __future__ import annotations

import asyncio
import logging

from .errors import InputStreamError
from .events import Emitter, Listener, Subscription
from .scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

DEFAULT_QUIET_S = 2.0


class SettledQueries:
    """Async iterator over settled queries of one `QueryDebouncer`.

    Subscribes on creation, so nothing emitted after `QueryDebouncer.settled()` returns
    is lost. Ends when the debouncer is torn down; raises `InputStreamError` if the
    input stream failed. A consumer that stops early must call `aclose()` (or
    `close()`), otherwise the iterator stays subscribed and keeps queueing.
    """

    def __init__(self, debouncer: QueryDebouncer) -> None:
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._end: InputStreamError | None = None
        self._ended = False
        self._wakeup: asyncio.Queue[None] = asyncio.Queue()
        self._subs = [
            debouncer.subscribe(self._on_value),
            debouncer.subscribe_closed(self._on_closed),
        ]

    def _on_value(self, text: str) -> None:
        self._queue.put_nowait(text)
        self._wakeup.put_nowait(None)

    def _on_closed(self, error: InputStreamError | None) -> None:
        self._ended = True
        self._end = error
        self._wakeup.put_nowait(None)

    def __aiter__(self) -> SettledQueries:
        return self

    async def __anext__(self) -> str:
        while True:
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self._ended:
                self.close()
                if self._end is not None:
                    raise self._end
                raise StopAsyncIteration
            await self._wakeup.get()

    @property
    def closed(self) -> bool:
        return not any(sub.active for sub in self._subs)

    def close(self) -> None:
        for sub in self._subs:
            sub.cancel()
        self._ended = True
        while not self._queue.empty():
            self._queue.get_nowait()
        while not self._wakeup.empty():
            self._wakeup.get_nowait()
        # Release a consumer parked in `__anext__`.
        self._wakeup.put_nowait(None)

    async def aclose(self) -> None:
        self.close()


class QueryDebouncer:
    """Trailing-edge debounce of raw input text with duplicate suppression.

    Every `on_input()` restarts the quiet-period timer; when it fires, the latest text is
    emitted unless it equals the last emitted value. After `teardown()` or `fail()` no
    timer is pending and nothing is emitted again.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        quiet_s: float = DEFAULT_QUIET_S,
        initial: str = "",
    ) -> None:
        if quiet_s < 0:
            raise ValueError(f"quiet period must be >= 0, got {quiet_s}")
        self._scheduler = scheduler
        self._quiet_s = quiet_s
        self._latest = initial
        self._last_emitted = initial
        self._timer: TimerHandle | None = None
        self._settled: Emitter[str] = Emitter()
        self._closed: Emitter[InputStreamError | None] = Emitter()
        self._torn_down = False
        self._error: InputStreamError | None = None

    @property
    def quiet_s(self) -> float:
        return self._quiet_s

    @property
    def last_emitted(self) -> str:
        return self._last_emitted

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.cancelled

    @property
    def closed(self) -> bool:
        return self._torn_down or self._error is not None

    def subscribe(self, listener: Listener[str]) -> Subscription:
        return self._settled.subscribe(listener)

    def subscribe_closed(self, listener: Listener[InputStreamError | None]) -> Subscription:
        return self._closed.subscribe(listener)

    def settled(self) -> SettledQueries:
        if self._error is not None:
            raise self._error
        queries = SettledQueries(self)
        if self._torn_down:
            queries._on_closed(None)
        return queries

    def on_input(self, text: str) -> None:
        if self._error is not None:
            raise self._error
        if self._torn_down:
            logger.debug("Input after teardown ignored: %r", text)
            return
        self._latest = text
        self._cancel_timer()
        self._timer = self._scheduler.call_later(self._quiet_s, self._fire)

    def _fire(self) -> None:
        self._timer = None
        if self.closed:
            return
        text = self._latest
        if text == self._last_emitted:
            logger.debug("Settled query unchanged, suppressed: %r", text)
            return
        self._last_emitted = text
        logger.debug("Settled query: %r", text)
        self._settled.emit(text)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def teardown(self) -> None:
        if self.closed:
            return
        self._cancel_timer()
        self._torn_down = True
        self._closed.emit(None)
        self._settled.clear()
        self._closed.clear()

    def fail(self, exc: BaseException) -> InputStreamError:
        """Terminate the stream with an error. Returns the error every caller will see."""

        if self._error is not None:
            return self._error
        if isinstance(exc, InputStreamError):
            error = exc
        else:
            error = InputStreamError(f"Input stream failed: {exc}")
            error.__cause__ = exc
        self._cancel_timer()
        self._error = error
        if not self._torn_down:
            self._closed.emit(error)
        self._settled.clear()
        self._closed.clear()
        return error
