from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Generic, TypeVar

from nicegui import app as ng_app

from polypanel.common.logging_config import trace
from polypanel.errors import DataUnavailableError, PayloadError

if TYPE_CHECKING:
    from nicegui.timer import Timer

T = TypeVar("T")


class ResourcePoller(Generic[T]):
    """
    Fetch one resource on a NiceGUI app timer and apply the result to the view.

    A tick never waits for the previous fetch, so two requests for the same
    resource can be in flight at once. Every fetch is tagged with an increasing
    sequence number and a response older than the last applied one is dropped,
    whether it carries data or an error. Out-of-band refreshes share the counter.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        fetch: Callable[[], Awaitable[T]],
        apply: Callable[[T], None],
        fail: Callable[[Exception], None] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.name = name
        self.interval = interval
        self._fetch = fetch
        self._apply = apply
        self._fail = fail
        self._seq = 0
        self._applied_seq = 0
        self._timer: Timer | None = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._timer is not None and self._timer.active

    @property
    def applied_seq(self) -> int:
        return self._applied_seq

    def refresh(self) -> asyncio.Task[bool]:
        """Start one fetch now; the task resolves to True if its result was applied."""
        self._seq += 1
        task = asyncio.create_task(self._run(self._seq), name=f"poll-{self.name}-{self._seq}")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    def _is_stale(self, seq: int) -> bool:
        if seq <= self._applied_seq:
            trace("%s: dropping response #%d (already applied #%d)", self.name, seq, self._applied_seq)
            return True
        return False

    async def _run(self, seq: int) -> bool:
        try:
            value = await self._fetch()
        except asyncio.CancelledError:
            raise
        except DataUnavailableError as e:
            if self._is_stale(seq):
                return False
            self._applied_seq = seq
            if isinstance(e, PayloadError):
                logging.warning("%s: bad payload: %s", self.name, e)
            else:
                logging.debug("%s: unavailable: %s", self.name, e)
            self._report(e)
            return False
        except Exception as e:
            if self._is_stale(seq):
                return False
            self._applied_seq = seq
            logging.error("%s: fetch failed: %s", self.name, e)
            self._report(e)
            return False

        if self._is_stale(seq):
            return False
        self._applied_seq = seq
        try:
            self._apply(value)
        except Exception as e:
            logging.error("%s: render failed: %s", self.name, e)
            return False
        return True

    def _report(self, error: Exception) -> None:
        if self._fail is None:
            return
        try:
            self._fail(error)
        except Exception as e:
            logging.error("%s: failure render failed: %s", self.name, e)

    def _tick(self) -> None:
        # timer callback must not return the fetch task, or the timer would wait on it
        self.refresh()

    def start(self) -> None:
        """Start (or resume) the fixed-rate timer; the first tick fires immediately."""
        if self._timer is None:
            self._timer = ng_app.timer(self.interval, self._tick)
        else:
            self._timer.active = True
        logging.debug("%s poller started (every %.2fs)", self.name, self.interval)

    async def stop(self) -> None:
        """Cancel the timer and every fetch still in flight."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        tasks = list(self._inflight)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._inflight.clear()
        logging.debug("%s poller stopped", self.name)
