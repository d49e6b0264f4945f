"""
VitaBalance API - Debounced Field Writer.

Coalesces rapid edits of registration fields: each field has its own timer,
a new value resets it, and only the last value is written once the field has
been quiet for ``delay`` seconds. Fields never wait on each other.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Set, Tuple

logger = logging.getLogger(__name__)

FieldWriter = Callable[[str, Any], Awaitable[None]]


class FieldDebouncer:
    """
    Per-field debounce of async writes.

    Attributes:
        delay: Quiet period before a write, in seconds.
        writer: Coroutine called as ``writer(field, value)``.
    """

    def __init__(self, delay: float, writer: FieldWriter):
        self.delay = delay
        self.writer = writer
        self._tasks: Dict[str, asyncio.Task] = {}
        self._pending: Dict[str, Any] = {}
        self._in_flight: Set[asyncio.Task] = set()
        self._closed = False

    def push(self, field: str, value: Any) -> None:
        """Record a new value for ``field`` and restart its timer."""
        if self._closed:
            raise RuntimeError("FieldDebouncer is closed")
        task = self._tasks.get(field)
        if task is not None and not task.done():
            if field in self._pending:
                task.cancel()
            else:
                # Value already popped, the write is running; let it finish
                self._in_flight.add(task)
                task.add_done_callback(self._in_flight.discard)
        self._pending[field] = value
        self._tasks[field] = asyncio.ensure_future(self._write_later(field))

    @property
    def pending_fields(self) -> Tuple[str, ...]:
        return tuple(self._pending)

    async def _write_later(self, field: str) -> None:
        await asyncio.sleep(self.delay)
        try:
            await self._write(field)
        except Exception as e:
            # Timer-driven writes have no caller to report to
            logger.error(f"Debounced write of {field} failed: {e}")

    async def _write(self, field: str) -> None:
        if field not in self._pending:
            return
        value = self._pending.pop(field)
        await self.writer(field, value)

    async def flush(self) -> None:
        """
        Write every pending value now, without waiting for the timers.

        Returns once every write started before the call has finished too.
        """
        tasks = dict(self._tasks)
        self._tasks.clear()
        for field, task in tasks.items():
            if not task.done() and field in self._pending:
                task.cancel()
        await asyncio.gather(*tasks.values(), *self._in_flight, return_exceptions=True)
        for field in list(self._pending):
            await self._write(field)

    async def aclose(self) -> None:
        """Flush pending values and refuse further pushes."""
        if self._closed:
            return
        await self.flush()
        self._closed = True

    async def __aenter__(self) -> "FieldDebouncer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
