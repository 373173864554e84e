import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set


class Scheduler:
    """
    Owns every timer and background task of the wallet session.
    Use as `async with Scheduler(logger) as sched:`; leaving the block cancels
    whatever is still pending, so no timer outlives the view that created it.
    """
    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self._handles: Set[asyncio.TimerHandle] = set()
        self._tasks: Set[asyncio.Task] = set()
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def call_later(self, delay: float, callback: Callable[..., Any], *args) -> asyncio.TimerHandle:
        if self.closed:
            raise RuntimeError("Scheduler is closed")
        loop = asyncio.get_running_loop()
        handle: Optional[asyncio.TimerHandle] = None

        def _fire():
            self._handles.discard(handle)
            callback(*args)

        handle = loop.call_later(delay, _fire)
        self._handles.add(handle)
        return handle

    def cancel(self, handle: Optional[asyncio.TimerHandle]):
        if handle is not None:
            handle.cancel()
            self._handles.discard(handle)

    def spawn(self, coro: Awaitable, name: Optional[str] = None) -> asyncio.Task:
        if self.closed:
            raise RuntimeError("Scheduler is closed")
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def every(self, interval: float, job: Callable[[], Awaitable], name: Optional[str] = None) -> asyncio.Task:
        """Runs `job` every `interval` seconds, first run after one interval."""
        return self.spawn(self._run_forever(interval, job, name or getattr(job, "__name__", "job")), name=name)

    async def _run_forever(self, interval: float, job: Callable[[], Awaitable], name: str):
        while True:
            await asyncio.sleep(interval)
            try:
                await job()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logger.error(f"Periodic job '{name}' failed: {e}")

    @property
    def pending(self) -> int:
        return len(self._handles) + len(self._tasks)

    async def close(self):
        self.closed = True
        if self.pending:
            self.logger.debug(f"Cancelling {self.pending} pending timers and tasks")
        for handle in list(self._handles):
            handle.cancel()
        self._handles.clear()

        tasks = list(self._tasks)
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
