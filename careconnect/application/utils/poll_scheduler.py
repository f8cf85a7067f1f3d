from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable


class PollScheduler:
    """
    Owns at most one background task. Starting a new one cancels the previous
    task first, so two pollers never run side by side.
    """

    def __init__(self, name: str = "poller") -> None:
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._logger = logging.getLogger(__name__)

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, job: Callable[[], Awaitable[None]]) -> asyncio.Task[None]:
        self.cancel()
        self._task = asyncio.ensure_future(job())
        self._task.add_done_callback(self._on_done)
        return self._task

    def cancel(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        # A job that finishes on its own just returns; it never cancels itself.
        if task is asyncio.current_task():
            return
        task.cancel()
        self._logger.debug("Cancelled %s", self._name)

    async def join(self) -> None:
        task = self._task
        if task is None or task is asyncio.current_task():
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def _on_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._logger.error("%s crashed", self._name, exc_info=error)
