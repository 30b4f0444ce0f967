"""
Cancellable periodic tasks.

The client runs two background schedules: the decode pass over received
bytes and the keepalive ping. Both are PeriodicTask instances, so closing
the session stops them deterministically instead of leaving timers behind.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

PeriodicCallback = Callable[[], "Awaitable[Any] | Any"]


class PeriodicTask:
    """
    Run a callback every `interval` seconds on the running event loop.

    The next interval starts only after the callback has finished (an
    awaitable result is awaited), so a pass can never overlap the next one.
    Exceptions raised by the callback are logged and the schedule goes on.

    Example:
        >>> ticker = PeriodicTask(0.5, decoder_pass, name="decode")
        >>> ticker.start()
        >>> ...
        >>> await ticker.stop()
    """

    def __init__(
        self,
        interval: float,
        callback: PeriodicCallback,
        *,
        name: str = "periodic",
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self._interval = interval
        self._callback = callback
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._runs = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def runs(self) -> int:
        """Number of completed callback invocations."""
        return self._runs

    def start(self) -> None:
        """Start the schedule. No-op if it is already running."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)
        logger.debug("Started %s schedule every %.3fs", self._name, self._interval)

    async def stop(self) -> None:
        """
        Stop the schedule and wait for it to finish.

        Safe to call when not running, and from within the callback itself.
        """
        task = self._task
        self._task = None
        if task is None or task.done():
            return

        task.cancel()
        if task is asyncio.current_task():
            return

        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("Stopped %s schedule", self._name)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                result = self._callback()
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("%s callback failed", self._name)
            self._runs += 1

    def __repr__(self) -> str:
        status = "running" if self.is_running else "stopped"
        return f"PeriodicTask({self._name!r}, interval={self._interval}, {status})"
