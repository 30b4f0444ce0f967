"""
Client lifecycle events.

Collaborators can observe the session without taking part in request/response
pairing:

- CONNECT: the server greeting was received
- CLOSE: the connection closed; the listener receives had_error (bool)
- ERROR: a transport error occurred; the listener receives the exception
- RESPONSE: every decoded packet, whether or not it matched a request

Listeners may be plain callables or coroutine functions. Coroutines are
scheduled as tasks so a slow listener never stalls packet dispatch.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class ClientEvent(str, Enum):
    """Events emitted by ManagerClient."""

    CONNECT = "connect"
    CLOSE = "close"
    ERROR = "error"
    RESPONSE = "response"


class EventEmitter:
    """Minimal listener registry keyed by ClientEvent."""

    def __init__(self) -> None:
        self._listeners: dict[ClientEvent, list[tuple[Listener, bool]]] = {
            event: [] for event in ClientEvent
        }
        self._listener_tasks: set[asyncio.Task[Any]] = set()

    def on(self, event: ClientEvent | str, listener: Listener) -> Listener:
        """
        Register a listener.

        Returns the listener, so this also works as a decorator:

            @ami.on("close")
            def closed(had_error): ...
        """
        self._listeners[ClientEvent(event)].append((listener, False))
        return listener

    def once(self, event: ClientEvent | str, listener: Listener) -> Listener:
        """Register a listener that is removed after its first call."""
        self._listeners[ClientEvent(event)].append((listener, True))
        return listener

    def off(self, event: ClientEvent | str, listener: Listener) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        entries = self._listeners[ClientEvent(event)]
        entries[:] = [entry for entry in entries if entry[0] != listener]

    def listener_count(self, event: ClientEvent | str) -> int:
        return len(self._listeners[ClientEvent(event)])

    def emit(self, event: ClientEvent, *args: Any) -> None:
        entries = self._listeners[event]
        if not entries:
            return

        for listener, one_shot in list(entries):
            if one_shot:
                self.off(event, listener)
            try:
                result = listener(*args)
            except Exception:
                logger.exception("%s listener %r failed", event.value, listener)
                continue

            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._listener_tasks.add(task)
                task.add_done_callback(self._listener_done)

    def _listener_done(self, task: asyncio.Task[Any]) -> None:
        self._listener_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Async listener failed: %s", error, exc_info=error)
