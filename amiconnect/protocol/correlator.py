"""
Request/response correlation.

Every outgoing action gets a unique ActionID. The server echoes it on every
packet it sends in reply, which is how concurrently outstanding actions are
told apart: replies may arrive in any order relative to each other.

A reply is one of:

1. **Failure**: first packet's Response is not "Success"
   -> the action is rejected with the packet's Message

2. **Single packet**: Success, Message without the "follow" marker
   -> the action resolves with that packet

3. **List**: Success, Message containing "follow" (e.g. "Peer status list
   will follow"), then zero or more item packets, then a trailer carrying
   ListItems
   -> the action resolves with a ListResponse built from the packets between
      the header and the trailer

Pending requests live in a dict keyed by ActionID, so dispatching a packet
costs one lookup regardless of how many requests are outstanding.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from amiconnect.exceptions import ActionError
from amiconnect.models.packets import ActionResult, ListResponse, Packet
from amiconnect.protocol.constants import Field, ProtocolConstants
from amiconnect.protocol.values import encode_value

logger = logging.getLogger(__name__)


def new_action_id() -> str:
    """Generate a globally unique correlation identifier."""
    return str(uuid.uuid4())


def _check_text(text: str, what: str) -> None:
    if "\r" in text or "\n" in text:
        raise ValueError(f"{what} must not contain line breaks: {text!r}")


def encode_packet(fields: Mapping[str, Any]) -> bytes:
    """
    Serialize a packet to wire format.

    Fields are written in mapping order as "Name: Value" lines joined by
    CRLF, followed by a blank line.

    Raises:
        ValueError: If a name or value contains CR or LF.

    Example:
        >>> encode_packet({"Action": "Ping", "ActionID": "1"})
        b'Action: Ping\\r\\nActionID: 1\\r\\n\\r\\n'
    """
    lines: list[str] = []
    for name, value in fields.items():
        text = encode_value(value)
        _check_text(name, "Field name")
        _check_text(text, f"Value of {name}")
        lines.append(f"{name}: {text}")

    terminator = ProtocolConstants.LINE_TERMINATOR.decode("ascii")
    wire = terminator.join(lines) + terminator + terminator
    return wire.encode(ProtocolConstants.ENCODING)


@dataclass
class PendingAction:
    """
    An action awaiting its reply.

    Attributes:
        action_id: Correlation identifier attached to the request.
        action: Fields of the request as sent.
        future: Completed with the result or the failure.
        packets: Reply packets collected so far (list replies only).
    """

    action_id: str
    action: dict[str, Any]
    future: asyncio.Future[ActionResult]
    packets: list[Packet] = field(default_factory=list)

    @property
    def name(self) -> str:
        return str(self.action.get(Field.ACTION, ""))


class ActionCorrelator:
    """
    Tracks outstanding actions and completes them from decoded packets.

    All methods must be called from the event loop thread.

    Example:
        >>> async def ping(correlator, transport):
        ...     action_id, wire = correlator.build_request({"Action": "Ping"})
        ...     future = correlator.register(action_id, {"Action": "Ping"})
        ...     await transport.write(wire)
        ...     return await future  # completed by handle_packet()
    """

    def __init__(self) -> None:
        self._pending: dict[str, PendingAction] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def is_pending(self, action_id: str) -> bool:
        return action_id in self._pending

    def build_request(self, action: Mapping[str, Any]) -> tuple[str, bytes]:
        """
        Attach a fresh ActionID to an action and serialize it.

        Args:
            action: Request fields; must include a non-empty Action.

        Returns:
            (action_id, wire bytes)

        Raises:
            ValueError: If the Action field is missing or empty, or a field
                contains a line break.
        """
        name = action.get(Field.ACTION)
        if name is None or not str(name).strip():
            raise ValueError("Request requires a non-empty Action field")

        action_id = new_action_id()
        fields = dict(action)
        fields[Field.ACTION_ID] = action_id
        return action_id, encode_packet(fields)

    def register(
        self,
        action_id: str,
        action: Mapping[str, Any],
    ) -> asyncio.Future[ActionResult]:
        """
        Register a pending action.

        Must be called before the request is written, so that a fast reply
        cannot arrive ahead of its registration.
        """
        if action_id in self._pending:
            raise ValueError(f"ActionID {action_id} is already pending")

        future: asyncio.Future[ActionResult] = asyncio.get_running_loop().create_future()
        self._pending[action_id] = PendingAction(
            action_id=action_id,
            action=dict(action),
            future=future,
        )
        return future

    def handle_packet(self, packet: Packet) -> bool:
        """
        Offer a decoded packet to the pending actions.

        Returns:
            True if the packet belonged to a pending action.
        """
        action_id = packet.action_id
        if action_id is None:
            return False

        pending = self._pending.get(action_id)
        if pending is None:
            return False

        pending.packets.append(packet)
        header = pending.packets[0]

        if not header.is_success:
            self._complete(
                pending,
                error=ActionError(header.message, response=header, action=pending.name),
            )
            return True

        if not header.follows:
            self._complete(pending, result=header)
            return True

        trailer = pending.packets[-1]
        if len(pending.packets) > 1 and trailer.list_items is not None:
            items = tuple(pending.packets[1:-1])
            declared = trailer.list_items
            if declared != len(items):
                logger.warning(
                    "%s %s declared %d item(s) but %d were received",
                    pending.name,
                    action_id,
                    declared,
                    len(items),
                )
            self._complete(
                pending,
                result=ListResponse(header=header, items=items, list_items=declared),
            )

        return True

    def discard(self, action_id: str) -> bool:
        """
        Forget a single pending action and cancel its future.

        Used when the request never reached the server, or the caller
        stopped waiting. A reply arriving later is ignored.

        Returns:
            True if the action was pending.
        """
        pending = self._pending.pop(action_id, None)
        if pending is None:
            return False
        pending.future.cancel()
        return True

    def reject_all(self, make_error: Callable[[], BaseException]) -> int:
        """
        Reject every pending action.

        Args:
            make_error: Called once per pending action, so every awaiter
                receives its own exception instance.

        Returns:
            Number of actions rejected.
        """
        pending = list(self._pending.values())
        for item in pending:
            self._complete(item, error=make_error())
        if pending:
            logger.debug("Rejected %d pending action(s)", len(pending))
        return len(pending)

    def _complete(
        self,
        pending: PendingAction,
        *,
        result: ActionResult | None = None,
        error: BaseException | None = None,
    ) -> None:
        self._pending.pop(pending.action_id, None)

        if pending.future.done():
            return

        if error is not None:
            logger.debug("%s %s failed: %s", pending.name, pending.action_id, error)
            pending.future.set_exception(error)
        else:
            logger.debug("%s %s completed", pending.name, pending.action_id)
            pending.future.set_result(result)

    def __repr__(self) -> str:
        return f"ActionCorrelator(pending={len(self._pending)})"
