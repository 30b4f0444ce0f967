"""
Packet models.

A packet is the open-ended field bag the server sends between blank lines.
Its field set is protocol defined and not statically known, so it is
modelled as an ordered string-keyed dict with typed accessors layered on
top for the fields the client itself relies on.

Multi-packet list results are assembled into a ListResponse: the header
packet, the item packets in receipt order, and the item count declared by
the trailer packet.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from amiconnect.protocol.constants import Field, ProtocolConstants, ResponseStatus
from amiconnect.protocol.values import FieldValue


class Packet(dict[str, FieldValue]):
    """
    One decoded key-value block of the wire protocol.

    Field order is preserved. Unknown fields are kept as-is.

    Example:
        >>> packet = Packet(Response="Success", Message="OK", ActionID="1")
        >>> packet.is_success
        True
        >>> packet.action_id
        '1'
    """

    def _text(self, name: str) -> str | None:
        value = self.get(name)
        if value is None:
            return None
        return str(value)

    @property
    def response(self) -> str | None:
        """Value of the Response field, if present."""
        return self._text(Field.RESPONSE)

    @property
    def message(self) -> str | None:
        """Value of the Message field, if present."""
        return self._text(Field.MESSAGE)

    @property
    def action_id(self) -> str | None:
        """Correlation identifier echoed by the server."""
        return self._text(Field.ACTION_ID)

    @property
    def is_success(self) -> bool:
        return self.response == ResponseStatus.SUCCESS.value

    @property
    def follows(self) -> bool:
        """Whether the message announces that list items follow."""
        message = self.message
        return bool(message) and ProtocolConstants.FOLLOW_MARKER in message

    @property
    def list_items(self) -> int | None:
        """Item count declared by a list trailer, or None if absent."""
        if Field.LIST_ITEMS not in self:
            return None
        try:
            return int(self[Field.LIST_ITEMS])
        except (TypeError, ValueError):
            return 0

    def __repr__(self) -> str:
        return f"Packet({dict.__repr__(self)})"


@dataclass(frozen=True)
class ListResponse:
    """
    Aggregated result of a list action.

    Attributes:
        header: First packet (status, message and correlation identifier).
        items: Item packets in receipt order, header and trailer excluded.
        list_items: Item count declared by the trailer packet.
    """

    header: Packet
    items: tuple[Packet, ...] = field(default_factory=tuple)
    list_items: int = 0

    @property
    def response(self) -> str | None:
        return self.header.response

    @property
    def message(self) -> str | None:
        return self.header.message

    @property
    def action_id(self) -> str | None:
        return self.header.action_id

    @property
    def is_success(self) -> bool:
        return self.header.is_success

    @property
    def is_complete(self) -> bool:
        """Whether the declared count matches the items collected."""
        return self.list_items == len(self.items)

    def __repr__(self) -> str:
        return (
            f"ListResponse(action_id={self.action_id!r}, "
            f"items={len(self.items)}, list_items={self.list_items})"
        )


ActionResult = Union[Packet, ListResponse]
"""What a completed action resolves to."""
