"""
AMI packet decoding.

This module turns the raw byte stream received from the server into
discrete packets. The stream is a sequence of CRLF-terminated lines:

1. **Field lines**: "Name: Value"
   - Split on the first colon; any further colons belong to the value
   - Name and value are trimmed; the value is coerced (see values.py)
   - A line with no name is dropped
   - A repeated name overwrites the earlier value

2. **Blank lines**: terminate the packet being assembled
   - A packet with at least one field is emitted
   - An empty packet is never emitted

3. **Greeting banner**: "Asterisk Call Manager/x.y.z"
   - Sent once when the connection opens; discarded

Decoding is decoupled from arrival: feed() only buffers, decode() does the
work. The client calls decode() from a periodic schedule, so a burst of
input is coalesced into one batch of packets.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from amiconnect.models.packets import Packet
from amiconnect.protocol.constants import ProtocolConstants
from amiconnect.protocol.values import coerce_value

if TYPE_CHECKING:
    from collections.abc import Buffer

logger = logging.getLogger(__name__)


def parse_line(line: str) -> tuple[str, str] | None:
    """
    Split a trimmed field line into name and raw value.

    Returns:
        (name, value), or None if the line has no field name.

    Example:
        >>> parse_line("Uptime: 12:30:01")
        ('Uptime', '12:30:01')
        >>> parse_line(": orphan") is None
        True
    """
    name, _, value = line.partition(":")
    name = name.strip()
    if not name:
        return None
    return name, value.strip()


class PacketDecoder:
    """
    Incremental AMI packet decoder.

    Owns the byte accumulator and the packet currently being assembled.
    Partial lines stay buffered across decode() calls, so the packets
    produced do not depend on how the input was chunked.

    Example:
        >>> decoder = PacketDecoder()
        >>> decoder.feed(b"Response: Success\\r\\nMessage: OK\\r\\n")
        >>> decoder.decode()
        []
        >>> decoder.feed(b"ActionID: 1\\r\\n\\r\\n")
        >>> decoder.decode()
        [Packet({'Response': 'Success', 'Message': 'OK', 'ActionID': '1'})]
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._packet = Packet()
        self._decoding = False

    @property
    def buffered(self) -> int:
        """Number of received bytes not yet decoded."""
        return len(self._buffer)

    @property
    def is_decoding(self) -> bool:
        return self._decoding

    def feed(self, data: Buffer) -> None:
        """
        Append received bytes to the accumulator.

        No decoding happens here.
        """
        self._buffer.extend(data)

    def reset(self) -> None:
        """Discard buffered bytes and the packet in progress."""
        self._buffer.clear()
        self._packet = Packet()

    def decode(self) -> list[Packet]:
        """
        Decode every complete line currently buffered.

        Returns:
            Packets completed during this pass, in receipt order. A
            re-entrant call made while a pass is running returns [].
        """
        if self._decoding:
            return []

        self._decoding = True
        try:
            return self._decode_lines()
        finally:
            self._decoding = False

    def _decode_lines(self) -> list[Packet]:
        packets: list[Packet] = []
        terminator = ProtocolConstants.LINE_TERMINATOR
        start = 0

        while True:
            idx = self._buffer.find(terminator, start)
            if idx == -1:
                break

            raw = bytes(self._buffer[start:idx])
            start = idx + len(terminator)

            line = raw.decode(ProtocolConstants.ENCODING, errors="replace").strip()
            packet = self._process_line(line)
            if packet is not None:
                packets.append(packet)

        if start:
            del self._buffer[:start]

        if packets:
            logger.debug("Decoded %d packet(s), %d byte(s) pending", len(packets), len(self._buffer))
        return packets

    def _process_line(self, line: str) -> Packet | None:
        if ProtocolConstants.GREETING_BANNER in line:
            logger.debug("Skipping greeting: %s", line)
            return None

        if not line:
            completed = self._packet if self._packet else None
            self._packet = Packet()
            return completed

        parsed = parse_line(line)
        if parsed is None:
            logger.debug("Dropping line without field name: %r", line)
            return None

        name, value = parsed
        self._packet[name] = coerce_value(name, value)
        return None

    def __repr__(self) -> str:
        return f"PacketDecoder(buffered={len(self._buffer)}, fields={len(self._packet)})"
