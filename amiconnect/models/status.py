"""
Peer status normalization.

Peer and contact listings report reachability as free text in the Status
field, for example "OK (5 ms)", "UNREACHABLE" or "Unmonitored". This module
turns that text into a small immutable value object and folds it back into
the packet as three normalized fields:

- Status: first word of a reachable status, the raw text otherwise,
  "UNKNOWN" when the field is missing
- Online: True only for a reachable (OK) status
- Time: qualify round-trip time in milliseconds, -1 when not reported
"""

from __future__ import annotations

import re
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field

from amiconnect.models.packets import Packet
from amiconnect.protocol.constants import Field as PacketField

UNKNOWN_STATUS: Final[str] = "UNKNOWN"
NO_TIME: Final[int] = -1

_ONLINE_MARKER: Final[str] = "OK"
_TIME_PATTERN: Final[re.Pattern[str]] = re.compile(r"\(\s*(-?\d+)\s*ms")


class PeerStatus(BaseModel):
    """
    Normalized reachability of a peer.

    Example:
        >>> status = PeerStatus.parse("OK (5 ms)")
        >>> status.online, status.time, status.status
        (True, 5, 'OK')

        >>> PeerStatus.parse(None).status
        'UNKNOWN'
    """

    model_config = ConfigDict(frozen=True)

    status: str = Field(default=UNKNOWN_STATUS, description="Normalized status text")
    online: bool = Field(default=False, description="Whether the peer is reachable")
    time: int = Field(default=NO_TIME, description="Round-trip time in ms, -1 if unknown")

    @property
    def has_time(self) -> bool:
        return self.time != NO_TIME

    @classmethod
    def parse(cls, raw: Any) -> PeerStatus:
        """
        Parse a raw Status value.

        Args:
            raw: The Status field as decoded, or None if it was absent.

        Returns:
            PeerStatus instance. A status containing "OK" (any case) is
            online; its time is read from "(N ms)" and only its first word
            is kept. Anything else is offline and kept verbatim.
        """
        if raw is None:
            return cls()

        text = str(raw)
        if _ONLINE_MARKER not in text.upper():
            return cls(status=text)

        time = NO_TIME
        match = _TIME_PATTERN.search(text)
        if match:
            time = int(match.group(1))

        return cls(status=text.split(" ")[0], online=True, time=time)

    def __repr__(self) -> str:
        if self.has_time:
            return f"PeerStatus({self.status}, online={self.online}, {self.time} ms)"
        return f"PeerStatus({self.status}, online={self.online})"


def normalize_status(packet: Packet) -> Packet:
    """
    Return a copy of a listing entry with normalized Status, Online and Time.

    The input packet is not modified.

    Example:
        >>> entry = normalize_status(Packet(ObjectName="1001", Status="OK (12 ms)"))
        >>> entry["Status"], entry["Online"], entry["Time"]
        ('OK', True, 12)
    """
    peer = PeerStatus.parse(packet.get(PacketField.STATUS))

    normalized = Packet(packet)
    normalized[PacketField.STATUS] = peer.status
    normalized["Online"] = peer.online
    normalized["Time"] = peer.time
    return normalized
