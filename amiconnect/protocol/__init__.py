"""
Protocol layer for the Asterisk Manager Interface.

This module contains the wire-level handling:
- Field names, response statuses and protocol defaults
- Value coercion for decoded fields
- Packet decoding from the inbound byte stream
- ActionID correlation of replies to requests
"""

from amiconnect.protocol.constants import PONG, Action, Field, ProtocolConstants, ResponseStatus
from amiconnect.protocol.values import FieldValue, coerce_value, encode_value
from amiconnect.protocol.frame_reader import PacketDecoder, parse_line
from amiconnect.protocol.correlator import (
    ActionCorrelator,
    PendingAction,
    encode_packet,
    new_action_id,
)

__all__ = [
    # Constants
    "ProtocolConstants",
    "Field",
    "ResponseStatus",
    "Action",
    "PONG",
    # Values
    "FieldValue",
    "coerce_value",
    "encode_value",
    # Decoding
    "PacketDecoder",
    "parse_line",
    # Correlation
    "ActionCorrelator",
    "PendingAction",
    "encode_packet",
    "new_action_id",
]
