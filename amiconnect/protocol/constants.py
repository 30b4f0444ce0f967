"""
Asterisk Manager Interface wire constants.

The protocol is line oriented: ASCII lines terminated by CRLF, each either
"Name: Value" or blank. A blank line terminates one packet.
"""

from __future__ import annotations

from enum import Enum
from typing import Final


class ProtocolConstants:
    """
    Protocol-level constants and defaults.

    Timing values are in seconds.
    """

    LINE_TERMINATOR: Final[bytes] = b"\r\n"
    """Line terminator used in both directions."""

    ENCODING: Final[str] = "utf-8"
    """Text encoding for field names and values."""

    GREETING_BANNER: Final[str] = "Asterisk Call Manager"
    """Text of the banner the server sends when a connection opens."""

    FOLLOW_MARKER: Final[str] = "follow"
    """Message substring announcing that list items follow."""

    DEFAULT_HOST: Final[str] = "127.0.0.1"
    DEFAULT_PORT: Final[int] = 5038

    DEFAULT_READ_INTERVAL: Final[float] = 0.5
    """Interval between decode passes over received bytes."""

    DEFAULT_KEEP_ALIVE_INTERVAL: Final[float] = 30.0
    DEFAULT_CONNECTION_TIMEOUT: Final[float] = 5.0

    DEFAULT_RECONNECT_DELAY: Final[float] = 1.0
    DEFAULT_RECONNECT_MAX_DELAY: Final[float] = 30.0
    DEFAULT_RECONNECT_ATTEMPTS: Final[int] = 10

    READ_CHUNK_SIZE: Final[int] = 65536


class Field:
    """Well-known field names."""

    ACTION: Final[str] = "Action"
    ACTION_ID: Final[str] = "ActionID"
    RESPONSE: Final[str] = "Response"
    MESSAGE: Final[str] = "Message"
    LIST_ITEMS: Final[str] = "ListItems"
    USERNAME: Final[str] = "Username"
    SECRET: Final[str] = "Secret"
    EVENTS: Final[str] = "Events"
    PING: Final[str] = "Ping"
    MODULE: Final[str] = "Module"
    STATUS: Final[str] = "Status"


class ResponseStatus(str, Enum):
    """Values of the Response field."""

    SUCCESS = "Success"
    ERROR = "Error"
    GOODBYE = "Goodbye"


class Action(str, Enum):
    """Action names issued by the client itself."""

    LOGIN = "Login"
    PING = "Ping"
    MODULE_CHECK = "ModuleCheck"


PONG: Final[str] = "Pong"
"""Value of the Ping field in a successful Ping response."""
