"""
amiconnect - asyncio client for the Asterisk Manager Interface.

This library maintains an authenticated manager session over TCP,
multiplexes actions over it by ActionID, assembles multi-packet list
replies and keeps the session alive with pings and reconnects.

Example:
    >>> from amiconnect import AsteriskManager
    >>>
    >>> async def main():
    ...     async with AsteriskManager(host="127.0.0.1", user="admin", password="secret") as ami:
    ...         await ami.login()
    ...         for peer in await ami.sip_peers():
    ...             print(peer["ObjectName"], peer["Online"])
"""

from amiconnect.client import ClientState, ManagerClient
from amiconnect.commands import AsteriskManager
from amiconnect.config import ClientOptions
from amiconnect.events import ClientEvent
from amiconnect.exceptions import (
    AMIError,
    ActionError,
    AuthenticationError,
    ConnectionError,
    ProtocolError,
    SessionClosedError,
    StateError,
    TimeoutError,
    TransportError,
)
from amiconnect.models import DatabaseEntry, ListResponse, Packet, PeerStatus, normalize_status
from amiconnect.protocol.values import coerce_value
from amiconnect.transport import AbstractTransport, MockTransport, TcpTransport

__version__ = "0.1.0"
__all__ = [
    # Client
    "ManagerClient",
    "AsteriskManager",
    "ClientState",
    "ClientEvent",
    "ClientOptions",
    # Models
    "Packet",
    "ListResponse",
    "PeerStatus",
    "DatabaseEntry",
    "normalize_status",
    "coerce_value",
    # Exceptions
    "AMIError",
    "ProtocolError",
    "ActionError",
    "ConnectionError",
    "TimeoutError",
    "SessionClosedError",
    "TransportError",
    "AuthenticationError",
    "StateError",
    # Transport
    "AbstractTransport",
    "TcpTransport",
    "MockTransport",
    # Version
    "__version__",
]
