"""
Transport layer for manager connections.

Available transports:
- TcpTransport: asyncio TCP stream connection
- MockTransport: Mock transport for testing without a server

Example:
    >>> from amiconnect.transport import TcpTransport
    >>> async with TcpTransport("127.0.0.1", 5038) as transport:
    ...     greeting = await transport.read_chunk()

Testing Example:
    >>> from amiconnect.transport import MockTransport
    >>> mock = MockTransport()
    >>> mock.feed_data(b"Response: Success\r\n\r\n")
"""

from amiconnect.transport.abc import AbstractTransport
from amiconnect.transport.mock import MockTransport
from amiconnect.transport.tcp import TcpTransport

__all__ = [
    "AbstractTransport",
    "MockTransport",
    "TcpTransport",
]
