"""
TCP transport using asyncio streams.

This module provides the primary transport implementation for talking to
an Asterisk manager server over a persistent TCP connection.

Socket Configuration:
- TCP keepalive enabled (SO_KEEPALIVE)
- Nagle's algorithm disabled (TCP_NODELAY)

Example:
    >>> transport = TcpTransport("127.0.0.1", 5038)
    >>> async with transport:
    ...     await transport.write(request)
    ...     chunk = await transport.read_chunk()
"""

from __future__ import annotations

import asyncio
import logging
import socket

from amiconnect.exceptions import ConnectionError, TransportError
from amiconnect.protocol.constants import ProtocolConstants
from amiconnect.transport.abc import AbstractTransport

logger = logging.getLogger(__name__)


class TcpTransport(AbstractTransport):
    """
    Async TCP transport.

    Attributes:
        host: Server host name or address.
        port: Server TCP port.
        is_open: Whether the connection is currently open.

    Example:
        >>> transport = TcpTransport("pbx.example.net", 5038)
        >>> await transport.open()
        >>> try:
        ...     await transport.write(b"Action: Ping\\r\\n\\r\\n")
        ...     chunk = await transport.read_chunk()
        ... finally:
        ...     await transport.close()
    """

    def __init__(
        self,
        host: str = ProtocolConstants.DEFAULT_HOST,
        port: int = ProtocolConstants.DEFAULT_PORT,
        chunk_size: int = ProtocolConstants.READ_CHUNK_SIZE,
    ) -> None:
        """
        Initialize the TCP transport.

        Args:
            host: Server host name or address.
            port: Server TCP port (default: 5038).
            chunk_size: Maximum bytes returned by one read_chunk() call.
        """
        self._host = host
        self._port = port
        self._chunk_size = chunk_size
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def is_open(self) -> bool:
        """Check if the connection is currently open."""
        return (
            self._writer is not None
            and not self._writer.is_closing()
            and self._reader is not None
        )

    @property
    def peer_name(self) -> str:
        return f"{self._host}:{self._port}"

    async def open(self) -> None:
        """
        Open the TCP connection.

        Raises:
            ConnectionError: If the connection is refused, reset or the
                host cannot be resolved.
        """
        if self.is_open:
            return

        try:
            self._reader, self._writer = await asyncio.open_connection(self._host, self._port)
        except OSError as e:
            raise ConnectionError(f"Failed to connect to {self.peer_name}: {e}") from e

        sock = self._writer.get_extra_info("socket")
        if sock is not None:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        logger.debug("TCP connection open to %s", self.peer_name)

    async def close(self) -> None:
        """
        Close the TCP connection.

        Safely closes the connection and releases resources. Safe to call
        multiple times.
        """
        writer = self._writer
        self._reader = None
        self._writer = None

        if writer is None:
            return

        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            # Peer already reset the connection
            logger.debug("Error while closing %s: %s", self.peer_name, e)

    async def write(self, data: bytes) -> None:
        """
        Write data to the connection.

        Args:
            data: Bytes to transmit.

        Raises:
            TransportError: If the connection is not open or write fails.
        """
        if not self.is_open:
            raise TransportError("TCP connection is not open")

        try:
            self._writer.write(data)
            await self._writer.drain()
        except OSError as e:
            raise TransportError(f"Write failed: {e}") from e

    async def read_chunk(self) -> bytes:
        """
        Wait for the next chunk of received data.

        Returns:
            Up to chunk_size bytes, or b"" at end of stream.

        Raises:
            TransportError: If the connection is not open or read fails.
        """
        if self._reader is None:
            raise TransportError("TCP connection is not open")

        try:
            return await self._reader.read(self._chunk_size)
        except OSError as e:
            raise TransportError(f"Read failed: {e}") from e

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"TcpTransport({self._host!r}, {self._port}, {status})"
